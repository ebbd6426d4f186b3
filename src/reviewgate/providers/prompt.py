"""Review prompt construction."""

from reviewgate.config.settings import AIReviewerSettings
from reviewgate.models import AIReviewRequest

_NO_CONTEXT = "No additional context provided."


def build_review_prompt(request: AIReviewRequest, settings: AIReviewerSettings) -> str:
  """Build the single prompt sent to the completion service."""
  analysis_types = "\n".join(f"- {t}" for t in settings.enabled_analysis_types())

  instructions = f"""You are an expert code reviewer and software architect. Analyze the provided code thoroughly and identify issues, improvements, and opportunities across multiple dimensions.

Analysis Context:
{build_context_block(request, settings)}

Enabled Analysis Types:
{analysis_types}

For each finding you identify, provide:
1. Category (logic, architecture, security, performance, maintainability, readability)
2. Severity (critical, high, medium, low, info)
3. Line number (if applicable)
4. Clear description of the issue
5. Detailed explanation of why it's a problem
6. Specific suggestion for improvement
7. Code example if relevant
8. Confidence score (0-1)

Rules:
- Only report findings for the enabled analysis types.
- Only flag issues you are confident about. Avoid false positives.
- If the code looks correct, return an empty findings array.

Be specific, actionable, and constructive in your feedback."""

  code = f"""Please analyze the following {request.language} code:

File: {request.file_path}
Language: {request.language}

```{request.language}
{request.content}
```

Respond with a single JSON object in this exact format:
{{
  "findings": [
    {{
      "category": "logic|architecture|security|performance|maintainability|readability",
      "severity": "critical|high|medium|low|info",
      "line": 123,
      "message": "Brief description of the issue",
      "explanation": "Detailed explanation of why this is a problem",
      "suggestion": "Specific recommendation for improvement",
      "code_example": "Example of better code (optional)",
      "confidence": 0.95,
      "auto_fixable": false
    }}
  ]
}}"""

  return f"{instructions}\n\n{code}"


def build_context_block(request: AIReviewRequest, settings: AIReviewerSettings) -> str:
  """Describe the project around the file, request context first."""
  parts: list[str] = []
  context = request.context
  defaults = settings.analysis_context

  project_type = (context.project_type if context else None) or defaults.project_type
  framework = (context.framework if context else None) or defaults.framework

  if project_type:
    parts.append(f"Project Type: {project_type}")
  if framework:
    parts.append(f"Framework: {framework}")
  if defaults.language_version:
    parts.append(f"Language Version: {defaults.language_version}")
  if defaults.deployment_environment:
    parts.append(f"Deployment Environment: {defaults.deployment_environment}")
  if context and context.dependencies:
    parts.append(f"Key Dependencies: {', '.join(context.dependencies)}")
  if context and context.file_dependencies:
    parts.append(f"Related Files: {', '.join(context.file_dependencies)}")

  return "\n".join(parts) if parts else _NO_CONTEXT
