"""Output formatting for batch review reports."""

import json
from abc import ABC, abstractmethod

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from reviewgate.models import BatchReviewReport, Decision, FileReviewSummary


def _decision_label(row: FileReviewSummary) -> str:
  if row.error is not None:
    return "failed"
  if row.decision is None:
    return "none"
  return row.decision.value


def _score_label(row: FileReviewSummary) -> str:
  return str(row.overall_score) if row.overall_score is not None else "-"


class OutputFormatter(ABC):
  """Base output formatter."""

  @abstractmethod
  def format(self, report: BatchReviewReport) -> str:
    """Format a review report for output."""
    ...


class TerminalFormatter(OutputFormatter):
  """Rich terminal output formatter."""

  DECISION_STYLES = {
    "approved": "green",
    "rejected": "bold red",
    "needs_changes": "yellow",
    "requires_manual_review": "cyan",
    "failed": "red",
    "none": "dim",
  }

  def __init__(self, console: Console | None = None):
    self.console = console or Console()

  def format(self, report: BatchReviewReport) -> str:
    self._print_summary(report)
    self._print_results(report)
    return ""

  def _print_summary(self, report: BatchReviewReport) -> None:
    s = report.summary
    body = (
      f"{s.total_files} files: [green]{s.approved} approved[/green], "
      f"[red]{s.rejected} rejected[/red], "
      f"[cyan]{s.requires_review} awaiting review[/cyan], "
      f"[yellow]{s.needs_changes} need changes[/yellow]"
    )
    if s.failed:
      body += f", [red]{s.failed} failed[/red]"
    body += f"\nAverage score: {s.average_score:.1f}"

    self.console.print()
    self.console.print(Panel(
      body,
      title=f"[bold]Code Review[/bold] (session {report.session_id[:8]})",
      border_style="blue",
    ))

  def _print_results(self, report: BatchReviewReport) -> None:
    if not report.results:
      self.console.print("\n[dim]No files reviewed.[/dim]")
      return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Decision", width=24)
    table.add_column("File", min_width=30)
    table.add_column("Score", width=6, justify="right")
    table.add_column("Issues", width=7, justify="right")
    table.add_column("Time", width=9, justify="right")

    for row in report.results:
      label = _decision_label(row)
      path = row.file_path
      if row.error:
        path += f"\n[dim]{row.error}[/dim]"
      table.add_row(
        Text(label.upper(), style=self.DECISION_STYLES.get(label, "")),
        path,
        _score_label(row),
        str(row.issues_count),
        f"{row.processing_time_ms:.0f}ms",
      )

    self.console.print()
    self.console.print(table)


class JsonFormatter(OutputFormatter):
  """JSON output formatter."""

  def format(self, report: BatchReviewReport) -> str:
    s = report.summary
    data = {
      "session_id": report.session_id,
      "summary": {
        "total_files": s.total_files,
        "approved": s.approved,
        "rejected": s.rejected,
        "requires_review": s.requires_review,
        "needs_changes": s.needs_changes,
        "failed": s.failed,
        "average_score": s.average_score,
        "total_processing_time_ms": s.total_processing_time_ms,
      },
      "results": [
        {
          "file_id": r.file_id,
          "file_path": r.file_path,
          "decision": r.decision.value if r.decision else None,
          "overall_score": r.overall_score,
          "issues_count": r.issues_count,
          "processing_time_ms": r.processing_time_ms,
          "error": r.error,
        }
        for r in report.results
      ],
    }
    return json.dumps(data, indent=2)


class MarkdownFormatter(OutputFormatter):
  """Markdown output formatter."""

  def format(self, report: BatchReviewReport) -> str:
    s = report.summary
    lines = [
      "# Code Review",
      "",
      f"**Session:** {report.session_id}",
      "",
      "## Summary",
      "",
      f"- Files: {s.total_files}",
      f"- Approved: {s.approved}",
      f"- Rejected: {s.rejected}",
      f"- Awaiting review: {s.requires_review}",
      f"- Needs changes: {s.needs_changes}",
      f"- Failed: {s.failed}",
      f"- Average score: {s.average_score:.1f}",
      "",
      "## Files",
      "",
    ]

    if not report.results:
      lines.extend(["No files reviewed.", ""])
      return "\n".join(lines)

    lines.extend([
      "| File | Decision | Score | Issues |",
      "| --- | --- | ---: | ---: |",
    ])
    for row in report.results:
      lines.append(
        f"| `{row.file_path}` | {_decision_label(row)} | {_score_label(row)} | {row.issues_count} |"
      )

    failures = [r for r in report.results if r.error]
    if failures:
      lines.extend(["", "## Failures", ""])
      lines.extend(f"- `{r.file_path}`: {r.error}" for r in failures)

    rejected = [r for r in report.results if r.decision == Decision.REJECTED]
    if rejected:
      lines.extend(["", f"**{len(rejected)} file(s) rejected.**"])

    lines.append("")
    return "\n".join(lines)


def get_formatter(format_type: str) -> OutputFormatter:
  """Get formatter by type name."""
  formatters = {
    "terminal": TerminalFormatter,
    "json": JsonFormatter,
    "markdown": MarkdownFormatter,
  }
  formatter_class = formatters.get(format_type)
  if not formatter_class:
    raise ValueError(f"Unknown format: {format_type}")
  return formatter_class()
