"""CLI interface using Typer."""

import asyncio
import logging
import os
import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from reviewgate import __version__
from reviewgate.config import Settings, load_config
from reviewgate.errors import ConfigError
from reviewgate.files import FileError, load_source_files
from reviewgate.output import get_formatter
from reviewgate.providers.registry import ProviderNotFoundError, ProviderUnavailableError
from reviewgate.review import run_review

app = typer.Typer(
  name="reviewgate",
  help="Static checks, AI review and approval policy for source files",
  no_args_is_help=False,
)

console = Console()
err_console = Console(stderr=True)


def _is_debug() -> bool:
  return os.environ.get("REVIEWGATE_DEBUG", "").lower() in ("1", "true", "yes")


def _configure_logging(debug: bool) -> None:
  logging.basicConfig(
    level=logging.DEBUG if debug else logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=err_console, rich_tracebacks=debug, show_path=debug)],
    force=True,
  )


def version_callback(value: bool) -> None:
  if value:
    console.print(f"reviewgate {__version__}")
    raise typer.Exit()


def _apply_overrides(
  settings: Settings,
  provider: str | None,
  model: str | None,
  no_static: bool,
  no_ai: bool,
  no_approval: bool,
) -> Settings:
  """Layer command-line flags over the loaded configuration."""
  ai_update = {}
  if provider:
    ai_update["provider"] = provider
  if model:
    ai_update["model"] = model

  update: dict = {}
  if ai_update:
    update["ai"] = settings.ai.model_copy(update=ai_update)
  if no_static:
    update["enable_static_analysis"] = False
  if no_ai:
    update["enable_ai_review"] = False
  if no_approval:
    update["enable_user_approval"] = False
  return settings.model_copy(update=update) if update else settings


@app.command()
def main(
  files: Optional[list[str]] = typer.Argument(
    None,
    help="Files, directories or glob patterns to review (default: configured include patterns)",
  ),
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
  provider: str = typer.Option(
    None, "--provider", "-p", help="LLM provider (anthropic, openai, gemini, ollama)"
  ),
  model: str = typer.Option(None, "--model", "-m", help="Model to use"),
  no_static: bool = typer.Option(False, "--no-static", help="Skip static analysis"),
  no_ai: bool = typer.Option(False, "--no-ai", help="Skip AI review"),
  no_approval: bool = typer.Option(False, "--no-approval", help="Skip the approval stage"),
  format_type: str = typer.Option(
    "terminal", "--format", help="Output format: terminal, json, markdown"
  ),
  project: str = typer.Option("default", "--project", help="Project id for the review session"),
  exit_code: bool = typer.Option(
    False, "--exit-code", help="Exit with status 1 when any file is rejected"
  ),
  debug: bool = typer.Option(False, "--debug", "-d", help="Verbose logging and full tracebacks"),
  version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
  """Review source files through static analysis, AI review and approval."""
  show_traceback = debug or _is_debug()
  _configure_logging(show_traceback)

  try:
    formatter = get_formatter(format_type)
    settings = _apply_overrides(
      load_config(config), provider, model, no_static, no_ai, no_approval
    )
    sources = load_source_files(
      files or settings.include_patterns,
      supported_extensions=settings.static.supported_extensions,
      exclude_patterns=settings.exclude_patterns,
    )

    report = asyncio.run(run_review(sources, settings=settings, project_id=project))

    output = formatter.format(report)
    if output:
      console.print(output, markup=False, highlight=False, soft_wrap=True)

  except (ProviderNotFoundError, ProviderUnavailableError, FileError, ConfigError) as e:
    console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(1) from None
  except Exception as e:
    console.print(f"[red]Error:[/red] {e}")
    if show_traceback:
      console.print("\n[dim]Traceback:[/dim]")
      console.print(traceback.format_exc())
    raise typer.Exit(1) from None

  if exit_code and report.has_rejections:
    raise typer.Exit(1)


if __name__ == "__main__":
  app()
