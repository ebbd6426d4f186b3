"""Loading source files for review from paths, directories and globs."""

import fnmatch
import glob as globmod
from pathlib import Path
from typing import Iterable

from reviewgate.errors import ReviewGateError
from reviewgate.models import SourceFile
from reviewgate.rules.base import extension_of


class FileError(ReviewGateError):
  """File operation failed."""


# Directories skipped regardless of configuration
DEFAULT_EXCLUDES: frozenset[str] = frozenset({
  "node_modules",
  ".git",
  "__pycache__",
  ".venv",
  "venv",
  "dist",
  "build",
  ".next",
  "target",
  "vendor",
})

_LANGUAGE_EXTENSIONS: dict[str, list[str]] = {
  "python": [".py"],
  "javascript": [".js", ".jsx", ".mjs", ".cjs"],
  "typescript": [".ts", ".tsx", ".mts", ".cts"],
  "go": [".go"],
  "rust": [".rs"],
  "java": [".java"],
  "kotlin": [".kt", ".kts"],
  "ruby": [".rb"],
  "php": [".php"],
  "csharp": [".cs"],
  "cpp": [".cpp", ".cc", ".cxx", ".c", ".h", ".hpp"],
  "swift": [".swift"],
  "scala": [".scala"],
}

_EXTENSION_LANGUAGES = {
  ext: language
  for language, extensions in _LANGUAGE_EXTENSIONS.items()
  for ext in extensions
}


def detect_language(path: str) -> str | None:
  """Language name for a file path, from its extension."""
  return _EXTENSION_LANGUAGES.get(extension_of(path))


def load_source_files(
  patterns: list[str],
  cwd: Path | None = None,
  supported_extensions: Iterable[str] | None = None,
  exclude_patterns: Iterable[str] = (),
) -> list[SourceFile]:
  """Resolve paths, directories and globs into SourceFiles.

  Directories are walked recursively. Only files with a supported
  extension are kept when `supported_extensions` is given. Files
  under a default-excluded directory, or matching one of
  `exclude_patterns` (a directory name or glob), are skipped.

  Raises:
    FileError: Nothing matched, or a file could not be read.
  """
  base_path = cwd or Path.cwd()
  extensions = {e.lower() for e in supported_extensions} if supported_extensions else None
  excludes = list(exclude_patterns)

  files: list[SourceFile] = []
  seen: set[Path] = set()

  for path in _resolve_patterns(patterns, base_path):
    if path in seen:
      continue
    seen.add(path)
    rel_path = _relative(path, base_path)
    if extensions is not None and extension_of(rel_path) not in extensions:
      continue
    if _is_excluded(rel_path, excludes):
      continue
    files.append(_read_source_file(path, rel_path))

  if not files:
    raise FileError(_no_files_error(patterns))

  return files


def _resolve_patterns(patterns: list[str], base_path: Path) -> list[Path]:
  result: list[Path] = []
  for pattern in patterns:
    p = Path(pattern)
    full_path = p if p.is_absolute() else base_path / p

    if any(c in pattern for c in "*?["):
      matches = sorted(Path(m) for m in globmod.glob(str(full_path), recursive=True))
      result.extend(m for m in matches if m.is_file())
    elif full_path.is_dir():
      result.extend(sorted(f for f in full_path.rglob("*") if f.is_file()))
    elif full_path.is_file():
      result.append(full_path)
    else:
      raise FileError(f"No such file or directory: {pattern}")
  return result


def _relative(path: Path, base_path: Path) -> str:
  try:
    return path.relative_to(base_path).as_posix()
  except ValueError:
    return path.as_posix()


def _is_excluded(rel_path: str, exclude_patterns: list[str]) -> bool:
  parts = Path(rel_path).parts
  if set(parts) & DEFAULT_EXCLUDES:
    return True
  for pattern in exclude_patterns:
    if pattern in parts or fnmatch.fnmatch(rel_path, pattern):
      return True
  return False


def _read_source_file(path: Path, rel_path: str) -> SourceFile:
  try:
    content = path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    raise FileError(f"Cannot read {rel_path}: {e}") from e

  return SourceFile(
    id=rel_path,
    path=rel_path,
    content=content,
    language=detect_language(rel_path),
  )


def _no_files_error(patterns: list[str]) -> str:
  return (
    f"No reviewable files matched: {', '.join(patterns)}\n"
    "Use paths, directories or glob patterns like: reviewgate 'src/**/*.ts'"
  )
