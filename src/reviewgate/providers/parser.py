"""Shared response parsing utilities."""

import json
import re
from typing import Any

from reviewgate.errors import AIResponseUnparsableError

MAX_RESPONSE_LENGTH = 1_000_000  # 1MB limit for regex processing

_CODE_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: str) -> dict[str, Any]:
  """Extract the JSON object embedded in a completion.

  Tries, in order: the whole text, a fenced code block, then the span
  from the first `{` to the last `}`.

  Raises:
    AIResponseUnparsableError: No candidate parses to a JSON object.
  """
  text = text.strip()

  if len(text) > MAX_RESPONSE_LENGTH:
    raise AIResponseUnparsableError(
      f"Response too large ({len(text)} bytes), max {MAX_RESPONSE_LENGTH}"
    )

  candidates = [text]
  block = _CODE_BLOCK.search(text)
  if block:
    candidates.append(block.group(1).strip())
  span = _OBJECT_SPAN.search(text)
  if span:
    candidates.append(span.group(0))

  for candidate in candidates:
    try:
      data = json.loads(candidate)
    except json.JSONDecodeError:
      continue
    if isinstance(data, dict):
      return data

  raise AIResponseUnparsableError(
    f"Could not extract a JSON object from response: {text[:200]}..."
  )
