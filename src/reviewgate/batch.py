"""Windowed concurrent execution for batch operations."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchFailure:
  """One item that failed inside a batch."""

  item_id: str
  error: BaseException

  @property
  def message(self) -> str:
    return str(self.error) or type(self.error).__name__


@dataclass
class BatchOutcome(Generic[R]):
  """Successes and failures of a batch, collected side by side."""

  results: list[R] = field(default_factory=list)
  failures: list[BatchFailure] = field(default_factory=list)
  windows: int = 0

  @property
  def total(self) -> int:
    return len(self.results) + len(self.failures)


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
  """Split `items` into consecutive chunks of at most `size` elements."""
  if size < 1:
    raise ValueError(f"chunk size must be at least 1, got {size}")
  return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def run_in_windows(
  items: Sequence[T],
  worker: Callable[[T], Awaitable[R]],
  *,
  window_size: int,
  item_id: Callable[[T], str],
  delay_seconds: float = 0.0,
) -> BatchOutcome[R]:
  """Run `worker` over `items`, `window_size` at a time.

  Each window runs its items concurrently and must finish completely
  before the next window starts. `delay_seconds` is slept between
  windows, never after the last one. A failing item is recorded in
  `failures` and does not affect its neighbours.

  Results keep submission order within the batch.
  """
  outcome: BatchOutcome[R] = BatchOutcome()
  windows = chunked(items, window_size) if items else []

  for index, window in enumerate(windows):
    settled = await asyncio.gather(
      *(worker(item) for item in window),
      return_exceptions=True,
    )
    outcome.windows += 1

    for item, result in zip(window, settled):
      if isinstance(result, asyncio.CancelledError):
        raise result
      if isinstance(result, BaseException):
        logger.warning("Batch item %s failed: %s", item_id(item), result)
        outcome.failures.append(BatchFailure(item_id(item), result))
      else:
        outcome.results.append(result)

    if delay_seconds > 0 and index < len(windows) - 1:
      await asyncio.sleep(delay_seconds)

  return outcome
