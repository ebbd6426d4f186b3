"""Bounded in-memory stores."""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
  """Size and effectiveness of a cache."""

  size: int
  max_size: int
  hits: int
  misses: int

  @property
  def hit_rate(self) -> float:
    lookups = self.hits + self.misses
    return self.hits / lookups if lookups else 0.0


class LRUCache(Generic[K, V]):
  """Least-recently-used cache with a hard entry bound.

  Inserting beyond `max_entries` evicts the entry that was read or
  written longest ago.
  """

  def __init__(self, max_entries: int):
    if max_entries < 1:
      raise ValueError(f"max_entries must be at least 1, got {max_entries}")
    self._max_entries = max_entries
    self._data: OrderedDict[K, V] = OrderedDict()
    self._hits = 0
    self._misses = 0

  @property
  def max_entries(self) -> int:
    return self._max_entries

  def get(self, key: K) -> V | None:
    if key not in self._data:
      self._misses += 1
      return None
    self._hits += 1
    self._data.move_to_end(key)
    return self._data[key]

  def put(self, key: K, value: V) -> None:
    self._data[key] = value
    self._data.move_to_end(key)
    while len(self._data) > self._max_entries:
      self._data.popitem(last=False)

  def clear(self) -> None:
    self._data.clear()

  def stats(self) -> CacheStats:
    return CacheStats(
      size=len(self._data),
      max_size=self._max_entries,
      hits=self._hits,
      misses=self._misses,
    )

  def __contains__(self, key: object) -> bool:
    return key in self._data

  def __len__(self) -> int:
    return len(self._data)
