"""Cache of plan-search results.

A plan search reads only the searching piece, the die, the difficulty, the
piece's pending card counts, the board and both finish lines, so those make
up the key. Entries are evicted least-recently-used first; dropping any of
them only costs a repeated search.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterator, NamedTuple

from ..metrics import CACHE_ENTRIES, CACHE_LOOKUPS
from ..models import Piece, Side
from .difficulty import DifficultyProfile
from .world import ActionCounts, World, unrevealed_real_counts

DEFAULT_CAPACITY = 512

_MISSING = object()


class PlanSearchKey(NamedTuple):
    """Everything a plan search for one (piece, die) pair depends on."""

    piece: Piece
    count: int
    level: int
    queued: ActionCounts
    board: tuple[str, ...]
    finish_lines: tuple[tuple[str, ...], tuple[str, ...]]

    @classmethod
    def for_search(
        cls, world: World, profile: DifficultyProfile, piece: Piece, count: int
    ) -> PlanSearchKey:
        return cls(
            piece=piece,
            count=count,
            level=profile.level,
            queued=unrevealed_real_counts(world.queue(piece)),
            board=tuple(world.board.hash_parts()),
            finish_lines=(world.finish_line(Side.P2), world.finish_line(Side.P1)),
        )


@dataclass
class CacheCounters:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class PlanCache:
    """Bounded LRU map from :class:`PlanSearchKey` to ranked plans.

    An empty result list is a valid cached answer (the piece had no
    sequence of that length), so presence is tracked separately from the
    stored value.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.counters = CacheCounters()
        self._plans: OrderedDict[Hashable, Any] = OrderedDict()

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._plans

    def recent_keys(self) -> Iterator[Hashable]:
        """Keys from least to most recently used."""
        return iter(list(self._plans))

    def lookup(self, key: Hashable) -> tuple[bool, Any]:
        """Return ``(found, plans)``; a hit becomes the most recent entry."""
        plans = self._plans.get(key, _MISSING)
        if plans is _MISSING:
            self.counters.misses += 1
            CACHE_LOOKUPS.labels("miss").inc()
            return False, None
        self._plans.move_to_end(key)
        self.counters.hits += 1
        CACHE_LOOKUPS.labels("hit").inc()
        return True, plans

    def store(self, key: Hashable, plans: Any) -> None:
        if key in self._plans:
            self._plans.move_to_end(key)
        elif len(self._plans) >= self.capacity:
            self._plans.popitem(last=False)
            self.counters.evictions += 1
        self._plans[key] = plans
        CACHE_ENTRIES.set(len(self._plans))

    def get_or_search(self, key: Hashable, search: Callable[[], Any]) -> Any:
        found, plans = self.lookup(key)
        if found:
            return plans
        plans = search()
        self.store(key, plans)
        return plans

    def clear(self) -> int:
        """Drop every entry and reset the counters; returns entries removed."""
        removed = len(self._plans)
        self._plans.clear()
        self.counters = CacheCounters()
        CACHE_ENTRIES.set(0)
        return removed

    def stats(self) -> dict:
        return {
            "entries": len(self._plans),
            "max_entries": self.capacity,
            "hits": self.counters.hits,
            "misses": self.counters.misses,
            "evictions": self.counters.evictions,
            "hit_rate": self.counters.hit_rate,
        }
