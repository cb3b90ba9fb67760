"""
Bounded, time-ordered buffers used by the control cycle.

All buffers are FIFO with a fixed capacity: appending to a full buffer evicts
the oldest entry, so contents are always the most recent N entries in arrival
order.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Generic, Iterator, List, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Fixed-capacity FIFO buffer."""

    def __init__(self, capacity: int):
        if int(capacity) < 1:
            raise ValueError(f"Buffer capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._items: Deque[T] = deque(maxlen=self.capacity)

    def append(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def recent(self, n: int) -> List[T]:
        """The last ``n`` entries (fewer if the buffer holds fewer), oldest first."""
        if n <= 0:
            return []
        items = list(self._items)
        return items[-n:]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, i: int) -> T:
        return self._items[i]


@dataclass(frozen=True)
class ControlCycleRecord:
    """Outcome of one successful control cycle. Scores are in [0, 1]."""

    timestamp: float
    efficiency: float
    comfort: float
    stability: float

    @property
    def aggregate(self) -> float:
        return (self.efficiency + self.comfort + self.stability) / 3.0


class PerformanceHistory(RingBuffer[ControlCycleRecord]):
    """Ring buffer of ControlCycleRecord with column helpers."""

    def column(self, name: str, n: int = 0) -> np.ndarray:
        records = self.recent(n) if n > 0 else list(self)
        return np.array([getattr(r, name) for r in records], dtype=float)

    def mean_aggregate(self, n: int) -> float:
        records = self.recent(n)
        if not records:
            return 0.0
        return float(np.mean([r.aggregate for r in records]))


class ConditionHistory(RingBuffer[float]):
    """Recent raw samples of one condition (e.g. road roughness)."""

    def window(self, n: int) -> np.ndarray:
        return np.array(self.recent(n), dtype=float)


def rule_traces(count: int, capacity: int) -> Sequence[RingBuffer[float]]:
    """One RulePerformanceTrace buffer per rule."""
    return tuple(RingBuffer(capacity) for _ in range(count))
