"""
Streaming top-N selection over a scored stream in O(N) memory.

A min-heap of capacity N holds the best items seen so far. Below capacity
every item goes in; at capacity a newcomer replaces the current minimum
only when its score is strictly greater.

Ties: the earlier stream position ranks first, so an equal-scored newcomer
never evicts an item already held.
"""

import heapq
from itertools import count
from typing import Any, Generic, List, Tuple, TypeVar

T = TypeVar("T")


class TopNSelector(Generic[T]):
    """
    Bounded min-heap keeping the N highest-scoring items.

    Example:
        >>> selector = TopNSelector(2)
        >>> for doc, score in [("a", 0.1), ("b", 0.9), ("c", 0.5)]:
        ...     selector.push(doc, score)
        >>> selector.results()
        [('b', 0.9), ('c', 0.5)]
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        # (score, -position, position, item): the heap minimum is the lowest
        # score, and among equal scores the latest position
        self._heap: List[Tuple[float, int, int, Any]] = []
        self._positions = count()

    def push(self, item: T, score: float) -> None:
        position = next(self._positions)
        if self.capacity <= 0:
            return

        entry = (score, -position, position, item)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
        elif score > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)

    def __len__(self) -> int:
        return len(self._heap)

    def results(self) -> List[Tuple[T, float]]:
        """Drain the heap into (item, score) pairs, highest score first."""
        drained = []
        while self._heap:
            score, _, _, item = heapq.heappop(self._heap)
            drained.append((item, score))
        drained.reverse()
        return drained
