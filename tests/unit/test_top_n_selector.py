"""
Unit tests for streaming top-N selection.
"""

import random

import pytest

from cascade_rank.bm25.selector import TopNSelector

pytestmark = pytest.mark.unit


class TestTopNSelector:
    """Test bounded heap selection"""

    def test_keeps_highest(self):
        selector = TopNSelector(3)
        for i, score in enumerate([0.1, 0.9, 0.4, 0.7, 0.2, 0.8]):
            selector.push(f"doc{i}", score)

        assert selector.results() == [("doc1", 0.9), ("doc5", 0.8), ("doc3", 0.7)]

    def test_fewer_items_than_capacity(self):
        selector = TopNSelector(10)
        selector.push("a", 1.0)
        selector.push("b", 2.0)
        assert selector.results() == [("b", 2.0), ("a", 1.0)]

    def test_memory_bounded(self):
        selector = TopNSelector(5)
        for i in range(1000):
            selector.push(i, float(i % 97))
            assert len(selector) <= 5

    def test_ties_keep_earliest(self):
        """Equal scores: earlier stream position wins and ranks first"""
        selector = TopNSelector(2)
        for name in ["first", "second", "third"]:
            selector.push(name, 1.0)

        assert selector.results() == [("first", 1.0), ("second", 1.0)]

    def test_zero_capacity(self):
        selector = TopNSelector(0)
        selector.push("a", 1.0)
        assert selector.results() == []

    def test_matches_full_sort(self):
        rng = random.Random(42)
        items = [(f"d{i}", rng.random()) for i in range(200)]

        selector = TopNSelector(15)
        for item, score in items:
            selector.push(item, score)

        expected = sorted(items, key=lambda x: x[1], reverse=True)[:15]
        assert selector.results() == expected

    def test_unorderable_items(self):
        """Items themselves are never compared"""
        selector = TopNSelector(2)
        selector.push({"id": 1}, 0.5)
        selector.push({"id": 2}, 0.5)
        selector.push({"id": 3}, 0.9)
        assert [item["id"] for item, _ in selector.results()] == [3, 1]
