"""
Abstract base class for ranking stages.

All rankers implement this interface to be swappable, and the cascade
pipeline only ever talks to it. A stage scores a stream of documents
against a query and yields one (document, score) pair per input, in input
order; ranking (top-N, highest first) is derived from scoring.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from contextlib import aclosing
from typing import Any, AsyncIterable, AsyncIterator, Callable, Iterable, NamedTuple, Optional, TypeVar, Union

from ..bm25.selector import TopNSelector
from ..errors import InvalidArgumentError
from ..utils import as_async_iter

logger = logging.getLogger(__name__)

R = TypeVar("R")

Documents = Union[Iterable[str], AsyncIterable[str]]
Records = Union[Iterable[R], AsyncIterable[R]]
TextAccessor = Callable[[Any], str]


class ScoredDocument(NamedTuple):
    """A document (raw text or opaque record) with its relevance score"""
    document: Any
    score: float


def is_empty_query(query: Optional[str]) -> bool:
    """None, empty and whitespace-only queries score every document 0."""
    return query is None or not query.strip()


class BaseRanker(ABC):
    """
    Abstract base class for ranking stages.

    Score ranges are stage-specific: BM25 is unbounded (>= 0), LLM judges
    and cross-encoders are in [0, 1]. Nothing normalizes scores between stages.
    """

    @property
    def name(self) -> str:
        """Stage name used in logs and cascade reports."""
        return type(self).__name__

    @abstractmethod
    def score(self, query: Optional[str], documents: Documents) -> AsyncIterator[ScoredDocument]:
        """
        Score every document against the query.

        Args:
            query: Search query text (empty/None → every score is 0)
            documents: Sync or async iterable of document texts

        Returns:
            Async iterator of ScoredDocument, one per input, in input order.
            Per-document failures yield score 0 instead of raising.
        """

    async def score_records(
        self,
        query: Optional[str],
        records: Records,
        text_of: TextAccessor,
    ) -> AsyncIterator[ScoredDocument]:
        """
        Score structured records through an accessor extracting their text.

        Yields ScoredDocument(record, score) in input order. A record whose
        text cannot be extracted is scored as an empty document.
        """
        if text_of is None:
            raise InvalidArgumentError("text_of accessor is required to score records")

        # Stages may read ahead of what they yield; records wait here in order
        pending = deque()

        async def texts():
            async for record in as_async_iter(records):
                pending.append(record)
                try:
                    text = text_of(record)
                except Exception as e:
                    logger.warning(f"{self.name}: text extraction failed, scoring as empty: {e}")
                    text = ""
                yield text if text is not None else ""

        async with aclosing(self.score(query, texts())) as scored:
            async for _, score in scored:
                yield ScoredDocument(pending.popleft(), score)

    async def rank(
        self,
        query: Optional[str],
        documents: Documents,
        top_n: int = 5,
    ) -> AsyncIterator[ScoredDocument]:
        """
        Rank documents and yield the top N, highest score first.

        Length = min(top_n, number of documents). Ties keep input order.
        """
        selector = TopNSelector(top_n)
        async with aclosing(self.score(query, documents)) as scored:
            async for document, score in scored:
                selector.push(document, score)

        for document, score in selector.results():
            yield ScoredDocument(document, score)

    async def rank_records(
        self,
        query: Optional[str],
        records: Records,
        text_of: TextAccessor,
        top_n: int = 5,
    ) -> AsyncIterator[ScoredDocument]:
        """Rank structured records, yielding the top N (record, score) pairs."""
        selector = TopNSelector(top_n)
        async with aclosing(self.score_records(query, records, text_of)) as scored:
            async for record, score in scored:
                selector.push(record, score)

        for record, score in selector.results():
            yield ScoredDocument(record, score)

    def get_model_info(self) -> dict:
        """
        Get information about the ranker.

        Returns:
            Dict with at least: name, type
        """
        return {"name": self.name, "type": "custom"}

    def close(self):
        """Optional cleanup (close API clients, free model memory, etc.)"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
