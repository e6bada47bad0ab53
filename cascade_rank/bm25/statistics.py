"""
Corpus statistics for BM25 IDF and length normalization.

Computed in one pass over a document collection and reusable across any
number of queries: with precomputed statistics, scoring a candidate stream
needs no second pass.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import AsyncIterable, Iterable, Mapping, Optional

from ..errors import InvalidArgumentError
from .cache import ProcessedDocument, TokenCache
from .tokenizer import Tokenizer, tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusStatistics:
    """
    Immutable aggregate over a document collection.

    Attributes:
        document_frequency: term → number of distinct documents containing it
        total_documents: N, number of documents aggregated
        average_document_length: mean token count (0.0 for an empty corpus)
    """
    document_frequency: Mapping[str, int] = field(default_factory=dict)
    total_documents: int = 0
    average_document_length: float = 0.0

    def __post_init__(self):
        if self.total_documents < 0:
            raise InvalidArgumentError(f"total_documents must be >= 0, got {self.total_documents}")
        if self.average_document_length < 0:
            raise InvalidArgumentError(
                f"average_document_length must be >= 0, got {self.average_document_length}"
            )
        for term, df in self.document_frequency.items():
            if df < 0 or df > self.total_documents:
                raise InvalidArgumentError(
                    f"document frequency of {term!r} ({df}) outside [0, {self.total_documents}]"
                )
        # Read-only view over a private copy
        object.__setattr__(self, "document_frequency", MappingProxyType(dict(self.document_frequency)))

    @classmethod
    def from_processed(cls, documents: Iterable[ProcessedDocument]) -> "CorpusStatistics":
        """
        Aggregate already-tokenized documents in a single pass.

        Document frequency counts each document once per distinct term,
        not raw term occurrences.
        """
        accumulator = _Accumulator()
        for doc in documents:
            accumulator.add(doc)
        return accumulator.build()

    def document_frequency_of(self, term: str) -> int:
        return self.document_frequency.get(term, 0)


class _Accumulator:
    """Running totals for a single aggregation pass."""

    def __init__(self):
        self.document_frequency = defaultdict(int)
        self.total_documents = 0
        self.total_length = 0

    def add(self, doc: ProcessedDocument) -> None:
        self.total_documents += 1
        self.total_length += doc.length
        for term in doc.term_frequency:
            self.document_frequency[term] += 1

    def build(self) -> CorpusStatistics:
        average = self.total_length / self.total_documents if self.total_documents else 0.0
        return CorpusStatistics(
            document_frequency=dict(self.document_frequency),
            total_documents=self.total_documents,
            average_document_length=average,
        )


def _processor(cache: Optional[TokenCache], tokenizer: Tokenizer) -> TokenCache:
    return cache if cache is not None else TokenCache(tokenizer)


def _process_all(documents: Iterable[str], cache: TokenCache):
    for text in documents:
        try:
            yield cache.get(text)
        except Exception as e:
            logger.warning(f"Tokenization failed, document excluded from statistics: {e}")


def compute_corpus_statistics(
    documents: Iterable[str],
    cache: Optional[TokenCache] = None,
    tokenizer: Tokenizer = tokenize,
) -> CorpusStatistics:
    """
    Build CorpusStatistics from raw texts, consuming the stream exactly once.

    Args:
        documents: Raw document texts
        cache: TokenCache to reuse (warms it for later scoring); a private
            one around `tokenizer` is used when omitted
        tokenizer: Tokenizer used when no cache is given

    Returns:
        CorpusStatistics (empty stream → N=0, avgdl=0.0, no terms)

    Example:
        >>> stats = compute_corpus_statistics(["the cat sat", "the dog ran"])
        >>> stats.total_documents, stats.document_frequency["cat"]
        (2, 1)
    """
    stats = CorpusStatistics.from_processed(_process_all(documents, _processor(cache, tokenizer)))
    logger.debug(
        f"Corpus statistics: {stats.total_documents} documents, "
        f"{len(stats.document_frequency)} unique terms, avgdl={stats.average_document_length:.2f}"
    )
    return stats


async def compute_corpus_statistics_async(
    documents: AsyncIterable[str],
    cache: Optional[TokenCache] = None,
    tokenizer: Tokenizer = tokenize,
) -> CorpusStatistics:
    """Async-stream variant of compute_corpus_statistics (same single pass)."""
    cache = _processor(cache, tokenizer)
    accumulator = _Accumulator()
    async for text in documents:
        try:
            doc = cache.get(text)
        except Exception as e:
            logger.warning(f"Tokenization failed, document excluded from statistics: {e}")
            continue
        accumulator.add(doc)
    return accumulator.build()
