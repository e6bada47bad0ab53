"""
BM25 ranking stage.

Two scoring strategies, chosen explicitly:

- score_with_statistics(query, docs, statistics): single pass over the
  candidate stream, O(1) memory beyond the token cache. Use this with
  statistics precomputed over a static corpus.
- score_two_pass(query, docs): materializes the candidates, builds local
  statistics from them, then scores. Convenient for small ad-hoc sets.

score() (the stage capability) uses the first when the ranker was built
with statistics, the second otherwise.
"""

import logging
from collections import Counter
from typing import Optional

from ..bm25.cache import ProcessedDocument, TokenCache
from ..bm25.scorer import bm25_score
from ..bm25.statistics import CorpusStatistics
from ..bm25.tokenizer import Tokenizer, tokenize
from ..config import BM25Parameters
from ..errors import InvalidArgumentError
from ..utils import as_async_iter, collect
from .base import BaseRanker, Documents, ScoredDocument, is_empty_query

logger = logging.getLogger(__name__)


class BM25Ranker(BaseRanker):
    """
    BM25 relevance scoring over a streamed candidate set.

    Owns its TokenCache (created here unless one is passed in) so repeated
    queries over the same documents tokenize each text once.

    Args:
        statistics: Precomputed corpus statistics (None → two-pass scoring)
        params: BM25Parameters (default k1=1.5, b=0.75, k3=1000)
        tokenizer: Callable (text) -> terms; ignored when `cache` is given
        cache: TokenCache to use instead of a private one
    """

    def __init__(
        self,
        statistics: Optional[CorpusStatistics] = None,
        params: Optional[BM25Parameters] = None,
        tokenizer: Tokenizer = tokenize,
        cache: Optional[TokenCache] = None,
    ):
        if cache is None and tokenizer is None:
            raise InvalidArgumentError("tokenizer or cache is required")
        self.statistics = statistics
        self.params = params or BM25Parameters()
        self.cache = cache if cache is not None else TokenCache(tokenizer)
        logger.info(
            f"BM25Ranker initialized (k1={self.params.k1}, b={self.params.b}, k3={self.params.k3}, "
            f"mode={'precomputed' if statistics is not None else 'two-pass'})"
        )

    @property
    def tokenizer(self) -> Tokenizer:
        return self.cache.tokenizer

    def clear_cache(self) -> None:
        """Drop all cached tokenizations (scores stay value-identical)."""
        self.cache.clear()

    def _query_terms(self, query: Optional[str]) -> Counter:
        """Query term frequencies; empty on empty query or tokenizer failure."""
        if is_empty_query(query):
            return Counter()
        try:
            return Counter(self.tokenizer(query))
        except Exception as e:
            logger.warning(f"Query tokenization failed, all documents score 0: {e}")
            return Counter()

    def _process(self, text: Optional[str]) -> Optional[ProcessedDocument]:
        try:
            return self.cache.get(text or "")
        except Exception as e:
            logger.warning(f"Document tokenization failed, scoring 0: {e}")
            return None

    def _score_processed(
        self,
        query_terms: Counter,
        doc: Optional[ProcessedDocument],
        statistics: CorpusStatistics,
    ) -> float:
        if doc is None:
            return 0.0
        return bm25_score(query_terms, doc.term_frequency, doc.length, statistics, self.params)

    def score_with_statistics(
        self,
        query: Optional[str],
        documents: Documents,
        statistics: CorpusStatistics,
    ):
        """
        Score documents in a single pass using precomputed statistics.

        Yields ScoredDocument(text, score) in input order.

        Raises:
            InvalidArgumentError: statistics is None (raised on call)
        """
        if statistics is None:
            raise InvalidArgumentError("statistics are required for single-pass scoring")
        return self._score_single_pass(query, documents, statistics)

    async def _score_single_pass(self, query, documents, statistics):
        query_terms = self._query_terms(query)
        count = 0
        async for text in as_async_iter(documents):
            count += 1
            if not query_terms:
                yield ScoredDocument(text, 0.0)
                continue
            yield ScoredDocument(text, self._score_processed(query_terms, self._process(text), statistics))

        logger.debug(f"BM25 single-pass scored {count} documents")

    async def score_two_pass(self, query: Optional[str], documents: Documents):
        """
        Score documents with statistics built from the candidates themselves.

        First pass materializes and tokenizes every document, second pass
        scores. Memory grows with the candidate set.
        """
        texts = await collect(documents)
        query_terms = self._query_terms(query)

        if not query_terms:
            # No tokenization at all for an empty query
            for text in texts:
                yield ScoredDocument(text, 0.0)
            return

        processed = [self._process(text) for text in texts]
        statistics = CorpusStatistics.from_processed(doc for doc in processed if doc is not None)
        logger.debug(
            f"BM25 two-pass: local statistics over {statistics.total_documents} documents, "
            f"avgdl={statistics.average_document_length:.2f}"
        )

        for text, doc in zip(texts, processed):
            yield ScoredDocument(text, self._score_processed(query_terms, doc, statistics))

    def score(self, query: Optional[str], documents: Documents):
        if self.statistics is not None:
            return self.score_with_statistics(query, documents, self.statistics)
        return self.score_two_pass(query, documents)

    def get_model_info(self) -> dict:
        stats = self.statistics
        return {
            "name": self.name,
            "type": "bm25",
            "parameters": {"k1": self.params.k1, "b": self.params.b, "k3": self.params.k3},
            "mode": "precomputed" if stats is not None else "two-pass",
            "corpus_documents": stats.total_documents if stats is not None else None,
            "cached_documents": len(self.cache),
        }

    def __repr__(self) -> str:
        return f"BM25Ranker(k1={self.params.k1}, b={self.params.b}, k3={self.params.k3})"
