"""
LLM-based ranking stage delegating to an external relevance judge.

Each document is judged independently by one call to a RelevanceJudge,
which returns a relevance score in [0, 1] plus a short explanation.
Unavailable judges, malformed replies and out-of-range scores never fail
the stream: the affected document scores 0.0 (out-of-range values are
clamped) and the others carry on.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Tuple

from ..errors import InvalidArgumentError
from ..utils import as_async_iter
from .base import BaseRanker, Documents, ScoredDocument, is_empty_query

logger = logging.getLogger(__name__)


@dataclass
class Judgement:
    """Relevance verdict for one (query, document) pair"""
    score: float            # Relevance (0-1, higher = more relevant)
    explanation: str = ""   # Judge's rationale (or the failure reason)


class RelevanceJudge(ABC):
    """
    External relevance-judgment service.

    Implementations may be slow and may fail; LLMRanker absorbs failures.
    """

    @abstractmethod
    async def judge(self, query: str, document: str) -> Judgement:
        """
        Judge how relevant `document` is to `query`.

        Returns:
            Judgement with score in [0, 1]

        Raises:
            Any exception on transport failure or malformed reply
        """
        pass

    def get_model_info(self) -> dict:
        return {"name": type(self).__name__, "type": "judge"}

    def close(self):
        """Optional cleanup (close API clients)."""
        pass


class LLMRanker(BaseRanker):
    """
    Ranking stage scoring each document with a RelevanceJudge.

    Args:
        judge: RelevanceJudge implementation (e.g. GeminiJudge)
        max_concurrency: Documents judged concurrently (default 1: one call
            at a time). Results are always emitted in input order.
    """

    def __init__(self, judge: RelevanceJudge, max_concurrency: int = 1):
        if judge is None:
            raise InvalidArgumentError("judge is required")
        if max_concurrency < 1:
            raise InvalidArgumentError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.judge = judge
        self.max_concurrency = max_concurrency
        logger.info(f"LLMRanker initialized with {type(judge).__name__} (max_concurrency={max_concurrency})")

    async def _judge_one(self, query: str, document: Optional[str]) -> Judgement:
        if document is not None and not isinstance(document, str):
            logger.warning(f"Document is {type(document).__name__}, not text, using 0.0")
            return Judgement(0.0, "Invalid document")
        if not document or not document.strip():
            return Judgement(0.0, "Empty document")

        try:
            judgement = await self.judge.judge(query, document)
            score = float(judgement.score)
        except Exception as e:
            logger.warning(f"Judge failed, using 0.0: {e}")
            return Judgement(0.0, f"Judge error: {e}")

        if math.isnan(score):
            logger.warning("Judge returned NaN, using 0.0")
            return Judgement(0.0, "Invalid score")
        if not (0.0 <= score <= 1.0):
            logger.warning(f"Judge score {score} outside [0, 1], clamping")
            score = max(0.0, min(1.0, score))

        return Judgement(score, judgement.explanation or "")

    async def _judge_window(self, query: str, window: List[str]) -> List[Judgement]:
        if len(window) == 1:
            return [await self._judge_one(query, window[0])]
        # gather cancels the remaining calls if this task is cancelled
        return list(await asyncio.gather(*(self._judge_one(query, doc) for doc in window)))

    async def judgements(self, query: Optional[str], documents: Documents) -> AsyncIterator[Tuple[str, Judgement]]:
        """
        Yield (document, Judgement) pairs in input order, explanations included.

        An empty query yields Judgement(0.0, "Empty query") for every
        document without calling the judge.
        """
        empty = is_empty_query(query)
        window: List[str] = []

        async for document in as_async_iter(documents):
            if empty:
                yield document, Judgement(0.0, "Empty query")
                continue

            window.append(document)
            if len(window) >= self.max_concurrency:
                for doc, judgement in zip(window, await self._judge_window(query, window)):
                    logger.debug(f"Judged document: score={judgement.score:.3f} ({judgement.explanation[:50]})")
                    yield doc, judgement
                window = []

        if window:
            for doc, judgement in zip(window, await self._judge_window(query, window)):
                logger.debug(f"Judged document: score={judgement.score:.3f} ({judgement.explanation[:50]})")
                yield doc, judgement

    async def score(self, query: Optional[str], documents: Documents) -> AsyncIterator[ScoredDocument]:
        async with aclosing(self.judgements(query, documents)) as judged:
            async for document, judgement in judged:
                yield ScoredDocument(document, judgement.score)

    def get_model_info(self) -> dict:
        return {
            "name": self.name,
            "type": "llm",
            "judge": self.judge.get_model_info(),
            "max_concurrency": self.max_concurrency,
        }

    def close(self):
        self.judge.close()

    def __repr__(self) -> str:
        return f"LLMRanker(judge={type(self.judge).__name__}, max_concurrency={self.max_concurrency})"
