"""
Ranking stage built from a plain scoring function.

Lets callers drop any heuristic (recency, length, a business rule, a model
they host themselves) into a cascade without subclassing BaseRanker.
"""

import inspect
import logging
import math
from typing import Awaitable, Callable, Optional, Union

from ..errors import InvalidArgumentError
from ..utils import as_async_iter
from .base import BaseRanker, Documents, ScoredDocument, is_empty_query

logger = logging.getLogger(__name__)

ScoreFunction = Callable[[str, str], Union[float, Awaitable[float]]]


class FunctionRanker(BaseRanker):
    """
    Wrap `fn(query, document) -> score` (sync or async) as a ranking stage.

    Args:
        fn: Scoring function, called once per document
        name: Stage name for logs and reports (default: the function name)
        score_empty_query: Call fn even when the query is empty
            (default False: empty query scores every document 0)
    """

    def __init__(self, fn: ScoreFunction, name: Optional[str] = None, score_empty_query: bool = False):
        if fn is None or not callable(fn):
            raise InvalidArgumentError("fn must be a callable (query, document) -> score")
        self.fn = fn
        self._name = name or getattr(fn, "__name__", "FunctionRanker")
        self.score_empty_query = score_empty_query

    @property
    def name(self) -> str:
        return self._name

    async def _score_one(self, query: str, document: str) -> float:
        try:
            result = self.fn(query, document)
            if inspect.isawaitable(result):
                result = await result
            score = float(result)
        except Exception as e:
            logger.warning(f"{self.name}: scoring failed, using 0.0: {e}")
            return 0.0

        if math.isnan(score):
            logger.warning(f"{self.name}: function returned NaN, using 0.0")
            return 0.0
        return score

    async def score(self, query: Optional[str], documents: Documents):
        skip = is_empty_query(query) and not self.score_empty_query
        async for document in as_async_iter(documents):
            if skip:
                yield ScoredDocument(document, 0.0)
            else:
                yield ScoredDocument(document, await self._score_one(query or "", document))

    def get_model_info(self) -> dict:
        return {"name": self.name, "type": "function"}

    def __repr__(self) -> str:
        return f"FunctionRanker(name={self._name!r})"
