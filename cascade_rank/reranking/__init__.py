"""
Ranking stages.

Usage:
    from cascade_rank.reranking import BM25Ranker

    ranker = BM25Ranker()
    async for document, score in ranker.rank(query, documents, top_n=5):
        ...

    # LLM judge stage:
    from cascade_rank.reranking import LLMRanker, GeminiJudge

    ranker = LLMRanker(GeminiJudge("gemini-2.5-flash", project_id="my-project"))
"""

from .base import BaseRanker, ScoredDocument, is_empty_query
from .bm25 import BM25Ranker
from .custom import FunctionRanker
from .llm import LLMRanker, RelevanceJudge, Judgement
from .local import CrossEncoderRanker
from .gemini import GeminiJudge

__all__ = [
    'BaseRanker',
    'ScoredDocument',
    'is_empty_query',
    'BM25Ranker',
    'FunctionRanker',
    'LLMRanker',
    'RelevanceJudge',
    'Judgement',
    'CrossEncoderRanker',
    'GeminiJudge',
]
