"""
cascade-rank: BM25 scoring and cascade reranking of candidate documents.

Usage:
    from cascade_rank import BM25Ranker, CascadeRerankPipeline, PipelineConfig, compute_corpus_statistics

    stats = compute_corpus_statistics(corpus)          # once per corpus
    bm25 = BM25Ranker(statistics=stats)                # single-pass scoring
    pipeline = CascadeRerankPipeline([bm25, llm_stage], PipelineConfig(top_k=20, top_m=5))

    async for document, score in pipeline.score(query, candidates):
        ...
"""

from .bm25 import (
    CorpusStatistics,
    ProcessedDocument,
    TokenCache,
    TopNSelector,
    bm25_score,
    compute_corpus_statistics,
    compute_corpus_statistics_async,
    tokenize,
)
from .config import BM25Parameters, PipelineConfig, RankerSettings, load_settings
from .errors import InvalidArgumentError, JudgeResponseError
from .pipelines import BM25ThenLLMPipeline, CascadeRerankPipeline, CascadeResult, StageReport
from .reranking import (
    BaseRanker,
    BM25Ranker,
    CrossEncoderRanker,
    FunctionRanker,
    GeminiJudge,
    Judgement,
    LLMRanker,
    RelevanceJudge,
    ScoredDocument,
)

__version__ = "0.1.0"

__all__ = [
    "CorpusStatistics",
    "ProcessedDocument",
    "TokenCache",
    "TopNSelector",
    "bm25_score",
    "compute_corpus_statistics",
    "compute_corpus_statistics_async",
    "tokenize",
    "BM25Parameters",
    "PipelineConfig",
    "RankerSettings",
    "load_settings",
    "InvalidArgumentError",
    "JudgeResponseError",
    "BM25ThenLLMPipeline",
    "CascadeRerankPipeline",
    "CascadeResult",
    "StageReport",
    "BaseRanker",
    "BM25Ranker",
    "CrossEncoderRanker",
    "FunctionRanker",
    "GeminiJudge",
    "Judgement",
    "LLMRanker",
    "RelevanceJudge",
    "ScoredDocument",
]
