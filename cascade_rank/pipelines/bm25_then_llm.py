"""Two-stage cascade: BM25 narrows the candidates, an LLM judge orders the rest."""

from ..config import PipelineConfig
from ..errors import InvalidArgumentError
from ..reranking.base import BaseRanker
from ..reranking.bm25 import BM25Ranker
from .cascade import CascadeRerankPipeline


class BM25ThenLLMPipeline(CascadeRerankPipeline):
    """
    BM25 keeps the top_k lexical matches, the LLM stage returns the top_m.

    Args:
        bm25: BM25Ranker for the first stage
        llm: Second stage (normally an LLMRanker; any BaseRanker works)
        config: PipelineConfig
    """

    def __init__(self, bm25: BM25Ranker, llm: BaseRanker, config: PipelineConfig):
        if bm25 is None:
            raise InvalidArgumentError("bm25 ranker is required")
        if llm is None:
            raise InvalidArgumentError("llm ranker is required")
        if config is None:
            raise InvalidArgumentError("config is required")
        super().__init__([bm25, llm], config)
        self.bm25 = bm25
        self.llm = llm
