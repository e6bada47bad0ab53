"""Cascade pipelines composing ranking stages."""

from .cascade import CascadeRerankPipeline, CascadeResult, StageReport
from .bm25_then_llm import BM25ThenLLMPipeline

__all__ = [
    "CascadeRerankPipeline",
    "CascadeResult",
    "StageReport",
    "BM25ThenLLMPipeline",
]
