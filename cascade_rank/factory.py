"""
Factory to create ranking stages and cascade pipelines from configuration.
"""

import logging
from typing import Optional

from .bm25.tokenizer import make_tokenizer
from .config import RankerSettings, load_settings
from .pipelines.cascade import CascadeRerankPipeline
from .reranking.base import BaseRanker
from .reranking.bm25 import BM25Ranker
from .reranking.gemini import GeminiJudge
from .reranking.llm import LLMRanker
from .reranking.local import CrossEncoderRanker

logger = logging.getLogger(__name__)

STAGE_TYPES = ("bm25", "gemini", "local")


class RankingFactory:
    """Factory to create ranking stages and pipelines based on configuration."""

    _instance: Optional[CascadeRerankPipeline] = None  # Singleton cache

    @classmethod
    def create_stage(cls, kind: str, settings: RankerSettings) -> BaseRanker:
        """
        Create one ranking stage.

        Supported kinds:
            - bm25: lexical BM25 scoring (two-pass, local statistics)
            - gemini: LLM relevance judge with Gemini (needs project + location)
            - local: cross-encoder from HuggingFace (runs locally)

        Raises:
            ValueError: Unknown kind or missing required settings
        """
        kind = kind.lower()

        if kind == "bm25":
            logger.info(f"Creating BM25 stage ({settings.tokenizer_language})")
            return BM25Ranker(
                params=settings.bm25,
                tokenizer=make_tokenizer(settings.tokenizer_language),
            )

        if kind == "gemini":
            model = settings.model or "gemini-2.5-flash"
            if not settings.location:
                raise ValueError("GCP_REGION or GOOGLE_CLOUD_LOCATION environment variable is required")
            logger.info(f"Creating Gemini LLM stage: {model}")
            judge = GeminiJudge(
                model_name=model,
                project_id=settings.project_id,
                location=settings.location,
            )
            return LLMRanker(judge, max_concurrency=settings.max_concurrency)

        if kind == "local":
            model = settings.model or "cross-encoder/ms-marco-MiniLM-L-12-v2"
            logger.info(f"Creating local cross-encoder stage: {model}")
            return CrossEncoderRanker(model_name=model)

        raise ValueError(
            f"Unknown ranking stage type: {kind}. "
            f"Valid options: {', '.join(STAGE_TYPES)}"
        )

    @classmethod
    def create_pipeline(
        cls,
        settings: Optional[RankerSettings] = None,
        force_reload: bool = False,
    ) -> CascadeRerankPipeline:
        """
        Create the cascade pipeline described by the settings.

        Config (env vars, when settings are not given): see cascade_rank.config

        Args:
            settings: Explicit settings (default: load_settings())
            force_reload: If True, recreate instance even if cached

        Returns:
            CascadeRerankPipeline (cached until cleanup() or force_reload)
        """
        if cls._instance is not None and not force_reload:
            logger.info(f"Returning cached pipeline instance: {cls._instance!r}")
            return cls._instance

        if force_reload:
            cls.cleanup()

        settings = settings or load_settings()

        try:
            stages = [cls.create_stage(kind, settings) for kind in settings.stages]
            cls._instance = CascadeRerankPipeline(stages, settings.pipeline)
        except Exception as e:
            logger.error(f"Failed to create pipeline ({','.join(settings.stages)}): {e}")
            raise

        return cls._instance

    @classmethod
    def cleanup(cls):
        """Close and drop the cached pipeline."""
        if cls._instance is not None:
            logger.info("Cleaning up pipeline instance")
            cls._instance.close()
            cls._instance = None


def get_pipeline(force_reload: bool = False) -> CascadeRerankPipeline:
    """Get the configured pipeline (factory convenience function)."""
    return RankingFactory.create_pipeline(force_reload=force_reload)
