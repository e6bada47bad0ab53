"""
Configuration models for rankers and cascade pipelines.

Values come from explicit construction or from environment variables
(optionally loaded from a .env.local file via python-dotenv):

    RERANKER_STAGES           Comma-separated stage kinds: bm25, gemini, local (default: bm25)
    RERANKER_TOP_K            Intermediate-stage fan-out (default: 20)
    RERANKER_TOP_M            Final result width (default: 5)
    RERANKER_SCORE_THRESHOLD  Inclusive minimum score (default: 0.0)
    RERANKER_MODEL            Model for gemini/local stages
    RERANKER_MAX_CONCURRENCY  Parallel judge calls per stage (default: 1)
    BM25_K1, BM25_B, BM25_K3  BM25 parameters (defaults: 1.5, 0.75, 1000)
    TOKENIZER_LANGUAGE        english | french (default: english)
    GOOGLE_CLOUD_PROJECT / GCP_PROJECT_ID
    GOOGLE_CLOUD_LOCATION / GCP_REGION
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """Cascade filtering policy. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=20, ge=1, description="Candidates forwarded by each intermediate stage")
    top_m: int = Field(default=5, ge=1, description="Results emitted by the last stage")
    score_threshold: float = Field(default=0.0, description="Inclusive lower bound on admissible scores")


class BM25Parameters(BaseModel):
    """
    BM25 tuning parameters.

    k1: term frequency saturation (higher = more weight to repeated terms)
    b:  length normalization (0 = none, 1 = full)
    k3: query term frequency saturation (1000 effectively disables it)
    """

    model_config = ConfigDict(frozen=True)

    k1: float = Field(default=1.5, ge=0.0)
    b: float = Field(default=0.75, ge=0.0, le=1.0)
    k3: float = Field(default=1000.0, ge=0.0)


class RankerSettings(BaseModel):
    """Everything the factory needs to assemble stages and a pipeline."""

    model_config = ConfigDict(frozen=True)

    stages: List[str] = Field(default_factory=lambda: ["bm25"], min_length=1)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    bm25: BM25Parameters = Field(default_factory=BM25Parameters)
    tokenizer_language: str = "english"
    model: Optional[str] = None
    max_concurrency: int = Field(default=1, ge=1)
    project_id: Optional[str] = None
    location: Optional[str] = None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {value!r}")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


def load_settings(env_file: Optional[str] = ".env.local") -> RankerSettings:
    """
    Build RankerSettings from the environment.

    Args:
        env_file: Optional dotenv file loaded first. Existing environment
            variables win over values from the file.

    Returns:
        Validated RankerSettings

    Raises:
        ValueError: On non-numeric values or out-of-range fields
            (pydantic ValidationError is a ValueError)
    """
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)
        logger.debug(f"Loaded environment from {env_file}")

    stages_value = os.getenv("RERANKER_STAGES") or "bm25"
    stages = [s.strip().lower() for s in stages_value.split(",") if s.strip()]

    settings = RankerSettings(
        stages=stages,
        pipeline=PipelineConfig(
            top_k=_env_int("RERANKER_TOP_K", 20),
            top_m=_env_int("RERANKER_TOP_M", 5),
            score_threshold=_env_float("RERANKER_SCORE_THRESHOLD", 0.0),
        ),
        bm25=BM25Parameters(
            k1=_env_float("BM25_K1", 1.5),
            b=_env_float("BM25_B", 0.75),
            k3=_env_float("BM25_K3", 1000.0),
        ),
        tokenizer_language=(os.getenv("TOKENIZER_LANGUAGE") or "english").lower(),
        model=os.getenv("RERANKER_MODEL") or None,
        max_concurrency=_env_int("RERANKER_MAX_CONCURRENCY", 1),
        project_id=os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GCP_PROJECT_ID"),
        location=os.getenv("GOOGLE_CLOUD_LOCATION") or os.getenv("GCP_REGION"),
    )

    logger.info(
        f"Ranker settings: stages={settings.stages}, top_k={settings.pipeline.top_k}, "
        f"top_m={settings.pipeline.top_m}, threshold={settings.pipeline.score_threshold}"
    )
    return settings
