"""
Cascade reranking pipeline.

Chains ranking stages so each one only sees what the previous one kept:

    candidates ──► stage 0 ──► threshold ──► top_k ──► stage 1 ──► ... ──► last stage ──► threshold ──► top_m

Typical use is a cheap lexical stage (BM25) over many candidates followed by
an expensive stage (LLM judge, cross-encoder) over the few that survive.

Scores are compared against the threshold as each stage produced them; no
normalization happens between stages (BM25 is unbounded, judges are 0-1).
Sorting is stable, so equal scores keep their input order.
"""

import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional, Sequence

from ..config import PipelineConfig
from ..errors import InvalidArgumentError
from ..reranking.base import BaseRanker, Documents, Records, ScoredDocument, TextAccessor
from ..utils import collect

logger = logging.getLogger(__name__)


@dataclass
class StageReport:
    """What one stage did during a cascade run"""
    stage: str              # Stage name
    input_count: int        # Candidates handed to the stage
    retained_count: int     # Candidates at or above the score threshold
    output_count: int       # Candidates forwarded (top_k) or emitted (top_m)
    elapsed_seconds: float


@dataclass
class CascadeResult:
    """Final ranking of a cascade run plus per-stage reports"""
    results: List[ScoredDocument] = field(default_factory=list)
    stages: List[StageReport] = field(default_factory=list)

    @property
    def documents(self) -> list:
        return [r.document for r in self.results]

    @property
    def total_seconds(self) -> float:
        return sum(report.elapsed_seconds for report in self.stages)


StageScorer = Callable[[BaseRanker, Optional[str], list], AsyncIterator[ScoredDocument]]


class CascadeRerankPipeline(BaseRanker):
    """
    A ranking stage made of ranking stages.

    Each stage filters the candidates for the next one (threshold, then
    top_k) until the last stage, whose output is cut to top_m.

    Args:
        stages: Ordered ranking stages (at least one)
        config: PipelineConfig (top_k, top_m, score_threshold)

    Raises:
        InvalidArgumentError: stages or config missing, no stages, or a
            stage that is not a BaseRanker
    """

    def __init__(self, stages: Sequence[BaseRanker], config: PipelineConfig):
        if stages is None:
            raise InvalidArgumentError("stages is required")
        if config is None:
            raise InvalidArgumentError("config is required")

        stages = list(stages)
        if not stages:
            raise InvalidArgumentError("At least one ranking stage must be provided")
        for i, stage in enumerate(stages):
            if not isinstance(stage, BaseRanker):
                raise InvalidArgumentError(
                    f"Stage {i} must be a BaseRanker, got {type(stage).__name__}"
                )

        self.stages = tuple(stages)
        self.config = config
        logger.info(
            f"Cascade pipeline: {' -> '.join(s.name for s in self.stages)} "
            f"(top_k={config.top_k}, top_m={config.top_m}, threshold={config.score_threshold})"
        )

    async def _cascade(
        self,
        query: Optional[str],
        items,
        score_stage: StageScorer,
        reports: Optional[List[StageReport]] = None,
    ) -> List[ScoredDocument]:
        # Later stages re-stream the filtered set, so materialize once
        candidates = await collect(items)
        threshold = self.config.score_threshold
        last = len(self.stages) - 1
        survivors: List[ScoredDocument] = []

        for i, stage in enumerate(self.stages):
            start = time.perf_counter()
            retained: List[ScoredDocument] = []

            async with aclosing(score_stage(stage, query, candidates)) as scored:
                async for document, score in scored:
                    if score >= threshold:
                        retained.append(ScoredDocument(document, score))

            retained.sort(key=lambda r: r.score, reverse=True)
            limit = self.config.top_m if i == last else self.config.top_k
            survivors = retained[:limit]
            elapsed = time.perf_counter() - start

            logger.info(
                f"Stage {i + 1}/{last + 1} {stage.name}: {len(candidates)} in, "
                f"{len(retained)} >= {threshold}, {len(survivors)} out ({elapsed:.3f}s)"
            )
            if reports is not None:
                reports.append(StageReport(
                    stage=stage.name,
                    input_count=len(candidates),
                    retained_count=len(retained),
                    output_count=len(survivors),
                    elapsed_seconds=elapsed,
                ))

            candidates = [s.document for s in survivors]

        return survivors

    async def score(self, query: Optional[str], documents: Documents) -> AsyncIterator[ScoredDocument]:
        """
        Run the cascade and yield the final top_m (document, score) pairs.

        Output is sorted by the last stage's score, highest first. An empty
        input (or a stage keeping nothing) yields nothing.
        """
        results = await self._cascade(
            query, documents, lambda stage, q, candidates: stage.score(q, candidates)
        )
        for result in results:
            yield result

    async def score_records(
        self,
        query: Optional[str],
        records: Records,
        text_of: TextAccessor,
    ) -> AsyncIterator[ScoredDocument]:
        """Run the cascade over structured records, yielding (record, score)."""
        if text_of is None:
            raise InvalidArgumentError("text_of accessor is required to score records")

        results = await self._cascade(
            query, records, lambda stage, q, candidates: stage.score_records(q, candidates, text_of)
        )
        for result in results:
            yield result

    async def run(self, query: Optional[str], documents: Documents) -> CascadeResult:
        """
        Run the cascade and return the final ranking with per-stage reports.

        Example:
            >>> result = await pipeline.run("kubernetes deployment", docs)
            >>> [(r.stage, r.input_count, r.output_count) for r in result.stages]
            [('BM25Ranker', 200, 20), ('LLMRanker', 20, 5)]
        """
        reports: List[StageReport] = []
        results = await self._cascade(
            query, documents, lambda stage, q, candidates: stage.score(q, candidates), reports
        )
        return CascadeResult(results=results, stages=reports)

    def get_model_info(self) -> dict:
        return {
            "name": self.name,
            "type": "cascade",
            "stages": [stage.get_model_info() for stage in self.stages],
            "config": self.config.model_dump(),
        }

    def close(self):
        """Close every stage."""
        for stage in self.stages:
            stage.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(stages={list(self.stages)!r}, config={self.config!r})"
