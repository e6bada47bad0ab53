"""
Cross-encoder ranking stage (sentence-transformers).

Each (query, document) pair is scored jointly by a HuggingFace cross-encoder.
The model is loaded on the first scored batch and kept until close().
Raw logits are mapped through a sigmoid, so scores lie in [0, 1] and
share the cascade threshold scale with the LLM judge.
"""

import asyncio
import logging
from typing import List, Optional

import numpy as np

from ..errors import InvalidArgumentError
from ..utils import as_async_iter
from .base import BaseRanker, Documents, ScoredDocument, is_empty_query

logger = logging.getLogger(__name__)


class CrossEncoderRanker(BaseRanker):
    """
    Cross-encoder ranking stage.

    Documents are scored in batches of `batch_size`; each batch is one
    model call run off the event loop. Inference failures score the whole
    batch 0.0.
    """

    def __init__(self, model_name: str = "cross-encoder/ms-marco-MiniLM-L-12-v2", batch_size: int = 32):
        """
        Args:
            model_name: Cross-encoder checkpoint on the HuggingFace hub
                (e.g. BAAI/bge-reranker-base for higher quality, slower)
            batch_size: Documents per model call
        """
        if batch_size < 1:
            raise InvalidArgumentError(f"batch_size must be >= 1, got {batch_size}")
        self.model_name = model_name
        self.batch_size = batch_size
        self.model = None  # Lazy loading
        logger.info(f"CrossEncoderRanker initialized (model will load on first use): {model_name}")

    def _ensure_loaded(self):
        """Load the cross-encoder if this stage has not loaded it yet."""
        if self.model is None:
            logger.info(f"Loading cross-encoder model: {self.model_name}")
            try:
                from sentence_transformers import CrossEncoder
                self.model = CrossEncoder(self.model_name)
                logger.info(f"Cross-encoder ready: {self.model_name}")
            except Exception as e:
                logger.error(f"Failed to load model {self.model_name}: {e}")
                raise

    def _predict(self, query: str, documents: List[str]) -> List[float]:
        self._ensure_loaded()
        pairs = [(query, doc if isinstance(doc, str) else "") for doc in documents]
        logits = np.asarray(self.model.predict(pairs, show_progress_bar=False), dtype=float).reshape(-1)
        if logits.shape[0] != len(documents):
            raise ValueError(f"Model returned {logits.shape[0]} scores for {len(documents)} documents")
        with np.errstate(over="ignore"):
            scores = 1.0 / (1.0 + np.exp(-logits))
        # NaN would sort unpredictably downstream
        return np.nan_to_num(scores, nan=0.0).tolist()

    async def _score_batch(self, query: str, batch: List[str]) -> List[float]:
        try:
            return await asyncio.to_thread(self._predict, query, batch)
        except Exception as e:
            logger.error(f"Cross-encoder inference failed for {len(batch)} documents, using 0.0: {e}")
            return [0.0] * len(batch)

    async def score(self, query: Optional[str], documents: Documents):
        empty = is_empty_query(query)
        batch: List[str] = []

        async for document in as_async_iter(documents):
            if empty:
                yield ScoredDocument(document, 0.0)
                continue

            batch.append(document)
            if len(batch) >= self.batch_size:
                for doc, score in zip(batch, await self._score_batch(query, batch)):
                    yield ScoredDocument(doc, score)
                batch = []

        if batch:
            for doc, score in zip(batch, await self._score_batch(query, batch)):
                yield ScoredDocument(doc, score)

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "local_cross_encoder",
            "provider": "sentence-transformers",
            "loaded": self.model is not None
        }

    def close(self):
        """Release the loaded model."""
        if self.model is not None:
            logger.info(f"Releasing cross-encoder: {self.model_name}")
            del self.model
            self.model = None

    def __repr__(self) -> str:
        return f"CrossEncoderRanker(model_name={self.model_name!r})"
