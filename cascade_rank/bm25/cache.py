"""
Tokenization cache for BM25 scoring.

Memoizes the term sequence and term-frequency map of a text blob, keyed by
a content fingerprint, so a document is tokenized once no matter how many
queries score it.

One cache is owned by each ranker (created with it, cleared on demand,
dropped with it); nothing is shared through module state. Several rankers
may still be handed the same cache explicitly.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ..utils import fingerprint
from .tokenizer import Tokenizer, tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedDocument:
    """Tokenized form of one raw text"""
    tokens: Tuple[str, ...]
    term_frequency: Mapping[str, int]
    length: int

    @classmethod
    def from_tokens(cls, tokens) -> "ProcessedDocument":
        tokens = tuple(tokens)
        return cls(
            tokens=tokens,
            term_frequency=MappingProxyType(dict(Counter(tokens))),
            length=len(tokens),
        )


EMPTY_DOCUMENT = ProcessedDocument.from_tokens(())


class TokenCache:
    """
    Fingerprint-keyed cache of ProcessedDocument entries.

    Thread-safe: the mapping is guarded by a lock, tokenization runs outside
    it. Two writers racing on the same key store equal values, so whichever
    lands last is fine. No eviction: entries live until clear().
    """

    def __init__(self, tokenizer: Tokenizer = tokenize):
        if tokenizer is None:
            raise ValueError("tokenizer is required")
        self.tokenizer = tokenizer
        self._entries: Dict[str, ProcessedDocument] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Optional[str], raw_text: str) -> ProcessedDocument:
        """
        Return the cached entry for `key`, tokenizing `raw_text` on a miss.

        Args:
            key: Cache key; None means fingerprint(raw_text)
            raw_text: Text handed to the tokenizer on a miss

        Returns:
            ProcessedDocument (tokens, term frequencies, length)

        Raises:
            Whatever the tokenizer raises (callers decide how to degrade)
        """
        if key is None:
            key = fingerprint(raw_text or "")

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
                return entry
            self.misses += 1

        entry = ProcessedDocument.from_tokens(self.tokenizer(raw_text or ""))

        with self._lock:
            self._entries[key] = entry
        return entry

    def get(self, raw_text: str) -> ProcessedDocument:
        """Shorthand for get_or_compute keyed by the text fingerprint."""
        return self.get_or_compute(None, raw_text)

    def clear(self) -> None:
        """Discard all entries immediately."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.debug(f"Token cache cleared ({count} entries dropped)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
