"""
BM25 (Best Match 25) relevance scoring.

Components:
- tokenizer: Default text tokenization (stopwords + Snowball stemming)
- cache: Fingerprint-keyed tokenization cache (TokenCache)
- statistics: Corpus-wide document frequencies and average length
- scorer: Pure BM25 scoring function with IDF and query term saturation
- selector: Bounded streaming top-N selection

Statistics are computed once per corpus and reused across queries, so a
candidate stream can be scored in a single pass.
"""

from .tokenizer import tokenize, make_tokenizer, Tokenizer
from .stemmer import stem
from .cache import TokenCache, ProcessedDocument
from .statistics import CorpusStatistics, compute_corpus_statistics, compute_corpus_statistics_async
from .scorer import bm25_score, idf
from .selector import TopNSelector

__all__ = [
    "tokenize",
    "make_tokenizer",
    "Tokenizer",
    "stem",
    "TokenCache",
    "ProcessedDocument",
    "CorpusStatistics",
    "compute_corpus_statistics",
    "compute_corpus_statistics_async",
    "bm25_score",
    "idf",
    "TopNSelector",
]
