"""
BM25 (Okapi) scoring with corpus IDF and query term saturation.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula, per query term t present in the document:
    idf(t)  = ln(1 + (N - df(t) + 0.5) / (df(t) + 0.5))
    tf(t)   = f(t) × (k1 + 1) / (f(t) + k1 × (1 - b + b × dl/avgdl))
    qtf(t)  = qf(t) × (k3 + 1) / (qf(t) + k3)
    score   = Σ idf(t) × tf(t) × qtf(t)

Where:
    N     = number of documents in the corpus statistics
    df(t) = number of documents containing t
    f(t)  = occurrences of t in the document
    qf(t) = occurrences of t in the query
    dl    = document length (tokens), avgdl = average document length
    k1 = 1.5, b = 0.75, k3 = 1000 by default

Terms absent from the document or from the corpus contribute 0. An empty
corpus (avgdl = 0) disables length normalization instead of dividing by zero.
"""

import math
from typing import Mapping, Optional

from ..config import BM25Parameters
from .statistics import CorpusStatistics

DEFAULT_PARAMETERS = BM25Parameters()


def idf(term: str, statistics: CorpusStatistics) -> float:
    """
    Inverse document frequency of a term (0.0 when the corpus lacks it).

    The "1 +" inside the log keeps the value positive for every df in [1, N].
    """
    df = statistics.document_frequency_of(term)
    if df <= 0:
        return 0.0
    n = statistics.total_documents
    return math.log(1 + (n - df + 0.5) / (df + 0.5))


def length_normalization(doc_length: int, statistics: CorpusStatistics, params: BM25Parameters) -> float:
    """The (1 - b + b × dl/avgdl) factor; 1.0 for an empty corpus."""
    avgdl = statistics.average_document_length
    if avgdl <= 0:
        return 1.0
    return 1 - params.b + params.b * doc_length / avgdl


def bm25_score(
    query_term_frequency: Mapping[str, int],
    doc_term_frequency: Mapping[str, int],
    doc_length: int,
    statistics: CorpusStatistics,
    params: Optional[BM25Parameters] = None,
) -> float:
    """
    Compute the BM25 score of one document for one query.

    Args:
        query_term_frequency: {term: count} of the tokenized query
        doc_term_frequency: {term: count} of the tokenized document
        doc_length: Total number of tokens in the document
        statistics: Corpus statistics (df, N, avgdl)
        params: BM25Parameters (default k1=1.5, b=0.75, k3=1000)

    Returns:
        Non-negative score (higher = more relevant)

    Example:
        >>> stats = CorpusStatistics({"cat": 1, "sat": 1}, total_documents=3, average_document_length=2.0)
        >>> bm25_score({"cat": 1}, {"cat": 1, "sat": 1}, 2, stats) > 0
        True
    """
    if not query_term_frequency or not doc_term_frequency:
        return 0.0

    params = params or DEFAULT_PARAMETERS
    k1, k3 = params.k1, params.k3
    norm = length_normalization(doc_length, statistics, params)

    score = 0.0
    for term, qf in query_term_frequency.items():
        f = doc_term_frequency.get(term, 0)
        if f <= 0 or qf <= 0:
            continue

        term_idf = idf(term, statistics)
        if term_idf == 0.0:
            continue

        tf = f * (k1 + 1) / (f + k1 * norm)
        qtf = qf * (k3 + 1) / (qf + k3)
        score += term_idf * tf * qtf

    return score
