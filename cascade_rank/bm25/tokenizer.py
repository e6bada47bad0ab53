"""
Default tokenizer for BM25 text processing.

Any callable `(text) -> sequence of terms` can be plugged into the BM25
ranker; this module provides the built-in one.

Tokenization pipeline:
1. Lowercase conversion
2. Extract words (letters/digits, hyphens inside words preserved)
3. Filter stopwords (per language)
4. Filter pure numbers
5. Apply Snowball stemming ("architectures" → "architectur")
6. Return list of meaningful tokens

Empty, whitespace-only and symbol-only input yields an empty list.
"""

import re
from typing import Callable, List, Sequence

from .stemmer import SUPPORTED_LANGUAGES, get_stemmer

Tokenizer = Callable[[str], Sequence[str]]

# English stopwords (based on Elasticsearch/Lucene standard list)
ENGLISH_STOPWORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'but', 'by',
    'for', 'if', 'in', 'into', 'is', 'it',
    'no', 'not', 'of', 'on', 'or', 'such',
    'that', 'the', 'their', 'then', 'there', 'these',
    'they', 'this', 'to', 'was', 'will', 'with'
])

# French stopwords (articles, pronouns, prepositions, common auxiliaries)
FRENCH_STOPWORDS = frozenset([
    'a', 'à', 'au', 'aux', 'avec', 'ce', 'ces', 'cet', 'cette', 'dans',
    'de', 'des', 'du', 'elle', 'elles', 'en', 'est', 'et', 'être', 'il',
    'ils', 'je', 'la', 'le', 'les', 'leur', 'leurs', 'lui', 'ma', 'mais',
    'me', 'mes', 'mon', 'ne', 'nos', 'notre', 'nous', 'on', 'ont', 'ou',
    'où', 'par', 'pas', 'pour', 'qu', 'que', 'qui', 'sa', 'se', 'ses',
    'son', 'sont', 'sur', 'ta', 'te', 'tes', 'ton', 'tu', 'un', 'une',
    'vos', 'votre', 'vous', 'y'
])

STOPWORDS = {
    'english': ENGLISH_STOPWORDS,
    'french': FRENCH_STOPWORDS,
}

# Letters/digits with optional inner hyphens; underscore excluded
_WORD_PATTERN = re.compile(r'\b[^\W_]+(?:-[^\W_]+)*\b')
_NUMBER_PATTERN = re.compile(r'^[0-9-]+$')


def tokenize(text: str, language: str = "english") -> List[str]:
    """
    Tokenize text for BM25 scoring with stopword removal and stemming.

    Args:
        text: Input text to tokenize
        language: "english" or "french"

    Returns:
        List of lowercase stemmed tokens without stopwords

    Examples:
        >>> tokenize("Kubernetes-based deployment strategies!")
        ['kubernetes-bas', 'deploy', 'strategi']

        >>> tokenize("PostgreSQL 15.3 with pgvector")
        ['postgresql', 'pgvector']

        >>> tokenize("   ")
        []
    """
    if not text:
        return []

    stemmer = get_stemmer(language)
    stopwords = STOPWORDS[language.lower()]

    # French elision: "l'index" → "l index"
    tokens = _WORD_PATTERN.findall(text.lower().replace("'", " ").replace("’", " "))

    tokens = [
        t for t in tokens
        if t not in stopwords and not _NUMBER_PATTERN.match(t)
    ]

    return [stemmer.stem(t) for t in tokens]


def make_tokenizer(language: str = "english") -> Tokenizer:
    """
    Build a single-argument tokenizer bound to a language.

    Raises:
        ValueError: If the language is not supported
    """
    language = language.lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language: {language}. Valid options: {', '.join(SUPPORTED_LANGUAGES)}"
        )

    def _tokenize(text: str) -> List[str]:
        return tokenize(text, language)

    _tokenize.__name__ = f"tokenize_{language}"
    return _tokenize
