"""
Snowball stemmers (via NLTK), one per supported language.

Snowball is the improved Porter2 family also used by Elasticsearch,
Solr and Lucene:
- "architectures" → "architectur"
- "strategies" → "strategi"
- "running" → "run"
"""

from functools import lru_cache

from nltk.stem.snowball import SnowballStemmer

SUPPORTED_LANGUAGES = ("english", "french")


@lru_cache(maxsize=None)
def get_stemmer(language: str = "english") -> SnowballStemmer:
    """
    Return the shared stemmer for a language (created once, reusable).

    Raises:
        ValueError: If the language is not supported
    """
    language = language.lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language: {language}. Valid options: {', '.join(SUPPORTED_LANGUAGES)}"
        )
    return SnowballStemmer(language)


def stem(word: str, language: str = "english") -> str:
    """
    Stem a single word using Snowball algorithm.

    Examples:
        >>> stem("architectures")
        'architectur'
        >>> stem("searching")
        'search'
        >>> stem("maisons", "french")
        'maison'
    """
    return get_stemmer(language).stem(word)
