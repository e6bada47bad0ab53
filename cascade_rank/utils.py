"""Utility functions for cascade-rank"""

import hashlib
from typing import AsyncIterable, AsyncIterator, Iterable, TypeVar, Union

T = TypeVar("T")


def fingerprint(text: Union[str, bytes]) -> str:
    """
    Calculate SHA256 fingerprint of a text blob

    Used as the TokenCache key: identical raw text always maps to the
    same entry, different text practically never collides.

    Args:
        text: Raw document text (str is UTF-8 encoded first, lone
            surrogates included)

    Returns:
        Hexadecimal hash string (64 characters)

    Examples:
        >>> fingerprint("the cat sat")
        'c7f2...'
    """
    if isinstance(text, str):
        text = text.encode("utf-8", "surrogatepass")
    return hashlib.sha256(text).hexdigest()


async def as_async_iter(items: Union[Iterable[T], AsyncIterable[T]]) -> AsyncIterator[T]:
    """
    Iterate a sync or async iterable as an async iterator.

    Lets every ranking entry point accept plain lists as well as
    async streams (e.g. results paged in from a vector store).
    """
    if hasattr(items, "__aiter__"):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


async def collect(items: Union[Iterable[T], AsyncIterable[T]]) -> list:
    """Materialize a sync or async iterable into a list."""
    if hasattr(items, "__aiter__"):
        return [item async for item in items]
    return list(items)
