"""Unit test configuration - shared fixtures for isolated testing"""

import pytest

from stubs import CAT_CORPUS


@pytest.fixture
def cat_corpus():
    return list(CAT_CORPUS)


@pytest.fixture
def counting_tokenizer():
    """Whitespace tokenizer that counts its invocations."""
    calls = []

    def tokenizer(text):
        calls.append(text)
        return text.lower().split()

    tokenizer.calls = calls
    return tokenizer
