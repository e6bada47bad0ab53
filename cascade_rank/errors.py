"""Exceptions raised by cascade-rank."""


class InvalidArgumentError(ValueError):
    """A required collaborator is missing or malformed (raised at construction)."""


class JudgeResponseError(ValueError):
    """External relevance judge returned a reply that cannot be parsed."""
