# media_matching/reporter_matching/errors.py
from __future__ import annotations


class MatchingError(Exception):
    """Base class for failures raised while matching reporters to a story."""


class EmbeddingProviderError(MatchingError):
    """The embedding provider is unreachable or returned a vector of the wrong size."""


class SimilaritySearchError(MatchingError):
    """The vector store could not answer a nearest-neighbor query."""


class ContactNotFound(MatchingError):
    """
    No contact entry exists for a reporter name.

    Carries the normalized lookup key so callers can tell which key was tried.
    """

    def __init__(self, name: str, sanitized_name: str) -> None:
        super().__init__(f"Reporter not found: {name!r} (key={sanitized_name!r})")
        self.name = name
        self.sanitized_name = sanitized_name
