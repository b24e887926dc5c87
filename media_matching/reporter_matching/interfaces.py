# media_matching/reporter_matching/interfaces.py
"""
Collaborator contracts consumed by the matching core.

The core never imports a concrete vector store, embedding model, contact
directory or LLM client; it only relies on these call shapes.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Union

from .models import ArticleHit, ContactInfo


class EmbeddingProvider(Protocol):
    """Turns text into fixed-dimension vectors."""

    dimensions: int

    def embed(self, text: Union[str, Sequence[str]]) -> List[List[float]]:
        ...


class SimilaritySearchClient(Protocol):
    """Nearest-neighbor search returning hits with inline metadata."""

    def search(self, vector: Sequence[float], top_k: int) -> List[ArticleHit]:
        ...


class ContactResolver(Protocol):
    """Maps a reporter display name to contact details, or None."""

    def resolve(self, name: str) -> Optional[ContactInfo]:
        ...


class TextGenerationProvider(Protocol):
    """Short text completion. Must raise instead of returning partial text."""

    def complete(self, prompt: str, max_tokens: int) -> str:
        ...

    async def acomplete(self, prompt: str, max_tokens: int) -> str:
        ...
