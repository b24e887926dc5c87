# tests/conftest.py
import asyncio
from typing import Dict, List, Optional

import pytest

from media_matching.reporter_matching.models import ArticleHit, ContactInfo


def make_hit(
    author: Optional[str],
    outlet: Optional[str],
    distance: float,
    title: str = "Untitled",
    url: Optional[str] = None,
    published_at: Optional[str] = None,
    description: Optional[str] = None,
) -> ArticleHit:
    """Build an ArticleHit the way the vector store returns it."""
    metadata = {
        "author": author,
        "sourceName": outlet,
        "title": title,
        "url": url or f"https://example.com/{title.lower().replace(' ', '-')}",
        "publishedAt": published_at,
        "description": description,
    }
    return ArticleHit(
        key=f"{author}-{title}",
        distance=distance,
        metadata={k: v for k, v in metadata.items() if v is not None},
    )


class FakeEmbeddingProvider:
    def __init__(self, dimensions: int = 3, vector: Optional[List[float]] = None, error: Optional[Exception] = None):
        self.dimensions = dimensions
        self.vector = vector if vector is not None else [0.1] * dimensions
        self.error = error
        self.calls: List[str] = []

    def embed(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return [list(self.vector)]


class FakeSearchClient:
    def __init__(self, hits: Optional[List[ArticleHit]] = None, error: Optional[Exception] = None):
        self.hits = hits or []
        self.error = error
        self.calls: List[tuple] = []

    def search(self, vector, top_k):
        self.calls.append((list(vector), top_k))
        if self.error is not None:
            raise self.error
        return list(self.hits)


class FakeContactResolver:
    def __init__(self, contacts: Optional[Dict[str, ContactInfo]] = None):
        self.contacts = contacts or {}
        self.calls: List[str] = []

    def resolve(self, name):
        self.calls.append(name)
        return self.contacts.get(name)


class FakeTextGenerator:
    """
    Async text generator returning canned answers.

    `delays` and `errors` are keyed by a substring of the prompt (the
    reporter's name appears in every prompt).
    """

    def __init__(self, delays: Optional[Dict[str, float]] = None, errors: Optional[Dict[str, Exception]] = None, reply: str = "Strong match for {name}."):
        self.delays = delays or {}
        self.errors = errors or {}
        self.reply = reply
        self.prompts: List[str] = []
        self.active = 0
        self.max_active = 0

    def _name_in(self, prompt: str) -> str:
        for line in prompt.splitlines():
            if line.startswith("Reporter: "):
                return line[len("Reporter: "):]
        return ""

    def complete(self, prompt, max_tokens):
        return self.reply.format(name=self._name_in(prompt))

    async def acomplete(self, prompt, max_tokens):
        self.prompts.append(prompt)
        name = self._name_in(prompt)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(name, 0))
            if name in self.errors:
                raise self.errors[name]
            return self.reply.format(name=name)
        finally:
            self.active -= 1


@pytest.fixture
def sample_hits() -> List[ArticleHit]:
    return [
        make_hit("Jane Doe", "Wired", 0.2, title="Battery breakthrough", published_at="2026-10-16T09:00:00Z"),
        make_hit("John Roe", "Reuters", 0.3, title="Supply chain update"),
        make_hit("Jane Doe", "Wired", 0.5, title="EV charging"),
        make_hit("Unknown", "Wired", 0.1, title="Wire story"),
        make_hit("Ann Poe", "TechCrunch", 0.6, title="Seed rounds"),
    ]
