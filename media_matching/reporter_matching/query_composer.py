# media_matching/reporter_matching/query_composer.py
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .errors import EmbeddingProviderError
from .interfaces import EmbeddingProvider
from .models import StoryQuery

logger = logging.getLogger(__name__)

# Topical keywords appended for each outlet-type tag, in this order.
OUTLET_TYPE_KEYWORDS: Dict[str, str] = {
    "national-business-tech": "technology business innovation enterprise startups venture capital",
    "trade-specialist": "industry trade specialist vertical sector analysis",
    "regional": "regional local community metro area",
    "newsletters": "newsletter subscriber publication analysis",
    "podcasts": "podcast audio interview discussion",
}

# The web client sends "national-tech-business" for the first tag.
OUTLET_TYPE_ALIASES: Dict[str, str] = {
    "national-tech-business": "national-business-tech",
}

KEY_TOPIC_KEYWORDS: List[str] = [
    "battery", "silicon", "EV", "electric vehicle", "supply chain", "climate",
    "robotics", "automation", "restaurant", "labor", "AI", "machine learning",
    "fintech", "mortgage", "AWS", "cloud", "infrastructure", "compliance",
    "funding", "seed", "series", "venture", "investment",
    "startup", "technology", "innovation", "breakthrough",
]

MAX_KEY_TOPICS = 5


class QueryComposer:
    """
    Turns a StoryQuery into one search string and its embedding.

    Part order encodes relative importance for the embedding model: the brief
    is repeated first, then outlet keywords, geography, target publications
    and competitors.
    """

    def __init__(self, embedding_provider: EmbeddingProvider) -> None:
        self._embedding_provider = embedding_provider

    @staticmethod
    def outlet_type_context(outlet_types: Sequence[str]) -> str:
        selected = {OUTLET_TYPE_ALIASES.get(tag, tag) for tag in outlet_types}
        contexts = [
            keywords
            for tag, keywords in OUTLET_TYPE_KEYWORDS.items()
            if tag in selected
        ]
        return " ".join(contexts)

    @classmethod
    def compose_query_text(cls, story_query: StoryQuery) -> str:
        brief = story_query.story_brief or ""
        if not brief.strip():
            raise ValueError("Story brief must not be empty.")

        parts: List[str] = [brief, brief]

        if story_query.outlet_types:
            outlet_context = cls.outlet_type_context(story_query.outlet_types)
            if outlet_context:
                parts.append(outlet_context)

        if story_query.geography:
            parts.append(f"Geographic focus: {', '.join(story_query.geography)}")

        if story_query.target_publications:
            parts.append(
                f"Specific publications to focus on: {story_query.target_publications}"
            )

        if story_query.competitors:
            parts.append(f"Competitors or other announcements: {story_query.competitors}")

        return ", ".join(parts)

    def generate_query_embedding(self, story_query: StoryQuery) -> List[float]:
        query_text = self.compose_query_text(story_query)
        logger.info("Query text composed (length=%d chars).", len(query_text))
        logger.debug("Query text: %s", query_text)

        try:
            embeddings = self._embedding_provider.embed(query_text)
        except EmbeddingProviderError:
            raise
        except Exception as e:
            logger.exception("Embedding provider failed for query text.")
            raise EmbeddingProviderError(f"Failed to embed query text: {e}") from e

        if not embeddings:
            raise EmbeddingProviderError("Embedding provider returned no vectors.")

        vector = list(embeddings[0])
        expected = getattr(self._embedding_provider, "dimensions", None)
        if expected is not None and len(vector) != int(expected):
            logger.error(
                "Query vector has %d dimensions, index expects %d.",
                len(vector),
                expected,
            )
            raise EmbeddingProviderError(
                f"Embedding dimension mismatch: got {len(vector)}, expected {expected}."
            )

        logger.info("Generated query embedding (%d dimensions).", len(vector))
        return vector


def extract_key_topics(story_brief: str) -> List[str]:
    """Keywords from a fixed list found in the brief, for display only."""
    lowered = (story_brief or "").lower()
    found = [keyword for keyword in KEY_TOPIC_KEYWORDS if keyword.lower() in lowered]
    return found[:MAX_KEY_TOPICS]
