# media_matching/reporter_matching/graph.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from .config_loader import MatchingConfig
from .contact_resolver import ContactDirectory
from .interfaces import ContactResolver, SimilaritySearchClient
from .justification_enricher import JustificationEnricher
from .models import ArticleHit, ReporterResult, StoryQuery
from .query_composer import QueryComposer, extract_key_topics
from .reporter_aggregator import DEFAULT_LIMIT, ReporterAggregator
from .text_generation import GroqTextGenerator

logger = logging.getLogger(__name__)


class MatchState(TypedDict, total=False):
    """
    Shared state flowing through the matching graph.
    """
    story_query: StoryQuery
    limit: int
    include_justifications: bool
    query_vector: List[float]
    hits: List[ArticleHit]
    reporters: List[ReporterResult]


@dataclass
class MatchResult:
    story_query: StoryQuery
    key_topics: List[str]
    reporters: List[ReporterResult] = field(default_factory=list)
    hits: List[ArticleHit] = field(default_factory=list)

    @property
    def total_articles_analyzed(self) -> int:
        return len(self.hits)


def _run_sync(coro):
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    raise RuntimeError(
        "An asyncio event loop is already running. "
        "Use ReporterMatchingPipeline.amatch() instead."
    )


class ReporterMatchingPipeline:
    """
    Orchestrates one match request:

        embed_query -> search -> aggregate -> [enrich] -> END

    The enrichment node only runs when justifications were requested and an
    enricher is configured; otherwise reporters come back with
    justification=None so they can be enriched by a later request.
    Collaborator failures propagate; a request never returns a partial ranking.
    """

    def __init__(
        self,
        query_composer: QueryComposer,
        search_client: SimilaritySearchClient,
        aggregator: ReporterAggregator,
        enricher: Optional[JustificationEnricher] = None,
        search_top_k: int = 100,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.query_composer = query_composer
        self.search_client = search_client
        self.aggregator = aggregator
        self.enricher = enricher
        self.search_top_k = int(search_top_k)
        self.default_limit = int(default_limit)
        self._workflow = self.build_graph()

    # Nodes (embedding and search run in worker threads)
    async def _embed_query_node(self, state: MatchState) -> Dict[str, Any]:
        vector = await asyncio.to_thread(
            self.query_composer.generate_query_embedding, state["story_query"]
        )
        return {"query_vector": vector}

    async def _search_node(self, state: MatchState) -> Dict[str, Any]:
        hits = await asyncio.to_thread(
            self.search_client.search, state["query_vector"], self.search_top_k
        )
        logger.info("Found %d similar articles.", len(hits))
        return {"hits": hits}

    def _aggregate_node(self, state: MatchState) -> Dict[str, Any]:
        reporters = self.aggregator.aggregate(state.get("hits", []), state.get("limit"))
        return {"reporters": reporters}

    async def _enrich_node(self, state: MatchState) -> Dict[str, Any]:
        reporters = await self.enricher.enrich(state["reporters"], state["story_query"])
        return {"reporters": reporters}

    def _route_after_aggregate(self, state: MatchState) -> str:
        if self.enricher is None or not state.get("include_justifications"):
            return "end"
        if not state.get("reporters"):
            return "end"
        return "enrich"

    def build_graph(self):
        """
        Build and compile the matching graph.
        """
        logger.debug("Building LangGraph pipeline: embed_query -> search -> aggregate -> [enrich]")

        graph = StateGraph(MatchState)
        graph.add_node("embed_query", self._embed_query_node)
        graph.add_node("search", self._search_node)
        graph.add_node("aggregate", self._aggregate_node)
        graph.add_node("enrich", self._enrich_node)

        graph.set_entry_point("embed_query")
        graph.add_edge("embed_query", "search")
        graph.add_edge("search", "aggregate")
        graph.add_conditional_edges(
            "aggregate",
            self._route_after_aggregate,
            {"enrich": "enrich", "end": END},
        )
        graph.add_edge("enrich", END)

        return graph.compile()

    # Public API
    async def amatch(
        self,
        story_query: StoryQuery,
        limit: Optional[int] = None,
        include_justifications: bool = False,
    ) -> MatchResult:
        if not (story_query.story_brief or "").strip():
            raise ValueError("Story brief is required")

        limit = self.default_limit if limit is None else int(limit)
        logger.info(
            "Matching reporters for story (brief_length=%d, limit=%d, justifications=%s)",
            len(story_query.story_brief),
            limit,
            include_justifications,
        )

        initial_state: MatchState = {
            "story_query": story_query,
            "limit": limit,
            "include_justifications": include_justifications,
        }
        final_state: MatchState = await self._workflow.ainvoke(initial_state)

        result = MatchResult(
            story_query=story_query,
            key_topics=extract_key_topics(story_query.story_brief),
            reporters=final_state.get("reporters", []),
            hits=final_state.get("hits", []),
        )
        logger.info(
            "Matched %d reporters from %d articles.",
            len(result.reporters),
            result.total_articles_analyzed,
        )
        return result

    def match(
        self,
        story_query: StoryQuery,
        limit: Optional[int] = None,
        include_justifications: bool = False,
    ) -> MatchResult:
        """Blocking convenience wrapper around amatch() for scripts."""
        return _run_sync(self.amatch(story_query, limit, include_justifications))


def build_enricher(config: MatchingConfig) -> JustificationEnricher:
    llm_cfg = config.get_llm_config()
    enrichment_cfg = config.get_enrichment_config()
    return JustificationEnricher(
        text_generator=GroqTextGenerator(config),
        max_tokens=int(llm_cfg.get("max_tokens", 150)),
        max_concurrency=int(enrichment_cfg.get("max_concurrency", 8)),
        task_timeout=float(enrichment_cfg.get("task_timeout_seconds", 25)),
        batch_timeout=float(enrichment_cfg.get("batch_timeout_seconds", 60)),
    )


def build_pipeline(
    config: Optional[MatchingConfig] = None,
    contact_resolver: Optional[ContactResolver] = None,
) -> ReporterMatchingPipeline:
    """Wire the production collaborators from configuration/base.yaml."""
    # Deferred: chromadb and sentence-transformers are heavy imports.
    from media_matching.vector_database.vector_database import vector_store_from_config

    cfg = config or MatchingConfig()
    matching_cfg = cfg.get_matching_config()
    default_limit = int(matching_cfg.get("default_limit", DEFAULT_LIMIT))

    vector_store = vector_store_from_config(cfg)
    contacts = contact_resolver or ContactDirectory.from_yaml(
        cfg.resolve_path("contacts_path", "configuration/reporters_contacts.yaml")
    )

    return ReporterMatchingPipeline(
        query_composer=QueryComposer(vector_store),
        search_client=vector_store,
        aggregator=ReporterAggregator(contacts, default_limit=default_limit),
        enricher=build_enricher(cfg),
        search_top_k=int(matching_cfg.get("search_top_k", 100)),
        default_limit=default_limit,
    )
