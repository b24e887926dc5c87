# media_matching/reporter_matching/reporter_aggregator.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .interfaces import ContactResolver
from .models import ArticleHit, RecentArticle, ReporterResult

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
DEFAULT_LIMIT = 15
RECENT_ARTICLES_LIMIT = 3
# Only the second-best article contributes to the bonus.
BONUS_WINDOW = 1
BONUS_DIVISOR = 1000.0


def round_half_up(value: float) -> int:
    """82.5 -> 83, -2.5 -> -2. Python's round() would give 82 for the first."""
    return int(math.floor(value + 0.5))


def _clamp_score(score: int) -> int:
    return max(0, min(100, score))


def distance_to_score(distance: float) -> float:
    """Similarity percentage for a distance. Distances above 1 go negative."""
    return (1.0 - distance) * 100.0


def compute_composite_score(distances: Sequence[float]) -> Tuple[int, float]:
    """
    Score a reporter from the distances of their matching articles.

    The best article gives the base score; the second-best one adds a
    diminishing bonus of score**2 / 1000 (at most 10 points). Returns
    (match_score, final_distance); match_score is clamped to [0, 100] while
    final_distance is left unclamped so irrelevant reporters still rank last.
    """
    if not distances:
        raise ValueError("A reporter needs at least one article to be scored.")

    ordered = sorted(distances)
    base_score = distance_to_score(ordered[0])

    if len(ordered) == 1:
        final_distance = ordered[0]
    else:
        bonus = sum(
            distance_to_score(d) ** 2 / BONUS_DIVISOR
            for d in ordered[1 : 1 + BONUS_WINDOW]
        )
        final_score = min(100, round_half_up(base_score + bonus))
        final_distance = 1.0 - final_score / 100.0

    match_score = _clamp_score(round_half_up(distance_to_score(final_distance)))
    return match_score, final_distance


@dataclass
class ReporterAggregate:
    """Accumulates every hit belonging to one (author, outlet) pair."""

    name: str
    outlet: str
    articles: List[RecentArticle] = field(default_factory=list)
    total_articles: int = 0
    lowest_distance: float = math.inf
    email: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None

    def add(self, hit: ArticleHit) -> None:
        meta = hit.metadata
        self.articles.append(
            RecentArticle(
                title=meta.title,
                url=meta.url,
                published_at=meta.published_at,
                distance=hit.distance,
                description=meta.description,
            )
        )
        self.total_articles += 1
        self.lowest_distance = min(self.lowest_distance, hit.distance)

    def sorted_articles(self) -> List[RecentArticle]:
        return sorted(self.articles, key=lambda a: a.distance)


@dataclass
class _ScoredAggregate:
    aggregate: ReporterAggregate
    match_score: int
    final_distance: float
    ordered_articles: List[RecentArticle]


def _author_and_outlet(hit: ArticleHit) -> Tuple[str, str]:
    meta = hit.metadata
    author = meta.author or UNKNOWN
    source = meta.source or {}
    outlet = meta.source_name or source.get("name") or UNKNOWN
    return author, outlet


def _is_unknown(author: str) -> bool:
    return author == UNKNOWN or not author.strip()


class ReporterAggregator:
    """
    Groups similarity-search hits by reporter, scores every reporter and
    returns a ranked list with justifications left empty.

    Pure function of its input apart from the contact lookups, which happen
    once per distinct reporter.
    """

    def __init__(
        self,
        contact_resolver: Optional[ContactResolver] = None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._contact_resolver = contact_resolver
        self._default_limit = int(default_limit)

    def _new_aggregate(self, author: str, outlet: str) -> ReporterAggregate:
        aggregate = ReporterAggregate(name=author, outlet=outlet)
        if self._contact_resolver is None:
            return aggregate

        contact = self._contact_resolver.resolve(author)
        if contact is not None:
            logger.debug("Contact info found for %s", author)
            aggregate.email = contact.email
            aggregate.linkedin = contact.linkedin
            aggregate.twitter = contact.twitter
        else:
            logger.debug("No contact info found for %s", author)
        return aggregate

    def group_hits(
        self,
        hits: Iterable[Union[ArticleHit, Mapping[str, Any]]],
    ) -> List[ReporterAggregate]:
        """Steps 1-3: filter unknown authors and upsert one aggregate per reporter."""
        by_key: Dict[str, ReporterAggregate] = {}
        skipped = 0

        for raw in hits:
            hit = raw if isinstance(raw, ArticleHit) else ArticleHit.model_validate(raw)
            author, outlet = _author_and_outlet(hit)
            if _is_unknown(author):
                skipped += 1
                continue

            key = f"{author}|{outlet}"
            aggregate = by_key.get(key)
            if aggregate is None:
                aggregate = self._new_aggregate(author, outlet)
                by_key[key] = aggregate
            aggregate.add(hit)

        logger.debug(
            "Grouped hits into %d reporters (%d hits without a known author skipped).",
            len(by_key),
            skipped,
        )
        return list(by_key.values())

    @staticmethod
    def _score(aggregate: ReporterAggregate) -> _ScoredAggregate:
        ordered = aggregate.sorted_articles()
        match_score, final_distance = compute_composite_score([a.distance for a in ordered])
        return _ScoredAggregate(
            aggregate=aggregate,
            match_score=match_score,
            final_distance=final_distance,
            ordered_articles=ordered,
        )

    def aggregate(
        self,
        hits: Iterable[Union[ArticleHit, Mapping[str, Any]]],
        limit: Optional[int] = None,
    ) -> List[ReporterResult]:
        limit = self._default_limit if limit is None else int(limit)
        if limit < 0:
            raise ValueError("limit must not be negative.")

        scored = [self._score(a) for a in self.group_hits(hits)]
        # sorted() is stable: equal distances keep first-seen order.
        ranked = sorted(scored, key=lambda s: s.final_distance)[:limit]

        results = [
            ReporterResult(
                rank=index + 1,
                name=item.aggregate.name,
                outlet=item.aggregate.outlet,
                match_score=item.match_score,
                justification=None,
                recent_articles=item.ordered_articles[:RECENT_ARTICLES_LIMIT],
                total_relevant_articles=item.aggregate.total_articles,
                email=item.aggregate.email,
                linkedin=item.aggregate.linkedin,
                twitter=item.aggregate.twitter,
            )
            for index, item in enumerate(ranked)
        ]

        logger.info(
            "Ranked %d reporters out of %d candidates (limit=%d).",
            len(results),
            len(scored),
            limit,
        )
        return results
