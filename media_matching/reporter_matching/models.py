# media_matching/reporter_matching/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)


class StoryQuery(_WireModel):
    """Structured story brief submitted by a user. Immutable once built."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    story_brief: str = Field(..., alias="storyBrief", description="Story to pitch.")
    outlet_types: List[str] = Field(default_factory=list, alias="outletTypes")
    geography: List[str] = Field(default_factory=list)
    target_publications: Optional[str] = Field(None, alias="targetPublications")
    competitors: Optional[str] = None


class ArticleMetadata(_WireModel):
    """Denormalized article fields stored next to each embedding."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    author: Optional[str] = None
    source_id: Optional[str] = Field(None, alias="sourceId")
    source_name: Optional[str] = Field(None, alias="sourceName")
    source: Optional[Dict[str, Any]] = None
    title: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[str] = Field(None, alias="publishedAt")
    description: Optional[str] = None


class ArticleHit(_WireModel):
    """One similarity-search result. Lower distance means more similar."""

    key: Optional[str] = None
    distance: float
    metadata: ArticleMetadata = Field(default_factory=ArticleMetadata)


class ArticleReference(_WireModel):
    """Article as quoted back by clients; carries no search distance."""

    title: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[str] = Field(None, alias="publishedAt")
    description: Optional[str] = None


class RecentArticle(ArticleReference):
    distance: float


class ContactInfo(_WireModel):
    name: str
    email: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None


class ReporterResult(_WireModel):
    """Final, ranked reporter record returned to clients."""

    rank: int
    name: str
    outlet: str
    match_score: int = Field(..., alias="matchScore", ge=0, le=100)
    justification: Optional[str] = None
    recent_articles: List[RecentArticle] = Field(default_factory=list, alias="recentArticles")
    total_relevant_articles: int = Field(..., alias="totalRelevantArticles")
    email: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None


class ReporterSummary(_WireModel):
    """
    Compact reporter description used to request a justification after the
    ranking has already been returned.
    """

    name: str
    outlet: str
    article_count: int = Field(1, alias="articleCount", ge=0)
    match_score: Optional[int] = Field(None, alias="matchScore")
    recent_articles: List[ArticleReference] = Field(default_factory=list, alias="recentArticles")

    @classmethod
    def from_result(cls, result: ReporterResult) -> "ReporterSummary":
        return cls(
            name=result.name,
            outlet=result.outlet,
            article_count=result.total_relevant_articles,
            match_score=result.match_score,
            recent_articles=[
                ArticleReference(
                    title=a.title,
                    url=a.url,
                    published_at=a.published_at,
                    description=a.description,
                )
                for a in result.recent_articles[:3]
            ],
        )
