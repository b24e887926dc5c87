# media_matching/api/schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from media_matching.reporter_matching.models import (
    ArticleHit,
    ContactInfo,
    ReporterResult,
    ReporterSummary,
    StoryQuery,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MatchReportersRequest(_WireModel):
    """Payload sent by clients when asking for a reporter shortlist."""
    story_brief: Optional[str] = Field(
        None,
        alias="storyBrief",
        description="Story to pitch. Required; checked by the endpoint so a 400 is returned.",
    )
    outlet_types: List[str] = Field(default_factory=list, alias="outletTypes")
    geography: List[str] = Field(default_factory=list)
    target_publications: Optional[str] = Field(None, alias="targetPublications")
    competitors: Optional[str] = None
    limit: int = Field(15, ge=0, description="Maximum number of reporters to return.")
    include_justifications: bool = Field(
        False,
        alias="includeJustifications",
        description="Generate justifications inline instead of via the justification endpoint.",
    )

    def to_story_query(self) -> StoryQuery:
        return StoryQuery(
            story_brief=self.story_brief or "",
            outlet_types=list(self.outlet_types),
            geography=list(self.geography),
            target_publications=self.target_publications or None,
            competitors=self.competitors or None,
        )


class QueryEcho(_WireModel):
    story_brief: str = Field(..., alias="storyBrief")
    outlet_types: List[str] = Field(default_factory=list, alias="outletTypes")
    geography: List[str] = Field(default_factory=list)
    key_topics: List[str] = Field(default_factory=list, alias="keyTopics")


class MatchReportersResponse(_WireModel):
    """Response for the /api/reporters/match endpoint."""
    query: QueryEcho
    reporters: List[ReporterResult]
    total_articles_analyzed: int = Field(..., alias="totalArticlesAnalyzed")
    similar_articles: List[ArticleHit] = Field(default_factory=list, alias="similarArticles")


class JustificationRequest(_WireModel):
    """Already-ranked reporters that still need a justification."""
    story_brief: Optional[str] = Field(None, alias="storyBrief")
    reporters: List[ReporterSummary] = Field(default_factory=list)


class ReporterJustification(_WireModel):
    name: str
    outlet: str
    justification: str


class JustificationResponse(_WireModel):
    justifications: List[ReporterJustification]


class ContactSearchResponse(_WireModel):
    query: str
    results: List[ContactInfo]
    count: int


class ContactListResponse(_WireModel):
    reporters: List[ContactInfo]
    count: int


class ExportRequest(_WireModel):
    reporters: List[ReporterResult] = Field(default_factory=list)


class EmailExportResponse(_WireModel):
    email_string: str = Field(..., alias="emailString")
    count: int


class HealthResponse(_WireModel):
    status: str
    timestamp: str
    service: str
