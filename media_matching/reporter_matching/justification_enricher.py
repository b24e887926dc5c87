# media_matching/reporter_matching/justification_enricher.py
from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .interfaces import TextGenerationProvider
from .models import ReporterResult, ReporterSummary, StoryQuery

logger = logging.getLogger(__name__)

MAX_PROMPT_ARTICLES = 3
SECONDS_PER_DAY = 60 * 60 * 24


def _parse_published_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable publishedAt value: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def fallback_justification(summary: ReporterSummary, now: Optional[datetime] = None) -> str:
    """
    Rule-based justification built only from local data.

    Used whenever the text-generation provider fails for a reporter.
    """
    points: List[str] = []

    if summary.article_count > 1:
        points.append(f"Wrote {summary.article_count} highly relevant articles")
    else:
        points.append("Wrote on highly relevant topic")

    most_relevant = summary.recent_articles[0] if summary.recent_articles else None
    published = _parse_published_at(most_relevant.published_at) if most_relevant else None
    if published is not None:
        now = now or datetime.now(timezone.utc)
        days_ago = math.floor((now - published).total_seconds() / SECONDS_PER_DAY)
        if days_ago < 7:
            points.append("Published relevant coverage within the last week")
        elif days_ago < 30:
            points.append(f"Recently covered similar topics ({days_ago} days ago)")

    points.append(f"Covers for {summary.outlet}")
    return "; ".join(points)


def build_justification_prompt(story_brief: str, summary: ReporterSummary) -> str:
    articles_context = "\n\n".join(
        f'{idx + 1}. "{article.title}" ({article.published_at})\n'
        f"   {article.description or 'No description'}"
        for idx, article in enumerate(summary.recent_articles[:MAX_PROMPT_ARTICLES])
    )

    return (
        "You are analyzing why a journalist is a good match for a PR pitch.\n\n"
        f'Story Brief: "{story_brief}"\n\n'
        f"Reporter: {summary.name}\n"
        f"Outlet: {summary.outlet}\n"
        f"Number of relevant articles: {summary.article_count}\n"
        f"Match Score: {summary.match_score if summary.match_score is not None else 'n/a'} / 100\n\n"
        "Recent Relevant Articles:\n"
        f"{articles_context or 'None available'}\n\n"
        "Task: Write a concise, professional 1-2 sentence justification explaining why "
        "this reporter is a possible match for the story brief, weighing the match score. "
        "Focus on:\n"
        "- Their coverage history and expertise\n"
        "- Relevance of their recent work\n"
        "- Timeliness of their coverage\n"
        "- Their outlet's reach\n\n"
        "Keep it factual and specific. Do not use bullet points or special formatting."
    )


class JustificationEnricher:
    """
    Adds a short natural-language justification to each ranked reporter.

    One task per reporter, all running concurrently behind a semaphore. Each
    task has its own timeout and the whole batch has a deadline; any reporter
    whose request fails, times out or misses the deadline gets the rule-based
    fallback instead. Output order always matches input order.
    """

    def __init__(
        self,
        text_generator: TextGenerationProvider,
        max_tokens: int = 150,
        max_concurrency: int = 8,
        task_timeout: Optional[float] = 25.0,
        batch_timeout: Optional[float] = 60.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")
        self._text_generator = text_generator
        self._max_tokens = int(max_tokens)
        self._max_concurrency = int(max_concurrency)
        self._task_timeout = task_timeout
        self._batch_timeout = batch_timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _fallback(self, summary: ReporterSummary) -> str:
        return fallback_justification(summary, now=self._clock())

    async def _justify_one(
        self,
        story_brief: str,
        summary: ReporterSummary,
        semaphore: asyncio.Semaphore,
    ) -> str:
        prompt = build_justification_prompt(story_brief, summary)
        async with semaphore:
            try:
                text = await asyncio.wait_for(
                    self._text_generator.acomplete(prompt, self._max_tokens),
                    timeout=self._task_timeout,
                )
                if not isinstance(text, str) or not text.strip():
                    raise ValueError("empty justification")
                return text.strip()
            except Exception as e:
                logger.warning(
                    "Justification generation failed for %s (%s); using fallback.",
                    summary.name,
                    e,
                )
                return self._fallback(summary)

    async def generate_justifications(
        self,
        story_brief: str,
        summaries: Sequence[ReporterSummary],
    ) -> List[str]:
        if not summaries:
            return []

        logger.info("Generating justifications for %d reporters...", len(summaries))
        semaphore = asyncio.Semaphore(self._max_concurrency)
        tasks = [
            asyncio.create_task(self._justify_one(story_brief, summary, semaphore))
            for summary in summaries
        ]

        _, pending = await asyncio.wait(tasks, timeout=self._batch_timeout)
        if pending:
            logger.warning(
                "%d justification tasks missed the %.1fs batch deadline; using fallback.",
                len(pending),
                self._batch_timeout,
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        justifications: List[str] = []
        for summary, task in zip(summaries, tasks):
            if task.cancelled() or task.exception() is not None:
                justifications.append(self._fallback(summary))
            else:
                justifications.append(task.result())

        logger.info("Justifications ready for %d reporters.", len(justifications))
        return justifications

    async def enrich(
        self,
        reporters: Sequence[ReporterResult],
        story_query: StoryQuery,
    ) -> List[ReporterResult]:
        summaries = [ReporterSummary.from_result(r) for r in reporters]
        justifications = await self.generate_justifications(story_query.story_brief, summaries)
        return [
            reporter.model_copy(update={"justification": text})
            for reporter, text in zip(reporters, justifications)
        ]
