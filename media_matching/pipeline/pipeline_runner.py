# media_matching/pipeline/pipeline_runner.py
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from media_matching.pipeline.export import reporters_to_csv
from media_matching.reporter_matching.graph import MatchResult, ReporterMatchingPipeline
from media_matching.reporter_matching.models import StoryQuery

logger = logging.getLogger(__name__)


class MatchSampleManager:
    """
    Responsible for:
    - Managing the `samples/` directory.
    - Assigning incremental sample indices (1, 2, 3, ...).
    - Naming the files written for each run:
        - samples/match_{N}.json
        - samples/media_list_{N}.csv
    """

    OUTPUT_PATTERN = re.compile(r"match_(\d+)\.json$")

    def __init__(self, samples_dir: Path | str = "samples") -> None:
        self.samples_dir = Path(samples_dir)
        self.samples_dir.mkdir(parents=True, exist_ok=True)

    def get_next_sample_index(self) -> int:
        """
        Inspect existing `match_N.json` files and return the next available N.
        """
        indices = []
        for path in self.samples_dir.glob("match_*.json"):
            match = self.OUTPUT_PATTERN.match(path.name)
            if match:
                indices.append(int(match.group(1)))

        if not indices:
            return 1
        return max(indices) + 1

    def get_output_json_path(self, idx: int) -> Path:
        return self.samples_dir / f"match_{idx}.json"

    def get_media_list_path(self, idx: int) -> Path:
        return self.samples_dir / f"media_list_{idx}.csv"


class MatchPipelineRunner:
    """
    High-level orchestrator for:
    - Building a StoryQuery from command-line input.
    - Running the reporter matching LangGraph pipeline.
    - Writing JSON + CSV outputs.

    It delegates sample index management to `MatchSampleManager`.
    """

    def __init__(
        self,
        sample_manager: MatchSampleManager,
        pipeline: ReporterMatchingPipeline,
    ) -> None:
        self.sample_manager = sample_manager
        self.pipeline = pipeline

    @staticmethod
    def _result_payload(result: MatchResult) -> Dict[str, Any]:
        query = result.story_query
        return {
            "query": {
                "storyBrief": query.story_brief,
                "outletTypes": list(query.outlet_types),
                "geography": list(query.geography),
                "keyTopics": result.key_topics,
            },
            "reporters": [r.model_dump(by_alias=True) for r in result.reporters],
            "totalArticlesAnalyzed": result.total_articles_analyzed,
        }

    def run(
        self,
        story_brief: str,
        outlet_types: Optional[List[str]] = None,
        geography: Optional[List[str]] = None,
        target_publications: Optional[str] = None,
        competitors: Optional[str] = None,
        limit: Optional[int] = None,
        include_justifications: bool = True,
    ) -> Dict[str, Any]:
        """
        Main entry point for the runner.

        Returns a dict with metadata about the run:
        {
          "index": int,
          "reporters": int,
          "output_json_path": Path,
          "media_list_path": Path,
        }
        """
        # 1) Build the query and assign index
        story_query = StoryQuery(
            story_brief=story_brief,
            outlet_types=outlet_types or [],
            geography=geography or [],
            target_publications=target_publications,
            competitors=competitors,
        )
        idx = self.sample_manager.get_next_sample_index()
        logger.info("Using sample index: %d", idx)

        # 2) Run the matching pipeline
        logger.info("Running reporter matching pipeline...")
        result = self.pipeline.match(
            story_query,
            limit=limit,
            include_justifications=include_justifications,
        )

        # 3) Persist outputs
        output_json_path = self.sample_manager.get_output_json_path(idx)
        with output_json_path.open("w", encoding="utf-8") as f:
            json.dump(self._result_payload(result), f, ensure_ascii=False, indent=2)

        media_list_path = self.sample_manager.get_media_list_path(idx)
        with media_list_path.open("w", encoding="utf-8", newline="") as f:
            f.write(reporters_to_csv(result.reporters))

        # 4) Log and return metadata
        for reporter in result.reporters:
            logger.info(
                "#%d %s (%s) score=%d articles=%d",
                reporter.rank,
                reporter.name,
                reporter.outlet,
                reporter.match_score,
                reporter.total_relevant_articles,
            )
        logger.info("Final JSON saved to: %s", output_json_path)
        logger.info("Media list saved to: %s", media_list_path)

        return {
            "index": idx,
            "reporters": len(result.reporters),
            "output_json_path": output_json_path,
            "media_list_path": media_list_path,
        }
