# scripts/match_reporters.py
from __future__ import annotations

import argparse
import logging
import sys

from media_matching.pipeline.pipeline_runner import MatchPipelineRunner, MatchSampleManager
from media_matching.reporter_matching.config_loader import get_config
from media_matching.reporter_matching.graph import build_pipeline

logger = logging.getLogger(__name__)


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rank reporters for a story brief and write a media list to samples/.",
    )
    parser.add_argument("story_brief", help="Story to pitch, in quotes.")
    parser.add_argument(
        "--outlet-types",
        default="",
        help="Comma-separated outlet tags, e.g. national-business-tech,podcasts",
    )
    parser.add_argument("--geography", default="", help="Comma-separated regions, e.g. US,UK")
    parser.add_argument("--target-publications", default=None)
    parser.add_argument("--competitors", default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument(
        "--no-justifications",
        action="store_true",
        help="Skip the LLM justification step.",
    )
    return parser.parse_args(argv)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    args = parse_args()

    config = get_config()
    samples_dir = config.resolve_path("samples_dir", "samples")

    sample_manager = MatchSampleManager(samples_dir=samples_dir)
    runner = MatchPipelineRunner(sample_manager=sample_manager, pipeline=build_pipeline(config))

    try:
        runner.run(
            story_brief=args.story_brief,
            outlet_types=_split_csv(args.outlet_types),
            geography=_split_csv(args.geography),
            target_publications=args.target_publications,
            competitors=args.competitors,
            limit=args.limit,
            include_justifications=not args.no_justifications,
        )
    except Exception as e:
        logger.error("Pipeline failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
