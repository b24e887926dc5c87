# media_matching/vector_database/ingestion_runner.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from media_matching.reporter_matching.config_loader import MatchingConfig
from media_matching.vector_database.vector_database import (
    ArticleVectorStore,
    vector_store_from_config,
)

logger = logging.getLogger(__name__)


def load_articles(path: Path) -> List[Dict[str, Any]]:
    """
    Read an article dump from disk.

    Accepts a JSON list, a JSON object with an "articles" list (the shape
    returned by most news APIs), or JSON Lines with one article per line.
    """
    if not path.exists():
        logger.error("Articles file not found: %s", path)
        raise FileNotFoundError(f"Articles file not found: {path}")

    logger.info("Reading articles from %s ...", path)
    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() == ".jsonl":
            articles = [json.loads(line) for line in f if line.strip()]
        else:
            payload = json.load(f)
            articles = payload.get("articles", []) if isinstance(payload, dict) else payload

    if not isinstance(articles, list):
        raise ValueError(f"Expected a list of articles in {path}.")

    valid = [a for a in articles if isinstance(a, dict)]
    if len(valid) != len(articles):
        logger.warning("Skipping %d malformed article entries.", len(articles) - len(valid))
    return valid


class VectorIndexBuilder:
    """
    High-level orchestrator for loading published articles into the Chroma
    article index, based on configuration/base.yaml.

    Responsibilities:
      - Load the configuration.
      - Resolve the article dump and Chroma paths.
      - Instantiate ArticleVectorStore with the configured parameters.
      - Embed and store the articles, then report index statistics.
    """

    def __init__(self, root_dir: Path | None = None, config_path: Path | None = None) -> None:
        """
        Parameters
        ----------
        root_dir : Path, optional
            Project root directory, used to resolve config_path when given.
        config_path : Path, optional
            Optional explicit path to the YAML config. If not provided,
            defaults to `root_dir / "configuration" / "base.yaml"`.
        """
        if config_path is None and root_dir is not None:
            config_path = root_dir / "configuration" / "base.yaml"

        self._config = MatchingConfig(config_path=config_path)
        logger.debug("VectorIndexBuilder using configuration file: %s", self._config.config_path)

    def create_vector_store(self) -> ArticleVectorStore:
        """
        Instantiate and return a configured ArticleVectorStore.

        This method does NOT ingest anything by itself; it only prepares the instance.
        """
        return vector_store_from_config(self._config)

    def build_index(self, articles_path: Path | None = None) -> Dict[str, Any]:
        """
        Embed and store every article from the dump.

        Returns a summary with processed/stored/failed counts and index stats.
        """
        articles_path = articles_path or self._config.resolve_path(
            "articles_path", "data/articles.json"
        )
        articles = load_articles(articles_path)

        if not articles:
            logger.warning("No articles found in %s. Nothing to index.", articles_path)
            return {"processed": 0, "stored": 0, "failed": 0}

        logger.info("Starting article ingestion for %d articles...", len(articles))
        vector_store = self.create_vector_store()
        stored = vector_store.add_articles(articles)
        stats = vector_store.get_index_stats()

        summary = {
            "processed": len(articles),
            "stored": len(stored),
            "failed": len(articles) - len(stored),
            "sample": stored[:5],
            "index": stats,
        }
        logger.info(
            "Ingestion finished: processed=%d stored=%d failed=%d total_in_index=%d",
            summary["processed"],
            summary["stored"],
            summary["failed"],
            stats["totalArticles"],
        )
        return summary
