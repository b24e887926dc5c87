# scripts/database_ingestion.py
import logging
import sys
from pathlib import Path

from media_matching.vector_database.ingestion_runner import VectorIndexBuilder

logger = logging.getLogger(__name__)


def main() -> None:
    logger.info("Starting article ingestion (vector index build)...")

    # Discover project root (folder above scripts/)
    root_dir = Path(__file__).resolve().parents[1]
    logger.debug("Resolved project root directory: %s", root_dir)

    # Optional article dump path; defaults to paths.articles_path
    articles_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None

    builder = VectorIndexBuilder(root_dir=root_dir)
    try:
        builder.build_index(articles_path)
    except Exception as e:
        logger.error("Ingestion failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    # Basic logging setup for this script
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    main()
