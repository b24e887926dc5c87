import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import chromadb
import tiktoken
from sentence_transformers import SentenceTransformer

from media_matching.reporter_matching.config_loader import MatchingConfig
from media_matching.reporter_matching.errors import EmbeddingProviderError, SimilaritySearchError
from media_matching.reporter_matching.models import ArticleHit, ArticleMetadata

logger = logging.getLogger(__name__)


class ArticleVectorStore:
    """
    Wrapper around ChromaDB + SentenceTransformers for storing published
    articles and querying them by embedding.

    Serves as both the embedding provider and the similarity search client
    of the matching core. The collection is created in cosine space, so
    distances are cosine distances (0 = identical).
    """

    def __init__(
        self,
        chroma_path: Path,
        embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2",
        embedding_dimensions: int = 384,
        collection_name: str = "articles",
        distance_space: str = "cosine",
        batch_size: int = 10,
        batch_delay_seconds: float = 0.1,
        max_article_tokens: int = 512,
        max_content_chars: int = 20000,
        token_encoding: str = "cl100k_base",
    ) -> None:
        self.chroma_path = chroma_path

        # Configurable parameters
        self.embedding_model = embedding_model
        self.dimensions = int(embedding_dimensions)
        self.collection_name = collection_name
        self.distance_space = distance_space
        self.batch_size = int(batch_size)
        self.batch_delay_seconds = float(batch_delay_seconds)
        self.max_article_tokens = int(max_article_tokens)
        self.max_content_chars = int(max_content_chars)
        self.token_encoding = token_encoding

        # Lazily initialized components
        self._model = None
        self._client = None
        self._collection = None

    # Internal helpers
    def _ensure_model(self) -> None:
        """
        Lazily load the embedding model and check it matches the index dimension.
        """
        if self._model is not None:
            return

        logger.info("Loading embedding model: %s ...", self.embedding_model)
        try:
            model = SentenceTransformer(self.embedding_model)
        except Exception as e:
            logger.exception("Could not load embedding model %s", self.embedding_model)
            raise EmbeddingProviderError(
                f"Could not load embedding model '{self.embedding_model}': {e}"
            ) from e

        model_dim = model.get_sentence_embedding_dimension()
        if model_dim is not None and int(model_dim) != self.dimensions:
            logger.error(
                "Embedding model %s produces %d dimensions, index is configured for %d.",
                self.embedding_model,
                model_dim,
                self.dimensions,
            )
            raise EmbeddingProviderError(
                f"Embedding model '{self.embedding_model}' produces {model_dim} dimensions, "
                f"but the index expects {self.dimensions}."
            )
        self._model = model

    def _ensure_collection(self) -> None:
        """
        Lazily create/get the Chroma collection.
        """
        if self._client is None or self._collection is None:
            logger.info("Initializing Chroma at %s ...", self.chroma_path)
            self._client = chromadb.PersistentClient(path=str(self.chroma_path))
            self._collection = self._client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": self.distance_space},
            )

    def _truncate_by_tokens(self, text: str) -> str:
        if not text:
            return ""
        # Every token covers at least one UTF-8 byte.
        if len(text.encode("utf-8")) <= self.max_article_tokens:
            return text

        enc = tiktoken.get_encoding(self.token_encoding)
        tokens: List[int] = enc.encode(text)

        if len(tokens) <= self.max_article_tokens:
            return text

        logger.debug(
            "Article text truncated by tokens from %d to %d tokens.",
            len(tokens),
            self.max_article_tokens,
        )
        return enc.decode(tokens[: self.max_article_tokens])

    # Embedding provider
    def embed(self, text: Union[str, Sequence[str]]) -> List[List[float]]:
        """
        Embed one text or a list of texts. Always returns a list of vectors.
        """
        inputs = [text] if isinstance(text, str) else list(text)
        if not inputs:
            return []

        self._ensure_model()
        logger.debug("Generating embeddings for %d text(s)...", len(inputs))
        try:
            vectors = self._model.encode(inputs).tolist()
        except Exception as e:
            logger.exception("Embedding generation failed.")
            raise EmbeddingProviderError(f"Embedding generation failed: {e}") from e

        for vector in vectors:
            if len(vector) != self.dimensions:
                raise EmbeddingProviderError(
                    f"Embedding dimension mismatch: got {len(vector)}, expected {self.dimensions}."
                )
        return vectors

    # Similarity search client
    def search(self, vector: Sequence[float], top_k: int = 10) -> List[ArticleHit]:
        """
        Nearest-neighbor query over the article collection.

        One round trip, no retry: any Chroma failure surfaces as
        SimilaritySearchError.
        """
        if top_k < 1:
            raise ValueError("top_k must be at least 1.")
        if len(vector) != self.dimensions:
            raise EmbeddingProviderError(
                f"Query vector has {len(vector)} dimensions, index expects {self.dimensions}."
            )

        self._ensure_collection()
        logger.info("Searching for similar articles (top_k=%d)...", top_k)
        try:
            raw = self._collection.query(
                query_embeddings=[list(vector)],
                n_results=top_k,
                include=["metadatas", "distances"],
            )
        except Exception as e:
            logger.exception("Similarity search failed.")
            raise SimilaritySearchError(f"Similarity search failed: {e}") from e

        ids = (raw.get("ids") or [[]])[0]
        distances = (raw.get("distances") or [[]])[0]
        metadatas = (raw.get("metadatas") or [[]])[0]

        hits = [
            ArticleHit(
                key=article_id,
                distance=float(distance),
                metadata=ArticleMetadata.model_validate(meta or {}),
            )
            for article_id, distance, meta in zip(ids, distances, metadatas)
        ]
        logger.debug("Similarity search returned %d hits.", len(hits))
        return hits

    # Ingestion
    def prepare_article_text(self, article: Mapping[str, Any]) -> str:
        """
        Build the text that gets embedded for an article.

        The title is repeated so it weighs more than the body; content is
        cut to max_content_chars before the token-level truncation.
        """
        parts: List[str] = []

        if article.get("author"):
            parts.append("Author: " + str(article["author"]))

        if article.get("title"):
            parts.append("Title: " + str(article["title"]))
            parts.append(str(article["title"]))

        if article.get("description"):
            parts.append("Description: " + str(article["description"]))

        source = article.get("source") or {}
        if source:
            parts.append("SourceId: " + str(source.get("id")))
            parts.append("SourceName: " + str(source.get("name")))

        content = article.get("content")
        if content:
            content = str(content)
            if len(content) > self.max_content_chars:
                content = content[: self.max_content_chars] + "..."
            parts.append("Content: " + content)

        for field_name, label in (
            ("contributorBio", "ContributorBio"),
            ("contributorTwitter", "ContributorTwitter"),
            ("publishedAt", "PublishedAt"),
            ("url", "Url"),
            ("urlToImage", "UrlToImage"),
        ):
            if article.get(field_name):
                parts.append(f"{label}: {article[field_name]}")

        return self._truncate_by_tokens(" ".join(parts))

    @staticmethod
    def build_metadata(article: Mapping[str, Any], article_id: str) -> Dict[str, Any]:
        """
        Flat metadata stored next to each vector. Chroma rejects None values,
        so missing fields are left out.
        """
        source = article.get("source") or {}
        metadata = {
            "id": article_id,
            "sourceId": source.get("id") or article.get("sourceId"),
            "sourceName": source.get("name") or article.get("sourceName"),
            "author": article.get("author"),
            "title": article.get("title"),
            "description": article.get("description"),
            "publishedAt": article.get("publishedAt"),
            "url": article.get("url"),
            "urlToImage": article.get("urlToImage"),
            "storedAt": datetime.now(timezone.utc).isoformat(),
        }
        return {key: str(value) for key, value in metadata.items() if value is not None}

    def embed_texts_batched(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts in sequential chunks of batch_size, sleeping between
        chunks to stay under the provider's rate limits.
        """
        embeddings: List[List[float]] = []
        total_batches = (len(texts) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            logger.info(
                "Processing batch %d/%d...",
                start // self.batch_size + 1,
                total_batches,
            )
            embeddings.extend(self.embed(batch))

            if start + self.batch_size < len(texts) and self.batch_delay_seconds > 0:
                time.sleep(self.batch_delay_seconds)

        return embeddings

    def add_articles(self, articles: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """
        Embed and store articles. Articles that fail to store are logged and
        skipped so one bad record does not abort the batch.

        :return: One summary dict per stored article (id, title, author, sourceName).
        """
        if not articles:
            logger.warning("No articles to index.")
            return []

        self._ensure_collection()
        logger.info("Generating embeddings for %d articles...", len(articles))
        texts = [self.prepare_article_text(article) for article in articles]
        embeddings = self.embed_texts_batched(texts)

        stored: List[Dict[str, Any]] = []
        for index, (article, text, embedding) in enumerate(zip(articles, texts, embeddings)):
            article_id = str(uuid.uuid4())
            metadata = self.build_metadata(article, article_id)
            try:
                self._collection.add(
                    ids=[article_id],
                    embeddings=[embedding],
                    documents=[text],
                    metadatas=[metadata],
                )
            except Exception as e:
                logger.error("Failed to store article %d (%s): %s", index, article.get("title"), e)
                continue

            logger.debug("Stored article: %s - %s", article_id, article.get("title"))
            stored.append(
                {
                    "id": article_id,
                    "title": metadata.get("title"),
                    "author": metadata.get("author"),
                    "sourceName": metadata.get("sourceName"),
                }
            )

        logger.info("Stored %d of %d articles.", len(stored), len(articles))
        return stored

    def get_index_stats(self) -> Dict[str, Any]:
        self._ensure_collection()
        return {
            "totalArticles": self._collection.count(),
            "collection": self.collection_name,
            "path": str(self.chroma_path),
        }


def vector_store_from_config(config: Optional[MatchingConfig] = None) -> ArticleVectorStore:
    """Instantiate an ArticleVectorStore from configuration/base.yaml."""
    cfg = config or MatchingConfig()
    vdb_cfg = cfg.get_vector_db_config()
    chroma_path = cfg.resolve_path("chroma_path", "chroma_db")

    store = ArticleVectorStore(
        chroma_path=chroma_path,
        embedding_model=vdb_cfg.get("embedding_model", "sentence-transformers/all-MiniLM-L6-v2"),
        embedding_dimensions=int(vdb_cfg.get("embedding_dimensions", 384)),
        collection_name=vdb_cfg.get("collection_name", "articles"),
        distance_space=vdb_cfg.get("distance_space", "cosine"),
        batch_size=int(vdb_cfg.get("batch_size", 10)),
        batch_delay_seconds=float(vdb_cfg.get("batch_delay_seconds", 0.1)),
        max_article_tokens=int(vdb_cfg.get("max_article_tokens", 512)),
        max_content_chars=int(vdb_cfg.get("max_content_chars", 20000)),
        token_encoding=vdb_cfg.get("token_encoding", "cl100k_base"),
    )
    logger.info(
        "Vector store config -> model=%s | dims=%d | collection=%s | path=%s",
        store.embedding_model,
        store.dimensions,
        store.collection_name,
        chroma_path,
    )
    return store
