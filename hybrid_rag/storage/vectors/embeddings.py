"""
Embedding Service
=================

Local query embeddings with sentence-transformers.

Key Features:
- Singleton pattern (model loaded once and reused)
- Lazy loading (model loaded on first use, not on import)
- Async wrapper running the encoder in the default executor
- Configurable device (CPU/CUDA)

Install the optional dependencies with ``pip install hybrid-rag[embeddings]``.
"""

import asyncio
import os
from threading import Lock
from typing import Any, List, Optional

import structlog

from hybrid_rag.storage.vectors.base import EmbeddingProvider

log = structlog.get_logger()


class EmbeddingService(EmbeddingProvider):
    """
    sentence-transformers embedding provider.

    Usage:
        service = EmbeddingService.get_instance()
        vector = await service.embed("quarterly revenue report")

        # Sync encoding (ingestion scripts)
        vectors = service.encode_batch(["text1", "text2"])
    """

    _instance: Optional["EmbeddingService"] = None
    _lock: Lock = Lock()

    def __init__(
        self,
        model_name: Optional[str] = None,
        device: Optional[str] = None,
        batch_size: int = 32,
        normalize_embeddings: bool = True,
        query_prefix: str = "",
    ):
        """
        Args:
            model_name: sentence-transformers model
                (default: EMBEDDING_MODEL env var or all-MiniLM-L6-v2)
            device: 'cpu', 'cuda', or None to auto-detect on load
            batch_size: Batch size for encode_batch
            normalize_embeddings: L2-normalize vectors (cosine similarity)
            query_prefix: Prefix some models expect on queries (e.g. "query: ")
        """
        self.model_name = model_name or os.getenv(
            "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
        self.device = device or os.getenv("EMBEDDING_DEVICE") or None
        self.batch_size = int(os.getenv("EMBEDDING_BATCH_SIZE", str(batch_size)))
        self.normalize_embeddings = normalize_embeddings
        self.query_prefix = query_prefix
        self._model: Any = None

        log.info(
            "EmbeddingService configured",
            model=self.model_name,
            device=self.device or "auto",
            batch_size=self.batch_size,
        )

    @classmethod
    def get_instance(cls, **kwargs) -> "EmbeddingService":
        """Thread-safe singleton (double-checked locking)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(**kwargs)
        return cls._instance

    def _load_model(self) -> Any:
        if self._model is None:
            with self._lock:
                if self._model is None:
                    try:
                        from sentence_transformers import SentenceTransformer
                    except ImportError as e:
                        raise ImportError(
                            "sentence-transformers is required for EmbeddingService. "
                            "Install with: pip install hybrid-rag[embeddings]"
                        ) from e

                    device = self.device
                    if device is None:
                        import torch
                        device = "cuda" if torch.cuda.is_available() else "cpu"

                    log.info("Loading embedding model", model=self.model_name, device=device)
                    self._model = SentenceTransformer(self.model_name, device=device)
                    self.device = device
                    log.info(
                        "Embedding model loaded",
                        dimension=self._model.get_sentence_embedding_dimension(),
                    )
        return self._model

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def embedding_dimension(self) -> int:
        return self._load_model().get_sentence_embedding_dimension()

    def encode_query(self, text: str) -> List[float]:
        model = self._load_model()
        embedding = model.encode(
            f"{self.query_prefix}{text}",
            normalize_embeddings=self.normalize_embeddings,
            convert_to_numpy=True,
        )
        return embedding.tolist()

    def encode_batch(self, texts: List[str], show_progress_bar: bool = False) -> List[List[float]]:
        """Encode many passages (no query prefix)."""
        model = self._load_model()
        log.debug(f"Encoding batch of {len(texts)} texts")
        embeddings = model.encode(
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=self.normalize_embeddings,
            convert_to_numpy=True,
            show_progress_bar=show_progress_bar,
        )
        return embeddings.tolist()

    async def embed(self, text: str) -> List[float]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.encode_query, text)
