"""
HTTP Embedding Client
=====================

Query embeddings from an OpenAI-compatible ``/embeddings`` endpoint
(OpenRouter, OpenAI, vLLM, ...) over aiohttp.
"""

from typing import List, Optional

import aiohttp
import structlog

from hybrid_rag.config.llm import LLMServiceConfig
from hybrid_rag.core.errors import EmbeddingUnavailableError
from hybrid_rag.storage.vectors.base import EmbeddingProvider

log = structlog.get_logger()

MAX_INPUT_CHARS = 8000


class HttpEmbeddingClient(EmbeddingProvider):
    """
    Remote embedding provider.

    Example:
        client = HttpEmbeddingClient()
        vector = await client.embed("churn analysis 2024")
        await client.close()
    """

    def __init__(self, config: Optional[LLMServiceConfig] = None, model: Optional[str] = None):
        self.config = config or LLMServiceConfig()
        self.model = model or self.config.embedding_model
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            )
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def embed(self, text: str) -> List[float]:
        """
        Embed one query.

        Input longer than 8000 characters is truncated.

        Raises:
            EmbeddingUnavailableError: Missing key, HTTP error or bad payload
        """
        if not self.config.has_api_key:
            raise EmbeddingUnavailableError("LLM_API_KEY is not configured")

        session = await self._get_session()
        payload = {"model": self.model, "input": text[:MAX_INPUT_CHARS]}
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        async with session.post(
            f"{self.config.base_url}/embeddings", json=payload, headers=headers
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                log.error("Embedding API error", status=response.status, body=error_text[:200])
                raise EmbeddingUnavailableError(f"Embedding API error: {response.status}")
            data = await response.json()

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmbeddingUnavailableError("Invalid response from embedding API") from e

        log.debug("Query embedded", model=self.model, dimension=len(embedding))
        return [float(x) for x in embedding]
