"""
Relevance Scoring Services
==========================

Backends for the cross-encoder reranker. Each scores one (query, passage)
pair in [0, 1].

- LLMRelevanceScorer: asks an OpenAI-compatible chat model for a number
- CrossEncoderScorer: local sentence-transformers CrossEncoder
"""

import asyncio
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp
import structlog

from hybrid_rag.config.llm import LLMServiceConfig
from hybrid_rag.core.errors import MalformedScoreError, ScoringUnavailableError
from hybrid_rag.core.models import clamp_unit

log = structlog.get_logger()

_NUMBER_PATTERN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

SYSTEM_PROMPT = (
    "You judge search results. Given a query and a document, reply with a single "
    "number between 0 and 1: 0 means unrelated, 1 means the document fully answers "
    "the query. Reply with the number only."
)


def parse_relevance(raw_output: str) -> float:
    """
    First number in ``raw_output``, clamped into [0, 1].

    Raises:
        MalformedScoreError: No number in the text
    """
    match = _NUMBER_PATTERN.search(raw_output or "")
    if match is None:
        raise MalformedScoreError(raw_output or "")
    value = float(match.group(0))
    if math.isnan(value):
        raise MalformedScoreError(raw_output)
    return clamp_unit(value)


def _sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


class ScoringService(ABC):

    @abstractmethod
    async def score(self, query: str, passage: str) -> float:
        """Relevance of ``passage`` to ``query`` in [0, 1]."""
        pass

    async def close(self):
        pass


class LLMRelevanceScorer(ScoringService):
    """
    Chat-completion relevance judge (OpenRouter by default).

    Example:
        scorer = LLMRelevanceScorer()
        await scorer.score("opening hours", "We open from 9 to 18")  # ~0.9
        await scorer.close()
    """

    def __init__(
        self,
        config: Optional[LLMServiceConfig] = None,
        model: Optional[str] = None,
        max_tokens: int = 10,
    ):
        self.config = config or LLMServiceConfig()
        self.model = model or self.config.rerank_model
        self.max_tokens = max_tokens
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

    def _build_prompt(self, query: str, passage: str) -> str:
        return f"Query: {query}\n\nDocument: {passage}\n\nRelevance (0-1):"

    async def _complete(self, prompt: str) -> str:
        if not self.config.has_api_key:
            raise ScoringUnavailableError("LLM_API_KEY is not configured")

        session = await self._get_session()
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        async with session.post(
            f"{self.config.base_url}/chat/completions", json=payload, headers=headers
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                log.error("Scoring API error", status=response.status, body=error_text[:200])
                raise ScoringUnavailableError(f"Scoring API error: {response.status}")
            data = await response.json()

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ScoringUnavailableError("Invalid response from scoring API") from e

    async def score(self, query: str, passage: str) -> float:
        completion = await self._complete(self._build_prompt(query, passage))
        return parse_relevance(completion)


class CrossEncoderScorer(ScoringService):
    """
    Local cross-encoder; raw logits are squashed with a sigmoid.

    Requires ``pip install hybrid-rag[embeddings]``.
    """

    def __init__(self, model_name: str = "cross-encoder/ms-marco-MiniLM-L-6-v2", device: Optional[str] = None):
        self.model_name = model_name
        self.device = device
        self._model: Any = None

    def _load_model(self) -> Any:
        if self._model is None:
            try:
                from sentence_transformers import CrossEncoder
            except ImportError as e:
                raise ImportError(
                    "sentence-transformers is required for CrossEncoderScorer. "
                    "Install with: pip install hybrid-rag[embeddings]"
                ) from e
            log.info("Loading cross-encoder", model=self.model_name)
            self._model = CrossEncoder(self.model_name, device=self.device)
        return self._model

    def _predict(self, query: str, passage: str) -> float:
        logits = self._load_model().predict([(query, passage)])
        return float(logits[0])

    async def score(self, query: str, passage: str) -> float:
        loop = asyncio.get_running_loop()
        logit = await loop.run_in_executor(None, self._predict, query, passage)
        return clamp_unit(_sigmoid(logit))
