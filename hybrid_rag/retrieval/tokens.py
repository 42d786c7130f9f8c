"""
Token Counting
==============

Token budget helpers for context assembly, backed by tiktoken.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog
import tiktoken

log = structlog.get_logger()


class TokenCounter(ABC):

    @abstractmethod
    def count(self, text: str) -> int:
        pass

    @abstractmethod
    def truncate(self, text: str, max_tokens: int) -> str:
        """Longest prefix of ``text`` that fits in ``max_tokens`` tokens."""
        pass


class TiktokenCounter(TokenCounter):
    """
    tiktoken counter (``cl100k_base`` by default).

    The encoding is loaded on first use.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self._encoding: Optional[Any] = None

    @property
    def encoding(self) -> Any:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
            log.debug("Tokenizer loaded", encoding=self.encoding_name)
        return self._encoding

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))

    def truncate(self, text: str, max_tokens: int) -> str:
        if max_tokens <= 0 or not text:
            return ""
        tokens = self.encoding.encode(text, disallowed_special=())
        if len(tokens) <= max_tokens:
            return text
        return self.encoding.decode(tokens[:max_tokens])
