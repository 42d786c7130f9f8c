"""
Text helpers shared by lexical scoring and keyword search.
"""

import re
from typing import List

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> List[str]:
    """Lowercased word tokens (unicode ``\\w+`` runs)."""
    if not text:
        return []
    return _TOKEN_PATTERN.findall(text.lower())


def unique_terms(text: str) -> List[str]:
    """Distinct tokens of ``text`` in first-seen order."""
    return list(dict.fromkeys(tokenize(text)))
