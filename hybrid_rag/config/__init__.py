"""
Configuration module for hybrid_rag.
"""

from .llm import LLMServiceConfig
from .environments import (
    EngineEnvironment,
    get_environment_config,
    set_environment_config,
)

__all__ = [
    "EngineEnvironment",
    "LLMServiceConfig",
    "get_environment_config",
    "set_environment_config",
]
