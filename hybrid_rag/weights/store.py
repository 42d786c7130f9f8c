"""
Weight Store
============

Loads the retrieval tunables from YAML and manages runtime overrides.

Loading order:
1. Runtime override (apply_override), kept until reload()
2. YAML config (weights/config/weights.yaml)
3. Built-in defaults, when the YAML is missing or invalid

Architecture:
    YAML (default) -> WeightStore -> WeightConfig (cached)
                          |
                   Runtime override
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog
import yaml
from pydantic import ValidationError

from hybrid_rag.weights.config import WeightCategory, WeightConfig

log = structlog.get_logger()


class WeightStore:
    """
    Central store for the pipeline tunables.

    Example:
        >>> store = WeightStore()
        >>> store.get_weights().fusion.vector
        0.4

        >>> store.apply_override("fusion", {"vector": 0.6, "rerank": 0.1})
        >>> store.get_weights().fusion.vector
        0.6
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: YAML file path. None uses the packaged weights.yaml.
        """
        self.config_path = Path(config_path) if config_path else self._get_default_config_path()
        self._config: Optional[WeightConfig] = None

        log.info("WeightStore initialized", config_path=str(self.config_path))

    def _get_default_config_path(self) -> Path:
        return Path(__file__).parent / "config" / "weights.yaml"

    def _load_yaml_config(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            log.warning("Weights config not found, using defaults", path=str(self.config_path))
            return {}
        except (OSError, yaml.YAMLError) as e:
            log.error("Error loading weights config", path=str(self.config_path), error=str(e))
            return {}

        if not isinstance(data, dict):
            log.error("Weights config is not a mapping, using defaults", path=str(self.config_path))
            return {}
        log.debug("Loaded weights from YAML", path=str(self.config_path))
        return data

    def _parse_yaml_to_config(self, yaml_data: Dict[str, Any]) -> WeightConfig:
        try:
            config = WeightConfig.model_validate(yaml_data)
        except ValidationError as e:
            log.error("Invalid weights config, using defaults", errors=e.error_count(), error=str(e))
            config = WeightConfig()
        config.created_at = datetime.now().isoformat()
        return config

    def get_weights(self) -> WeightConfig:
        """Effective tunables (override, else YAML, else defaults)."""
        if self._config is None:
            self._config = self._parse_yaml_to_config(self._load_yaml_config())
        return self._config

    def apply_override(
        self,
        category: Union[WeightCategory, str],
        values: Dict[str, Any],
    ) -> WeightConfig:
        """
        Override part of one section at runtime, without persistence.

        The cached WeightConfig is updated in place, so every holder of it
        (e.g. a running HybridRetrievalEngine) sees the new values.

        Args:
            category: Section to update (e.g. "fusion")
            values: Field name -> new value

        Returns:
            The effective WeightConfig

        Raises:
            ValueError: Unknown category, or values outside their bounds.
                The current config is left untouched.
        """
        category = WeightCategory(category)
        current = self.get_weights()
        section = getattr(current, category.value).model_dump()
        unknown = set(values) - set(section)
        if unknown:
            raise ValueError(f"unknown {category.value} fields: {sorted(unknown)}")
        section.update(values)

        data = current.model_dump()
        data[category.value] = section
        data["updated_at"] = datetime.now().isoformat()
        # ValidationError is a ValueError
        updated = WeightConfig.model_validate(data)
        for name in WeightConfig.model_fields:
            setattr(current, name, getattr(updated, name))

        log.info("Runtime weight override applied", category=category.value, updates=values)
        return current

    def reload(self) -> WeightConfig:
        """Drop overrides and re-read the YAML file."""
        self._config = None
        return self.get_weights()


_default_store: Optional[WeightStore] = None


def get_weight_store() -> WeightStore:
    """Process-wide WeightStore singleton."""
    global _default_store
    if _default_store is None:
        _default_store = WeightStore()
    return _default_store
