"""
Tests for the hybrid-rag CLI, configuration and logging setup.
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from hybrid_rag import __version__
from hybrid_rag.cli import cli
from hybrid_rag.config import EngineEnvironment, LLMServiceConfig, get_environment_config, set_environment_config
from hybrid_rag.core.errors import RetrievalUnavailableError
from hybrid_rag.core.models import RetrievalOutcome, RetrievalResult
from hybrid_rag.log_config import configure_logging


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_weights_prints_yaml(self, runner):
        result = runner.invoke(cli, ["weights"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["fusion"] == {"vector": 0.4, "lexical": 0.3, "rerank": 0.3}
        assert "created_at" not in data

    def test_weights_custom_file(self, runner, tmp_path):
        path = tmp_path / "w.yaml"
        path.write_text("fusion:\n  vector: 0.6\n  lexical: 0.2\n  rerank: 0.2\n")
        result = runner.invoke(cli, ["weights", "--config", str(path)])
        assert yaml.safe_load(result.output)["fusion"]["vector"] == 0.6

    def test_retrieve_rejects_invalid_query(self, runner):
        result = runner.invoke(cli, ["retrieve", "acme", "q", "--max-results", "0"])
        assert result.exit_code == 2
        assert "max_results" in result.output

    def test_retrieve_json(self, runner):
        engine = MagicMock()
        engine.__aenter__ = AsyncMock(return_value=engine)
        engine.__aexit__ = AsyncMock(return_value=None)
        engine.retrieve_with_metadata = AsyncMock(
            return_value=RetrievalOutcome(RetrievalResult(confidence=0.5, sources={"vector"}), latency_ms=12.0)
        )
        with patch("hybrid_rag.cli.build_engine", return_value=engine):
            result = runner.invoke(cli, ["retrieve", "acme", "opening hours", "--json", "--no-graph"])

        assert result.exit_code == 0, result.output
        assert '"confidence": 0.5' in result.output
        query = engine.retrieve_with_metadata.await_args.args[0]
        assert query.tenant_id == "acme"
        assert query.enable_graph_expansion is False

    def test_retrieve_unavailable_exits_2(self, runner):
        engine = MagicMock()
        engine.__aenter__ = AsyncMock(return_value=engine)
        engine.__aexit__ = AsyncMock(return_value=None)
        engine.retrieve_with_metadata = AsyncMock(side_effect=RetrievalUnavailableError("all down"))
        with patch("hybrid_rag.cli.build_engine", return_value=engine):
            result = runner.invoke(cli, ["retrieve", "acme", "opening hours"])
        assert result.exit_code == 2


class TestConfiguration:

    def test_llm_config_from_env(self):
        env = {"LLM_API_KEY": "", "OPENROUTER_API_KEY": "or-key", "LLM_BASE_URL": "http://llm.local/v1/"}
        with patch.dict(os.environ, env):
            config = LLMServiceConfig()
        assert config.api_key == "or-key"
        assert config.base_url == "http://llm.local/v1"
        assert config.has_api_key

    def test_llm_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            LLMServiceConfig(timeout_seconds=0)

    def test_environment_singleton(self):
        set_environment_config(None)
        try:
            assert get_environment_config() is get_environment_config()
            custom = EngineEnvironment(name="test")
            set_environment_config(custom)
            assert get_environment_config() is custom
        finally:
            set_environment_config(None)


class TestLogging:

    def test_configure_levels(self):
        configure_logging("debug")
        configure_logging("WARNING", json=True)

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("chatty")
