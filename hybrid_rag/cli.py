"""
hybrid-rag CLI

Inspect tunables and run retrievals against the environment-configured
Qdrant, FalkorDB and LLM services.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from hybrid_rag import __version__
from hybrid_rag.config import get_environment_config
from hybrid_rag.core.errors import InvalidQueryError, RetrievalUnavailableError
from hybrid_rag.core.models import RetrievalQuery
from hybrid_rag.log_config import configure_logging
from hybrid_rag.retrieval.engine import HybridRetrievalEngine
from hybrid_rag.retrieval.scoring import LLMRelevanceScorer
from hybrid_rag.storage.graph.client import FalkorDBClient
from hybrid_rag.storage.vectors.embeddings import EmbeddingService
from hybrid_rag.storage.vectors.http_embeddings import HttpEmbeddingClient
from hybrid_rag.storage.vectors.qdrant import QdrantVectorStore
from hybrid_rag.weights.store import WeightStore


def run_async(coro):
    """Run a coroutine to completion from synchronous click code."""
    return asyncio.run(coro)


def build_engine(weights_path: Optional[str], embedder_kind: str) -> HybridRetrievalEngine:
    env = get_environment_config()
    weights = WeightStore(Path(weights_path) if weights_path else None).get_weights()

    if embedder_kind == "http":
        embedder = HttpEmbeddingClient(env.llm)
    else:
        embedder = EmbeddingService(model_name=env.llm.local_embedding_model)

    return HybridRetrievalEngine(
        embedder=embedder,
        vector_store=QdrantVectorStore(env.qdrant),
        graph=FalkorDBClient(env.falkordb),
        scorer=LLMRelevanceScorer(env.llm) if env.llm.has_api_key else None,
        weights=weights,
    )


@click.group()
@click.version_option(version=__version__, prog_name="hybrid-rag")
@click.option("--log-level", default="WARNING", show_default=True, help="Log level")
@click.option("--log-json", is_flag=True, help="Emit JSON log lines")
def cli(log_level, log_json):
    """Hybrid retrieval and reranking engine."""
    configure_logging(log_level, json=log_json)


@cli.command("weights")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Alternative weights YAML")
def weights_show(config_path):
    """Print the effective tunables as YAML.

    Example:
        hybrid-rag weights
    """
    store = WeightStore(Path(config_path) if config_path else None)
    data = store.get_weights().model_dump(exclude={"created_at", "updated_at"})
    click.echo(yaml.safe_dump(data, sort_keys=False))


@cli.command("retrieve")
@click.argument("tenant_id")
@click.argument("query")
@click.option("--max-results", default=10, show_default=True, type=int)
@click.option("--threshold", default=0.7, show_default=True, type=float)
@click.option("--no-graph", is_flag=True, help="Disable graph expansion")
@click.option("--embedder", "embedder_kind", type=click.Choice(["http", "local"]),
              default="http", show_default=True)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Alternative weights YAML")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def retrieve(tenant_id, query, max_results, threshold, no_graph, embedder_kind, config_path, as_json):
    """Run one retrieval and print the result.

    Example:
        hybrid-rag retrieve acme "opening hours" --max-results 5
    """
    try:
        request = RetrievalQuery(
            text=query,
            tenant_id=tenant_id,
            max_results=max_results,
            similarity_threshold=threshold,
            enable_graph_expansion=not no_graph,
        )
    except InvalidQueryError as e:
        raise click.BadParameter(str(e), param_hint=e.field)

    async def _run():
        engine = build_engine(config_path, embedder_kind)
        async with engine:
            return await engine.retrieve_with_metadata(request)

    try:
        outcome = run_async(_run())
    except RetrievalUnavailableError as e:
        click.echo(f"Retrieval unavailable: {e}", err=True)
        sys.exit(2)

    result = outcome.result
    if as_json:
        payload = result.to_dict()
        payload["latency_ms"] = round(outcome.latency_ms, 1)
        payload["used_lexical_fallback"] = outcome.used_lexical_fallback
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    click.echo(
        f"{len(result.documents)} documents, {len(result.entities)} entities, "
        f"confidence {result.confidence:.3f} ({outcome.latency_ms:.0f} ms)"
    )
    for i, doc in enumerate(result.documents, 1):
        click.echo(f"  {i}. [{doc.score:.3f}] {doc.id} ({doc.origin}) {doc.content[:80]}")
    for entity in result.entities:
        click.echo(f"  * {entity.name} ({entity.type})")


@cli.command("health")
def health():
    """Check the configured vector and graph stores."""
    async def _run():
        engine = build_engine(None, "http")
        async with engine:
            return await engine.health_check()

    status = run_async(_run())
    click.echo(json.dumps(status, indent=2))
    if not all(v for k, v in status.items() if isinstance(v, bool)):
        sys.exit(1)


if __name__ == "__main__":
    cli()
