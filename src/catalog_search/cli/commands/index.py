"""
CLI commands for index rebuild, search and diagnostics.
"""

import json
import sys
from typing import Optional

import click
from loguru import logger

from ...config import IndexingConfig, settings
from ...exceptions import CatalogSearchError, ConsistencyMismatch
from ...schemas.reindex import ReindexStatus
from ...service import CatalogSearchService, build_service
from ...sources.seed import seed_test_data


def _service(batch_size: Optional[int] = None, workers: Optional[int] = None) -> CatalogSearchService:
    config = IndexingConfig()
    if batch_size:
        config.bulk.batch_size = batch_size
    if workers:
        config.bulk.max_workers = workers
    return build_service(settings, config)


@click.command(name="reindex")
@click.option("--batch-size", type=int, default=None, help="Documents per bulk request")
@click.option("--workers", type=int, default=None, help="Concurrent bulk requests")
@click.option("--strict", is_flag=True, help="Exit non-zero on a count mismatch")
def reindex(batch_size: Optional[int], workers: Optional[int], strict: bool):
    """Rebuild the search index from the catalog."""
    service = _service(batch_size, workers)
    report = service.trigger_reindex()
    
    click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    
    if report.status == ReindexStatus.FAILED:
        sys.exit(1)
    
    if strict and report.verification is not None:
        try:
            report.verification.raise_for_mismatch()
        except ConsistencyMismatch as e:
            logger.error(f"Strict mode: {e}")
            sys.exit(2)


@click.command(name="count")
def count():
    """Print the number of documents in the index."""
    service = _service()
    try:
        click.echo(service.get_document_count())
    except CatalogSearchError as e:
        logger.error(f"Cannot count documents: {e}")
        sys.exit(1)


@click.command(name="search")
@click.option("--name", default=None, help="Text matched against product names")
@click.option("--min-price", type=float, default=None, help="Lower price bound (needs --max-price)")
@click.option("--max-price", type=float, default=None, help="Upper price bound (needs --min-price)")
@click.option("--page", "page_number", type=int, default=1, show_default=True)
@click.option("--size", "page_size", type=int, default=10, show_default=True)
def search(name, min_price, max_price, page_number, page_size):
    """Search the catalog index."""
    service = _service()
    result = service.search(name, min_price, max_price, page_number, page_size)
    
    click.echo(json.dumps(result.model_dump(mode="json"), indent=2))


@click.command(name="ping")
def ping():
    """Check the connection to the search cluster."""
    service = _service()
    if service.ping():
        click.echo(f"Connected to Elasticsearch at {settings.elastic_uri}")
    else:
        click.echo(f"Failed to connect to Elasticsearch at {settings.elastic_uri}", err=True)
        sys.exit(1)


@click.command(name="seed")
@click.option("--size", type=int, default=10000, show_default=True, help="Target catalog size")
def seed(size: int):
    """Fill the catalog with synthetic test products."""
    service = _service()
    added = seed_test_data(service.source, size)
    click.echo(f"Added {added} records")


@click.command(name="benchmark")
@click.option("--iterations", type=int, default=10, show_default=True)
@click.option("--json-output", is_flag=True, help="Print the full report as JSON")
def benchmark(iterations: int, json_output: bool):
    """Compare catalog and index query latency."""
    service = _service()
    report = service.benchmark().compare(iterations)
    
    if json_output:
        click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        click.echo(report.summary)


index_commands = [reindex, count, search, ping, seed, benchmark]
