"""Index client interface and implementations."""

from catalog_search.clients.base import IndexClient
from catalog_search.clients.elasticsearch_client import (
    ElasticsearchIndexClient,
    build_es_client,
)

__all__ = ["IndexClient", "ElasticsearchIndexClient", "build_es_client"]
