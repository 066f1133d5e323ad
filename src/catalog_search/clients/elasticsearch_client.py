"""
Elasticsearch-backed index client.

Wraps the official elasticsearch client and converts its errors into
IndexUnavailableError so callers deal with one failure type.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from elasticsearch import ApiError, Elasticsearch, TransportError
from loguru import logger

from catalog_search.clients.base import IndexClient
from catalog_search.config import Settings
from catalog_search.exceptions import IndexUnavailableError
from catalog_search.schemas.bulk import BulkItemFailure, BulkResponse
from catalog_search.schemas.catalog import IndexDocument
from catalog_search.schemas.index_schema import IndexSchema

_SUCCESS_STATUSES = (200, 201)


def build_es_client(settings: Settings) -> Elasticsearch:
    """Create the low-level Elasticsearch client from settings."""
    return Elasticsearch(
        settings.elastic_uri,
        basic_auth=settings.elastic_basic_auth,
        request_timeout=settings.elastic_request_timeout,
        verify_certs=settings.elastic_verify_certs,
    )


def _describe(error: Exception) -> str:
    if isinstance(error, ApiError):
        return f"{error.meta.status} {error.message}"
    if isinstance(error, TransportError):
        # str() of a transport error is only its class summary
        description = f"{type(error).__name__}: {error.message}"
        if error.errors:
            causes = ", ".join(str(cause) for cause in error.errors)
            description = f"{description} (caused by: {causes})"
        return description
    return str(error)


class ElasticsearchIndexClient(IndexClient):
    """Index client for an Elasticsearch cluster."""

    def __init__(self, client: Elasticsearch):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticsearchIndexClient":
        logger.info(f"Connecting to Elasticsearch at {settings.elastic_uri}")
        return cls(build_es_client(settings))

    def index_exists(self, name: str) -> bool:
        try:
            return bool(self.client.indices.exists(index=name))
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Cannot check index '{name}': {_describe(e)}") from e

    def delete_index(self, name: str) -> bool:
        try:
            response = self.client.indices.delete(index=name)
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Cannot delete index '{name}': {_describe(e)}") from e
        return bool(response.body.get("acknowledged", False))

    def create_index(self, name: str, schema: IndexSchema) -> bool:
        try:
            response = self.client.indices.create(
                index=name,
                settings=schema.index_settings(),
                mappings=schema.mappings(),
            )
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Cannot create index '{name}': {_describe(e)}") from e
        return bool(response.body.get("acknowledged", False))

    def bulk(self, name: str, documents: Sequence[IndexDocument]) -> BulkResponse:
        if not documents:
            return BulkResponse()
        
        operations: List[Dict[str, Any]] = []
        for doc in documents:
            operations.append({"index": {"_index": name, "_id": doc.doc_id}})
            operations.append(doc.to_source())
        
        try:
            response = self.client.bulk(operations=operations, refresh=False)
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Bulk request to '{name}' failed: {_describe(e)}") from e
        
        body = response.body
        indexed = 0
        failures = []
        for item in body.get("items", []):
            result = item.get("index", {})
            status = result.get("status", 0)
            if status in _SUCCESS_STATUSES:
                indexed += 1
                continue
            
            error = result.get("error") or {}
            failures.append(BulkItemFailure(
                doc_id=str(result.get("_id", "")),
                status=status,
                reason=error.get("reason", "") if isinstance(error, dict) else str(error),
            ))
        
        return BulkResponse(indexed=indexed, failures=failures, took_ms=body.get("took"))

    def count(self, name: str, query: Optional[Dict[str, Any]] = None) -> int:
        try:
            response = self.client.count(index=name, query=query)
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Cannot count '{name}': {_describe(e)}") from e
        return int(response.body["count"])

    def search(
        self,
        name: str,
        query: Dict[str, Any],
        offset: int,
        limit: int,
        sort: Optional[List[Dict[str, Any]]] = None,
        track_total_hits: bool = True
    ) -> Tuple[List[Dict[str, Any]], int]:
        try:
            response = self.client.search(
                index=name,
                query=query,
                from_=offset,
                size=limit,
                sort=sort,
                track_total_hits=track_total_hits,
            )
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Search on '{name}' failed: {_describe(e)}") from e
        
        hits = response.body.get("hits", {})
        total = hits.get("total", {})
        total_hits = total.get("value", 0) if isinstance(total, dict) else int(total)
        
        return [hit["_source"] for hit in hits.get("hits", [])], total_hits

    def refresh(self, name: str) -> None:
        try:
            self.client.indices.refresh(index=name)
        except (ApiError, TransportError) as e:
            raise IndexUnavailableError(f"Cannot refresh '{name}': {_describe(e)}") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except (ApiError, TransportError) as e:
            logger.warning(f"Elasticsearch ping failed: {_describe(e)}")
            return False
