"""
Operation surface of the catalog search subsystem.

CatalogSearchService is what an outer layer (HTTP, CLI) calls; it wires
the builder, engine and verifier over one index client and one source.
"""

import threading
from typing import Optional

from loguru import logger

from catalog_search.clients.base import IndexClient
from catalog_search.config import IndexingConfig, Settings
from catalog_search.exceptions import RebuildInProgressError
from catalog_search.schemas.index_schema import IndexSchema, catalog_schema
from catalog_search.schemas.query import SearchResult
from catalog_search.schemas.reindex import ReindexReport, ReindexStatus
from catalog_search.search.benchmark import SearchBenchmark
from catalog_search.search.index_builder import IndexBuilder
from catalog_search.search.query_engine import SearchQueryEngine
from catalog_search.sources.base import SourceRepository


class CatalogSearchService:
    """
    Facade over index rebuild and search.
    
    Rebuilds are serialized: a trigger while another rebuild is running
    returns a Failed report instead of racing on delete/create. Searches
    take no lock and may run during a rebuild.
    """
    
    def __init__(
        self,
        index_client: IndexClient,
        source: SourceRepository,
        index_name: str,
        config: Optional[IndexingConfig] = None,
        schema: Optional[IndexSchema] = None
    ):
        self.index_client = index_client
        self.source = source
        self.index_name = index_name
        self.config = config or IndexingConfig()
        self.schema = schema or catalog_schema(self.config.schema)
        
        self.builder = IndexBuilder(
            index_client,
            source,
            self.schema,
            index_name,
            config=self.config.bulk,
        )
        self.engine = SearchQueryEngine(index_client, index_name, config=self.config.query)
        self._rebuild_lock = threading.Lock()
    
    def rebuild(self, cancel_event: Optional[threading.Event] = None) -> ReindexReport:
        """
        Rebuild the index from the catalog.
        
        Raises:
            RebuildInProgressError: If another rebuild holds the lock
        """
        if not self._rebuild_lock.acquire(blocking=False):
            raise RebuildInProgressError(f"Reindex of '{self.index_name}' already in progress")
        
        try:
            return self.builder.run(cancel_event)
        finally:
            self._rebuild_lock.release()
    
    def trigger_reindex(self, cancel_event: Optional[threading.Event] = None) -> ReindexReport:
        """Rebuild the index from the catalog; never raises."""
        try:
            return self.rebuild(cancel_event)
        except RebuildInProgressError as e:
            logger.warning(str(e))
            return ReindexReport(status=ReindexStatus.FAILED, message=str(e))
    
    @property
    def rebuild_in_progress(self) -> bool:
        return self._rebuild_lock.locked()
    
    def get_document_count(self) -> int:
        """
        Exact unfiltered document count of the index.
        
        Raises:
            IndexUnavailableError: If the index cannot be reached
        """
        return self.engine.document_count()
    
    def search(
        self,
        name: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        page_number: int = 1,
        page_size: int = 10
    ) -> SearchResult:
        """Search the index; returns an empty result instead of raising."""
        return self.engine.search(name, min_price, max_price, page_number, page_size)
    
    def ping(self) -> bool:
        """Check connectivity to the search cluster."""
        return self.index_client.ping()
    
    def benchmark(self) -> SearchBenchmark:
        return SearchBenchmark(self.source, self.engine)


def build_service(
    settings: Settings,
    config: Optional[IndexingConfig] = None
) -> CatalogSearchService:
    """Compose the service from settings with concrete collaborators."""
    from catalog_search.clients.elasticsearch_client import ElasticsearchIndexClient
    from catalog_search.sources.sqlite_repository import SQLiteCatalogRepository
    
    return CatalogSearchService(
        index_client=ElasticsearchIndexClient.from_settings(settings),
        source=SQLiteCatalogRepository(settings.catalog_db_path),
        index_name=settings.index_name,
        config=config,
    )
