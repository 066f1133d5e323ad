"""Base index client interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from catalog_search.schemas.bulk import BulkResponse
from catalog_search.schemas.catalog import IndexDocument
from catalog_search.schemas.index_schema import IndexSchema
from catalog_search.search.bulk_stream import BulkStream


class IndexClient(ABC):
    """Abstract base class for search index clients.
    
    Implementations raise IndexUnavailableError when the cluster cannot be
    reached or rejects a request outright.
    """

    @abstractmethod
    def index_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def delete_index(self, name: str) -> bool:
        """Delete an index.
        
        Returns:
            True if the deletion was acknowledged
        """
        pass

    @abstractmethod
    def create_index(self, name: str, schema: IndexSchema) -> bool:
        """Create an index with an explicit mapping and settings.
        
        Returns:
            True if the creation was acknowledged
        """
        pass

    @abstractmethod
    def bulk(self, name: str, documents: Sequence[IndexDocument]) -> BulkResponse:
        """Index documents in a single request and report per-item results."""
        pass

    @abstractmethod
    def count(self, name: str, query: Optional[Dict[str, Any]] = None) -> int:
        pass

    @abstractmethod
    def search(
        self,
        name: str,
        query: Dict[str, Any],
        offset: int,
        limit: int,
        sort: Optional[List[Dict[str, Any]]] = None,
        track_total_hits: bool = True
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Run a query.
        
        Returns:
            Tuple of (document sources, total hit count)
        """
        pass

    @abstractmethod
    def refresh(self, name: str) -> None:
        """Make recently indexed documents visible to search and count."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass

    def bulk_stream(
        self,
        name: str,
        documents: Sequence[IndexDocument],
        batch_size: int = 1000,
        max_workers: int = 1,
        backoff_seconds: float = 15.0,
        max_retries: int = 2,
        continue_on_drop: bool = True,
        refresh_on_completed: bool = True
    ) -> BulkStream:
        """Create a bulk stream over this client; call subscribe() to start it."""
        return BulkStream(
            self,
            name,
            documents,
            batch_size=batch_size,
            max_workers=max_workers,
            backoff_seconds=backoff_seconds,
            max_retries=max_retries,
            continue_on_drop=continue_on_drop,
            refresh_on_completed=refresh_on_completed,
        )
