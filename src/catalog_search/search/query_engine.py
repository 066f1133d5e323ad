"""
Filtered, paginated catalog search against the index.

Read path only; failures are logged and turned into empty results so
search availability does not depend on index health.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from loguru import logger

from catalog_search.config.index_config import QueryConfig
from catalog_search.exceptions import QueryExecutionFailed
from catalog_search.schemas.catalog import IndexDocument
from catalog_search.schemas.query import SearchQuery, SearchResult

if TYPE_CHECKING:
    from catalog_search.clients.base import IndexClient

ID_FIELD = "product_id"
NAME_FIELD = "product_name"
PRICE_FIELD = "unit_price"


class SearchQueryEngine:
    """
    Translates SearchQuery objects into index queries.
    
    Features:
    - Conjunctive name match on the analyzed name field
    - Inclusive price range when both bounds are given
    - Exact total-hit counts
    - Stable sort so pages never overlap or skip documents
    """
    
    def __init__(
        self,
        index_client: "IndexClient",
        index_name: str,
        config: Optional[QueryConfig] = None
    ):
        """
        Initialize query engine.
        
        Args:
            index_client: Client for the search index
            index_name: Index to query
            config: Paging and sort defaults
        """
        self.index_client = index_client
        self.index_name = index_name
        self.config = config or QueryConfig()
    
    def build_query(self, query: SearchQuery) -> Dict[str, Any]:
        """
        Build the query body for a SearchQuery.
        
        When only one price bound is set, no range clause is added.
        """
        must: List[Dict[str, Any]] = []
        
        if query.has_name_filter:
            must.append({"match": {NAME_FIELD: {"query": query.name}}})
        
        if query.has_price_range:
            must.append({"range": {PRICE_FIELD: {
                "gte": query.min_price,
                "lte": query.max_price,
            }}})
        
        if not must:
            return {"match_all": {}}
        return {"bool": {"must": must}}
    
    def build_sort(self, query: SearchQuery) -> List[Dict[str, Any]]:
        return [{query.sort_field: {"order": query.sort_order}}]
    
    def execute(self, query: SearchQuery) -> SearchResult:
        """
        Run a query.
        
        Raises:
            QueryExecutionFailed: If the index cannot answer
        """
        body = self.build_query(query)
        
        try:
            sources, total_hits = self.index_client.search(
                self.index_name,
                body,
                offset=query.offset,
                limit=query.limit,
                sort=self.build_sort(query),
                track_total_hits=True,
            )
            documents = [IndexDocument.from_source(source) for source in sources]
        except Exception as e:
            raise QueryExecutionFailed(f"Search on '{self.index_name}' failed: {e}") from e
        
        return SearchResult(documents=documents, total_hits=total_hits)
    
    def search(
        self,
        name: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        page_number: int = 1,
        page_size: Optional[int] = None
    ) -> SearchResult:
        """
        Search the catalog index.
        
        Args:
            name: Text matched against the product name
            min_price: Lower price bound (needs max_price)
            max_price: Upper price bound (needs min_price)
            page_number: 1-based page (clamped to >= 1)
            page_size: Documents per page (clamped to >= 1)
            
        Returns:
            SearchResult, empty if the query could not be executed
        """
        query = SearchQuery(
            name=name,
            min_price=min_price,
            max_price=max_price,
            page_number=page_number,
            page_size=page_size if page_size is not None else self.config.default_page_size,
            sort_field=self.config.sort_field,
            sort_order=self.config.sort_order,
        )
        return self.run(query)
    
    def run(self, query: SearchQuery) -> SearchResult:
        """Execute a prepared query, absorbing failures."""
        try:
            result = self.execute(query)
        except QueryExecutionFailed as e:
            logger.error(f"Returning empty result: {e}")
            return SearchResult.empty()
        
        logger.info(
            f"Found {len(result)} of {result.total_hits} documents "
            f"(page {query.page_number}, size {query.page_size})"
        )
        return result
    
    def fetch_documents(self, doc_ids: Sequence[Any]) -> List[IndexDocument]:
        """
        Fetch the documents with the given ids, in the order given.
        
        Ids missing from the index are skipped; failures return an empty list.
        """
        if not doc_ids:
            return []
        
        ids = [str(doc_id) for doc_id in doc_ids]
        try:
            sources, _ = self.index_client.search(
                self.index_name,
                {"terms": {ID_FIELD: ids}},
                offset=0,
                limit=len(ids),
                track_total_hits=False,
            )
        except Exception as e:
            logger.error(f"Fetching {len(ids)} documents from '{self.index_name}' failed: {e}")
            return []
        
        by_id = {source[ID_FIELD]: IndexDocument.from_source(source) for source in sources}
        return [by_id[doc_id] for doc_id in ids if doc_id in by_id]
    
    def document_count(self) -> int:
        """Exact number of documents currently visible in the index."""
        return self.index_client.count(self.index_name)
