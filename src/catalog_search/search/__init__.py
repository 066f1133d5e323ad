"""
Index rebuild and search components.
"""

from catalog_search.search.completion_signal import BatchCompletionSignal, SignalTimeout
from catalog_search.search.bulk_stream import BulkStream, partition
from catalog_search.search.consistency import ConsistencyVerifier
from catalog_search.search.query_engine import SearchQueryEngine
from catalog_search.search.index_builder import IndexBuilder

__all__ = [
    "BatchCompletionSignal",
    "SignalTimeout",
    "BulkStream",
    "partition",
    "ConsistencyVerifier",
    "SearchQueryEngine",
    "IndexBuilder",
]
