"""
Custom exception hierarchy for catalog search.

All exceptions inherit from CatalogSearchError base class.
"""


class CatalogSearchError(Exception):
    """Base exception for all catalog search errors"""
    pass


class IndexUnavailableError(CatalogSearchError):
    """Index client could not reach the search cluster"""
    pass


class SourceRepositoryError(CatalogSearchError):
    """Error while reading or writing the authoritative catalog"""
    pass


class IndexTeardownFailed(CatalogSearchError):
    """Existing index could not be deleted before a rebuild"""
    pass


class SchemaCreationFailed(CatalogSearchError):
    """Index could not be created from the schema"""
    pass


class BulkPartialFailure(CatalogSearchError):
    """One or more documents were dropped by the bulk stream"""

    def __init__(self, dropped: int, message: str = None):
        self.dropped = dropped
        super().__init__(message or f"{dropped} documents dropped during bulk indexing")


class ConsistencyMismatch(CatalogSearchError):
    """Index document count differs from the source record count"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Only {actual} of {expected} records were indexed")


class QueryExecutionFailed(CatalogSearchError):
    """Search query could not be executed against the index"""
    pass


class RebuildInProgressError(CatalogSearchError):
    """A rebuild was requested while another one is running"""
    pass


class InvalidStateTransition(CatalogSearchError):
    """Reindex job was moved to a state not reachable from its current one"""
    pass
