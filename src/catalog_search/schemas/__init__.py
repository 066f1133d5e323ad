"""
Pydantic schemas for catalog records, index documents, jobs and queries.
"""

from catalog_search.schemas.catalog import CatalogRecord, IndexDocument
from catalog_search.schemas.index_schema import (
    FieldType,
    FieldSpec,
    IndexSchema,
    catalog_schema,
)
from catalog_search.schemas.bulk import (
    BulkBatch,
    BulkItemFailure,
    BulkResponse,
    BatchStatus,
    BatchOutcome,
)
from catalog_search.schemas.reindex import (
    ReindexState,
    ReindexStatus,
    ReindexJob,
    ReindexReport,
    VerificationResult,
)
from catalog_search.schemas.query import SearchQuery, SearchResult
from catalog_search.schemas.benchmark import (
    TimingStats,
    BenchmarkResult,
    RecordSummary,
    RecordAnalysis,
    BenchmarkReport,
)

__all__ = [
    "CatalogRecord",
    "IndexDocument",
    "FieldType",
    "FieldSpec",
    "IndexSchema",
    "catalog_schema",
    "BulkBatch",
    "BulkItemFailure",
    "BulkResponse",
    "BatchStatus",
    "BatchOutcome",
    "ReindexState",
    "ReindexStatus",
    "ReindexJob",
    "ReindexReport",
    "VerificationResult",
    "SearchQuery",
    "SearchResult",
    "TimingStats",
    "BenchmarkResult",
    "RecordSummary",
    "RecordAnalysis",
    "BenchmarkReport",
]
