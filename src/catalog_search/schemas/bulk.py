"""
Bulk indexing schemas.

A BulkBatch is one unit submitted to the index client; a BulkResponse is
the client's per-item answer to one request; a BatchOutcome is the
terminal result of a batch after retries.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from catalog_search.schemas.catalog import IndexDocument

# Item statuses the cluster returns when it is shedding load
RETRYABLE_STATUSES = frozenset({429})


class BulkBatch(BaseModel):
    """Ordered group of documents submitted together."""
    
    sequence: int
    documents: List[IndexDocument]
    
    @property
    def size(self) -> int:
        return len(self.documents)


class BulkItemFailure(BaseModel):
    """A single rejected document within a bulk request."""
    
    doc_id: str
    status: int
    reason: str = ""
    
    @property
    def retryable(self) -> bool:
        return self.status in RETRYABLE_STATUSES


class BulkResponse(BaseModel):
    """Per-item result of one bulk request."""
    
    indexed: int = 0
    failures: List[BulkItemFailure] = Field(default_factory=list)
    took_ms: Optional[int] = None
    
    @property
    def retryable_failures(self) -> List[BulkItemFailure]:
        return [f for f in self.failures if f.retryable]
    
    @property
    def permanent_failures(self) -> List[BulkItemFailure]:
        return [f for f in self.failures if not f.retryable]


class BatchStatus(str, Enum):
    """Terminal per-batch outcome."""
    
    INDEXED = "indexed"
    PARTIALLY_DROPPED = "partially_dropped"
    FAILED = "failed"


class BatchOutcome(BaseModel):
    """Terminal result of one batch after all retry attempts."""
    
    sequence: int
    status: BatchStatus
    submitted: int
    indexed: int
    dropped: int
    attempts: int = 1
    error: Optional[str] = None
    
    @property
    def item_count(self) -> int:
        """Documents from this batch that reached the index."""
        return self.indexed
