"""
Unified indexing configuration for catalog search.

Centralizes schema settings, bulk streaming, retry/backoff and query
paging defaults used by the rebuild and search paths.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any


def _default_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class SchemaConfig:
    """Index-level settings applied when the index is created."""
    
    number_of_shards: int = 1
    number_of_replicas: int = 1
    max_result_window: int = 10000  # Deepest page reachable with from/size


@dataclass
class BulkConfig:
    """Bulk streaming configuration for full rebuilds."""
    
    # Batching
    batch_size: int = 1000  # Documents per bulk request
    max_workers: int = field(default_factory=_default_workers)
    
    # Retry settings
    backoff_seconds: float = 15.0  # Fixed wait between attempts
    max_retries: int = 2  # Retries per batch after the first attempt
    continue_on_drop: bool = True
    
    # Completion
    refresh_on_completed: bool = True
    refresh_grace_seconds: float = 1.0
    completion_timeout_seconds: float = 3600.0


@dataclass
class QueryConfig:
    """Search paging and ordering defaults."""
    
    default_page_size: int = 10
    sort_field: str = "product_id"
    sort_order: str = "asc"


@dataclass
class IndexingConfig:
    """
    Master configuration combining all indexing settings.
    
    Usage:
        config = IndexingConfig()
        config.bulk.batch_size = 500
        
        # Or use a preset
        config = IndexingConfig.for_tests()
    """
    
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    bulk: BulkConfig = field(default_factory=BulkConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    
    @classmethod
    def for_tests(cls) -> "IndexingConfig":
        """Configuration without waits, for in-process runs."""
        config = cls()
        config.bulk.backoff_seconds = 0.0
        config.bulk.refresh_grace_seconds = 0.0
        config.bulk.completion_timeout_seconds = 30.0
        return config
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        from dataclasses import asdict
        return asdict(self)
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexingConfig":
        """Create configuration from dictionary."""
        return cls(
            schema=SchemaConfig(**data.get("schema", {})),
            bulk=BulkConfig(**data.get("bulk", {})),
            query=QueryConfig(**data.get("query", {})),
        )


# Default configuration instance
default_config = IndexingConfig()
