"""Config package for catalog search.

This package combines:
- Settings: pydantic-settings configuration loaded from the environment
- IndexingConfig: schema, bulk streaming and query tunables
"""

from catalog_search.config.settings import Settings, settings
from catalog_search.config.index_config import (
    IndexingConfig,
    SchemaConfig,
    BulkConfig,
    QueryConfig,
    default_config,
)

__all__ = [
    "Settings",
    "settings",
    "IndexingConfig",
    "SchemaConfig",
    "BulkConfig",
    "QueryConfig",
    "default_config",
]
