"""Authoritative catalog sources."""

from catalog_search.sources.base import SourceRepository, InMemoryCatalogRepository
from catalog_search.sources.sqlite_repository import SQLiteCatalogRepository
from catalog_search.sources.seed import seed_test_data

__all__ = [
    "SourceRepository",
    "InMemoryCatalogRepository",
    "SQLiteCatalogRepository",
    "seed_test_data",
]
