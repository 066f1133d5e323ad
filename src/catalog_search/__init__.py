"""
Catalog search: rebuild a search index from the authoritative catalog and
serve paginated, filtered queries against it.
"""

__version__ = "1.0.0"

from catalog_search.service import CatalogSearchService, build_service

__all__ = ["CatalogSearchService", "build_service", "__version__"]
