"""
pytest configuration and shared fixtures.
"""

import pytest

from catalog_search.config import IndexingConfig
from catalog_search.service import CatalogSearchService
from catalog_search.sources.base import InMemoryCatalogRepository

from tests.fakes import INDEX_NAME, FakeIndexClient, make_records


@pytest.fixture
def test_config() -> IndexingConfig:
    """Indexing configuration without back-off or grace waits"""
    config = IndexingConfig.for_tests()
    config.bulk.max_workers = 4
    return config


@pytest.fixture
def fake_client() -> FakeIndexClient:
    return FakeIndexClient()


@pytest.fixture
def source() -> InMemoryCatalogRepository:
    """Catalog with 15 records"""
    return InMemoryCatalogRepository(make_records(15))


@pytest.fixture
def service(fake_client, source, test_config) -> CatalogSearchService:
    return CatalogSearchService(fake_client, source, INDEX_NAME, config=test_config)


@pytest.fixture
def populated_service(service) -> CatalogSearchService:
    """Service whose index has been rebuilt from the 15-record catalog"""
    report = service.trigger_reindex()
    assert report.indexed_count == 15
    return service
