"""Read access to the authoritative catalog."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from catalog_search.schemas.catalog import CatalogRecord


class SourceRepository(ABC):
    """Abstract base class for catalog sources."""

    @abstractmethod
    def fetch_all(self) -> List[CatalogRecord]:
        """Return every catalog record."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def fetch_page(self, offset: int, limit: int) -> List[CatalogRecord]:
        """Return records ordered by identifier."""
        pass

    @abstractmethod
    def add_records(self, records: Sequence[CatalogRecord]) -> int:
        """Insert records; returns the number inserted."""
        pass

    @abstractmethod
    def next_id(self) -> int:
        """Identifier to use for the next inserted record."""
        pass


class InMemoryCatalogRepository(SourceRepository):
    """List-backed catalog, for local runs and tests."""

    def __init__(self, records: Sequence[CatalogRecord] = ()):
        self._records = {r.product_id: r for r in records}

    def fetch_all(self) -> List[CatalogRecord]:
        return [self._records[k] for k in sorted(self._records)]

    def count(self) -> int:
        return len(self._records)

    def fetch_page(self, offset: int, limit: int) -> List[CatalogRecord]:
        return self.fetch_all()[offset:offset + limit]

    def add_records(self, records: Sequence[CatalogRecord]) -> int:
        for record in records:
            self._records[record.product_id] = record
        return len(records)

    def next_id(self) -> int:
        return max(self._records, default=0) + 1
