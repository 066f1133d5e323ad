"""
Catalog record and index document schemas.

CatalogRecord mirrors a row of the authoritative catalog; IndexDocument is
its denormalized projection into the search index.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogRecord(BaseModel):
    """One sellable item as stored in the authoritative catalog."""
    
    model_config = ConfigDict(frozen=True)
    
    product_id: int
    # No range or length checks: the catalog validates its own rows
    product_name: str
    unit_price: float
    units_in_stock: int
    category_id: int
    
    # Audit fields
    user_id: str = ""
    created_by: str = ""
    created_date: datetime = Field(default_factory=datetime.now)


class IndexDocument(BaseModel):
    """Search-optimized projection of a CatalogRecord."""
    
    product_id: str
    product_name: str
    unit_price: float
    units_in_stock: int
    category_id: str
    user_id: str = ""
    created_by: str = ""
    created_date: Optional[datetime] = None
    
    @classmethod
    def from_record(cls, record: CatalogRecord) -> "IndexDocument":
        """Project a catalog record into index field types."""
        return cls(
            product_id=str(record.product_id),
            product_name=record.product_name,
            unit_price=float(record.unit_price),
            units_in_stock=record.units_in_stock,
            category_id=str(record.category_id),
            user_id=record.user_id,
            created_by=record.created_by,
            created_date=record.created_date,
        )
    
    @property
    def doc_id(self) -> str:
        """Document id in the index (same as the catalog identifier)."""
        return self.product_id
    
    def to_source(self) -> Dict[str, Any]:
        """Serialize to the JSON body stored in the index."""
        return self.model_dump(mode="json")
    
    @classmethod
    def from_source(cls, source: Dict[str, Any]) -> "IndexDocument":
        """Rebuild a document from an index hit's _source."""
        return cls.model_validate(source)
