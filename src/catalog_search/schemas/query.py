"""
Search query and result schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from catalog_search.schemas.catalog import IndexDocument


class SearchQuery(BaseModel):
    """
    Filtered, paginated catalog query.
    
    Page number and size are clamped to at least 1 on construction, so a
    SearchQuery can never describe an out-of-range request.
    """
    
    name: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    page_number: int = 1
    page_size: int = 10
    sort_field: str = "product_id"
    sort_order: str = "asc"
    
    @field_validator("page_number", "page_size", mode="before")
    @classmethod
    def _clamp_to_one(cls, value):
        if value is None:
            return 1
        return max(1, int(value))
    
    @property
    def has_name_filter(self) -> bool:
        return bool(self.name and self.name.strip())
    
    @property
    def has_price_range(self) -> bool:
        # Range only applies when both bounds are given
        return self.min_price is not None and self.max_price is not None
    
    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size
    
    @property
    def limit(self) -> int:
        return self.page_size


class SearchResult(BaseModel):
    """One page of matching documents plus the exact total hit count."""
    
    documents: List[IndexDocument] = Field(default_factory=list)
    total_hits: int = 0
    
    @classmethod
    def empty(cls) -> "SearchResult":
        return cls()
    
    def __len__(self) -> int:
        return len(self.documents)
