"""
Static index schema for the catalog projection.

Field types are declared explicitly so the index never infers a mapping
from the first document it receives.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from catalog_search.config.index_config import SchemaConfig


class FieldType(str, Enum):
    """Index field types used by the catalog projection."""
    
    KEYWORD = "keyword"    # Exact match, sortable
    TEXT = "text"          # Analyzed full text
    DOUBLE = "double"
    INTEGER = "integer"
    DATE = "date"


class FieldSpec(BaseModel):
    """Mapping for a single field."""
    
    model_config = ConfigDict(frozen=True)
    
    type: FieldType
    keyword_subfield: bool = False  # Parallel exact-match "<field>.keyword"
    
    def to_mapping(self) -> Dict[str, Any]:
        mapping: Dict[str, Any] = {"type": self.type.value}
        if self.keyword_subfield:
            mapping["fields"] = {"keyword": {"type": FieldType.KEYWORD.value}}
        return mapping


class IndexSchema(BaseModel):
    """Immutable field mapping plus index-level settings."""
    
    model_config = ConfigDict(frozen=True)
    
    fields: Dict[str, FieldSpec]
    number_of_shards: int = Field(default=1, ge=1)
    number_of_replicas: int = Field(default=1, ge=0)
    max_result_window: int = Field(default=10000, ge=1)
    
    def mappings(self) -> Dict[str, Any]:
        """Explicit mapping body; unknown fields are rejected."""
        return {
            "dynamic": "strict",
            "properties": {
                name: spec.to_mapping() for name, spec in self.fields.items()
            },
        }
    
    def index_settings(self) -> Dict[str, Any]:
        return {
            "number_of_shards": self.number_of_shards,
            "number_of_replicas": self.number_of_replicas,
            "max_result_window": self.max_result_window,
        }
    
    def field_type(self, name: str) -> FieldType:
        return self.fields[name].type


CATALOG_FIELDS = MappingProxyType({
    "product_id": FieldSpec(type=FieldType.KEYWORD),
    "product_name": FieldSpec(type=FieldType.TEXT, keyword_subfield=True),
    "unit_price": FieldSpec(type=FieldType.DOUBLE),
    "units_in_stock": FieldSpec(type=FieldType.INTEGER),
    "category_id": FieldSpec(type=FieldType.KEYWORD),
    "user_id": FieldSpec(type=FieldType.KEYWORD),
    "created_by": FieldSpec(type=FieldType.KEYWORD),
    "created_date": FieldSpec(type=FieldType.DATE),
})


def catalog_schema(config: SchemaConfig = None) -> IndexSchema:
    """Build the schema for the catalog index."""
    config = config or SchemaConfig()
    return IndexSchema(
        fields=dict(CATALOG_FIELDS),
        number_of_shards=config.number_of_shards,
        number_of_replicas=config.number_of_replicas,
        max_result_window=config.max_result_window,
    )
