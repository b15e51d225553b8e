"""
Table Metadata and Result Models

Record types describe their table through an inner ``Meta`` class:

```python
class Order(BaseModel):
    customer_id: str
    order_id: str
    status: str = ""

    class Meta(TableMeta):
        table_name = "orders"          # optional, bypasses pluralization
        partition_key = "customer_id"
        sort_key = "order_id"
        indexes = [
            IndexDefinition(name="StatusIndex", partition_key="status", sort_key="order_id")
        ]
```

Nothing here is required: a record type without ``Meta`` gets a derived
table name and its keys are supplied per call.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict


# =============================================================================
# DynamoDB Table Metadata Classes
# =============================================================================

class IndexDefinition:
    """Defines a Global Secondary Index for DynamoDB."""
    def __init__(
        self,
        name: str,
        partition_key: str,
        sort_key: Optional[str] = None,
        projection: Optional[List[str]] = None
    ):
        self.name = name
        self.partition_key = partition_key
        self.sort_key = sort_key
        self.projection = projection  # None means ALL attributes

    def __repr__(self) -> str:
        return f"IndexDefinition(name={self.name!r}, partition_key={self.partition_key!r}, sort_key={self.sort_key!r})"


class TableMeta:
    """Base class for table metadata definitions."""
    table_name: Optional[str] = None
    partition_key: Optional[str] = None
    sort_key: Optional[str] = None
    indexes: List[IndexDefinition] = []


def extract_table_metadata(record_type: Type[Any]) -> Dict[str, Any]:
    """Extract table metadata from a record type's Meta class.

    Unlike key building for a fixed schema, Meta is optional here: every
    entry falls back to None (or an empty index list).

    Example:
        >>> extract_table_metadata(Order)['partition_key']
        'customer_id'
    """
    meta = getattr(record_type, 'Meta', None)
    return {
        'table_name': getattr(meta, 'table_name', None),
        'partition_key': getattr(meta, 'partition_key', None),
        'sort_key': getattr(meta, 'sort_key', None),
        'indexes': list(getattr(meta, 'indexes', None) or []),
    }


def get_index_definition(record_type: Type[Any], index_name: str) -> Optional[IndexDefinition]:
    for index in extract_table_metadata(record_type)['indexes']:
        if index.name == index_name:
            return index
    return None


# =============================================================================
# Operation Results
# =============================================================================

class Response(BaseModel):
    """Outcome of a single write or delete call."""

    status_code: int = 200
    message: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CreateTableResult(BaseModel):
    """Outcome of a create_table or create_index call."""

    status_code: int = 200
    table_name: str
    index_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)
