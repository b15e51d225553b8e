"""
DynamoDB ORM

Maps plain records (pydantic models or dataclasses) to DynamoDB items and
back: create tables and indexes from record types, then put, get, query and
index-query records without hand-building wire requests.
"""

from .config import DynamoDBConfig
from .exceptions import (
    ConflictError,
    ConnectionError,
    DynamoDBOrmError,
    ItemNotFoundError,
    KeyDefinitionError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from .mapping import (
    AttributeEncoder,
    KeyDefinition,
    NamingPolicy,
    SemanticKind,
    define_key,
    item_to_record,
    resolve_table_name,
    to_camel_case,
    to_plural,
)
from .models import CreateTableResult, IndexDefinition, Response, TableMeta
from .store import DynamoDbStore

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",

    # Exceptions
    "ConflictError",
    "ConnectionError",
    "DynamoDBOrmError",
    "ItemNotFoundError",
    "KeyDefinitionError",
    "NotFoundError",
    "RetryableError",
    "ValidationError",

    # Mapping
    "AttributeEncoder",
    "KeyDefinition",
    "NamingPolicy",
    "SemanticKind",
    "define_key",
    "item_to_record",
    "resolve_table_name",
    "to_camel_case",
    "to_plural",

    # Table metadata and results
    "CreateTableResult",
    "IndexDefinition",
    "Response",
    "TableMeta",

    # Store
    "DynamoDbStore",
]
