# Base exception class
from .base import DynamoDBOrmError

from .domain_exceptions import (
    ValidationError,
    KeyDefinitionError,
    ItemNotFoundError,
    NotFoundError,
    ConflictError,
    ConnectionError,
    RetryableError,
)

__all__ = [
    # Base exception
    "DynamoDBOrmError",

    # Domain exceptions (alphabetically ordered)
    "ConflictError",
    "ConnectionError",
    "ItemNotFoundError",
    "KeyDefinitionError",
    "NotFoundError",
    "RetryableError",
    "ValidationError",
]
