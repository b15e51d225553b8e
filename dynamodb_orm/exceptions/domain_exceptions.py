"""
Domain-Specific Exceptions for the DynamoDB ORM

All exceptions extend DynamoDBOrmError. Two severities exist in the mapping
layer: per-field encoding problems never raise (the attribute is omitted),
while an untyped key during table or index creation raises
KeyDefinitionError.

Organized by category:
1. Data Validation Errors
2. Resource Not Found Errors
3. Conflict and Conditional Errors
4. Infrastructure and Retry Errors
"""

from typing import Any, Dict, Optional

from .base import DynamoDBOrmError


# =============================================================================
# Data Validation Errors
# =============================================================================

class ValidationError(DynamoDBOrmError):
    """Raised when data validation fails.

    Used for:
    - Items that cannot be materialized into a record type
    - Records that assemble to an empty item
    - Items exceeding the 400KB size limit
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.errors = errors or {}
        context = {
            'validation_errors': self.errors
        }
        super().__init__(message, original_error, context)


class KeyDefinitionError(DynamoDBOrmError):
    """Raised when a key field cannot be declared as a DynamoDB scalar type.

    Table and index creation cannot proceed without a typed key, so unlike
    field encoding this failure is fatal.
    """

    def __init__(self, message: str, record_type: Optional[str] = None, field_name: Optional[str] = None):
        self.record_type = record_type
        self.field_name = field_name
        context = {}
        if record_type:
            context['record_type'] = record_type
        if field_name:
            context['field_name'] = field_name
        super().__init__(message, None, context)


# =============================================================================
# Resource Not Found Errors
# =============================================================================

class ItemNotFoundError(DynamoDBOrmError):
    """Raised when a specific item is not found in DynamoDB."""

    def __init__(self, table_name: str, key: dict, original_error: Optional[Exception] = None):
        self.table_name = table_name
        self.key = key
        message = f"Item not found in table '{table_name}' with key: {key}"
        context = {
            'table_name': table_name,
            'key': key
        }
        super().__init__(message, original_error, context)


class NotFoundError(DynamoDBOrmError):
    """Raised when a DynamoDB resource (table, index) is not found.

    Used for:
    - Table or index not found errors
    - Index names missing from a record type's Meta
    """

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


# =============================================================================
# Conflict and Conditional Errors
# =============================================================================

class ConflictError(DynamoDBOrmError):
    """Raised when a conditional operation fails or a resource already exists."""

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


# =============================================================================
# Infrastructure and Retry Errors
# =============================================================================

class ConnectionError(DynamoDBOrmError):
    """Raised when connection to DynamoDB fails.

    Used for:
    - Network connectivity issues
    - Authentication/authorization failures
    - Batch writes that exhaust their retries
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(DynamoDBOrmError):
    """Raised when an operation fails due to throttling or temporary unavailability."""

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)
