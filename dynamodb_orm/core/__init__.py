"""
Core infrastructure components for DynamoDB operations.

- TableGateway: Thin wrapper over the low-level boto3 DynamoDB client
- map_dynamodb_error: ClientError -> domain exception mapping
"""

from .table_gateway import TableGateway, create_table_gateway, map_dynamodb_error

__all__ = [
    "TableGateway",
    "create_table_gateway",
    "map_dynamodb_error",
]
