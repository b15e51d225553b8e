"""
Thin DynamoDB Client Gateway

This module wraps the low-level boto3 DynamoDB client. The mapping layer
produces attribute values in the client's wire shape (``{"S": "..."}``), so
the gateway passes requests through unchanged and only adds:

- Lazy session/client creation from DynamoDBConfig
- Consistent ClientError -> domain exception mapping
- Logging of completed writes and table operations

The gateway does not know about records; DynamoDbStore builds every request.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..config import DynamoDBConfig
from ..exceptions import (
    ConnectionError,
    ConflictError,
    ItemNotFoundError,
    NotFoundError,
    ValidationError,
    RetryableError
)

logger = logging.getLogger(__name__)


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map DynamoDB ClientError to domain-specific exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional resource identifier for context

    Returns:
        Appropriate domain exception
    """
    error_code = error.response['Error']['Code']
    error_message = error.response['Error'].get('Message', '')

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code == 'ResourceNotFoundException':
        if resource_id:
            return ItemNotFoundError(table_name, {'resource_id': resource_id}, original_error=error)
        else:
            return NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code == 'ValidationException':
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ['ProvisionedThroughputExceededException', 'RequestLimitExceeded', 'ThrottlingException']:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in ['InternalServerError', 'ServiceUnavailable']:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in ['UnrecognizedClientException', 'AccessDeniedException']:
        return ConnectionError(f"Authentication/authorization failed - {full_message}", original_error=error)

    elif error_code == 'ItemCollectionSizeLimitExceededException':
        return ValidationError(f"Item collection size limit exceeded - {full_message}", original_error=error)

    elif error_code == 'LimitExceededException':
        return ValidationError(f"DynamoDB limit exceeded - {full_message}", original_error=error)

    elif error_code in ['ResourceInUseException', 'TableAlreadyExistsException']:
        return ConflictError(f"Resource in use - {full_message}", resource_id or table_name, original_error=error)

    elif error_code in ['TableNotFoundException', 'IndexNotFoundException']:
        return NotFoundError(f"Resource not found - {full_message}", 'index' if resource_id else 'table',
                             resource_id or table_name, original_error=error)

    elif error_code in ['ExpiredTokenException', 'InvalidSignatureException']:
        return ConnectionError(f"Invalid or expired credentials - {full_message}", original_error=error)

    elif error_code in ['RequestTimeoutException', 'RequestExpiredException']:
        return RetryableError(f"Request timeout - {full_message}", original_error=error)

    # Default to ConnectionError for unknown errors
    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


class TableGateway:
    """
    Thin gateway over the low-level DynamoDB client.

    One method per wire call; every method takes and returns wire-shaped
    dictionaries and raises domain exceptions instead of ClientError.
    """

    def __init__(self, config: DynamoDBConfig, client=None):
        """Initialize gateway.

        Args:
            config: DynamoDB configuration
            client: Pre-built boto3 DynamoDB client (built lazily from config if None)
        """
        self.config = config
        self._client = client

    @property
    def client(self):
        """Lazy initialization of the DynamoDB client."""
        if self._client is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                client_kwargs = {
                    'region_name': self.config.region_name,
                    'config': Config(
                        retries={'max_attempts': self.config.retries},
                        max_pool_connections=self.config.max_pool_connections,
                        read_timeout=self.config.timeout_seconds,
                        connect_timeout=self.config.timeout_seconds
                    )
                }
                if self.config.endpoint_url:
                    client_kwargs['endpoint_url'] = self.config.endpoint_url

                self._client = session.client('dynamodb', **client_kwargs)
            except Exception as e:
                logger.error(f"Failed to create DynamoDB client: {e}")
                raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._client

    def create_table(self, **kwargs) -> Dict[str, Any]:
        table_name = kwargs.get('TableName', '')
        try:
            response = self.client.create_table(**kwargs)
            logger.info(f"Created table {table_name}")
            return response
        except ClientError as e:
            raise map_dynamodb_error(e, "CreateTable", table_name) from e

    def update_table(self, **kwargs) -> Dict[str, Any]:
        table_name = kwargs.get('TableName', '')
        try:
            response = self.client.update_table(**kwargs)
            logger.info(f"Updated table {table_name}")
            return response
        except ClientError as e:
            raise map_dynamodb_error(e, "UpdateTable", table_name) from e

    def describe_table(self, table_name: str) -> Dict[str, Any]:
        try:
            return self.client.describe_table(TableName=table_name)
        except ClientError as e:
            raise map_dynamodb_error(e, "DescribeTable", table_name) from e

    def table_exists(self, table_name: str) -> bool:
        """True when DescribeTable finds the table."""
        try:
            self.describe_table(table_name)
            return True
        except NotFoundError:
            return False

    def put_item(self, table_name: str, item: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        try:
            response = self.client.put_item(TableName=table_name, Item=item, **kwargs)
            logger.info(f"Put item in {table_name}: {sorted(item)}")
            return response
        except ClientError as e:
            raise map_dynamodb_error(e, "PutItem", table_name) from e

    def get_item(self, table_name: str, key: Dict[str, Any], **kwargs) -> Optional[Dict[str, Any]]:
        """Return the item in wire shape, or None when absent."""
        try:
            response = self.client.get_item(TableName=table_name, Key=key, **kwargs)
            return response.get('Item')
        except ClientError as e:
            raise map_dynamodb_error(e, "GetItem", table_name) from e

    def delete_item(self, table_name: str, key: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        try:
            response = self.client.delete_item(TableName=table_name, Key=key, **kwargs)
            logger.info(f"Deleted item from {table_name}: {key}")
            return response
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteItem", table_name) from e

    def query(self, **kwargs) -> Dict[str, Any]:
        """
        Execute DynamoDB Query operation.

        Raw pass-through to the client with error handling. Index queries
        pass ``IndexName``.
        """
        table_name = kwargs.get('TableName', '')
        operation = f"Query({kwargs['IndexName']})" if kwargs.get('IndexName') else "Query"
        try:
            return self.client.query(**kwargs)
        except ClientError as e:
            raise map_dynamodb_error(e, operation, table_name) from e

    def batch_write_item(self, request_items: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        """
        Raw BatchWriteItem. Callers handle UnprocessedItems; ClientError is
        left to the caller so throttling can be retried.
        """
        return self.client.batch_write_item(RequestItems=request_items)


def create_table_gateway(config: DynamoDBConfig, client=None) -> TableGateway:
    """
    Factory function to create a TableGateway instance.

    Args:
        config: DynamoDB configuration
        client: Optional pre-built boto3 client

    Returns:
        Configured TableGateway instance
    """
    return TableGateway(config, client)
