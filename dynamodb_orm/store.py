"""
DynamoDB Store

Record-level operations built on the attribute mapping layer:

- create_table / create_index / table_exists
- put / put_many / delete
- get / query / query_index

Records are pydantic models or dataclasses. Table names come from the
record type (``Meta.table_name`` or the pluralized/camel-cased class name)
plus the configured prefix and environment. Keys are passed per call or
inferred from ``Meta``.

Example:
    store = DynamoDbStore(DynamoDBConfig.from_env())
    store.create_table(Order)
    store.put(Order(customer_id="c-1", order_id="o-1", total=Decimal("9.99")))
    order = store.get(Order, "c-1", "o-1")
    orders, last_key = store.query(Order, "c-1", sort_condition="begins_with", sort_value="o-")
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from botocore.exceptions import ClientError

from .config import DynamoDBConfig
from .core import create_table_gateway, map_dynamodb_error
from .exceptions import ConnectionError, KeyDefinitionError, NotFoundError, ValidationError
from .mapping import AttributeEncoder, KeyDefinition, define_key, item_to_record, resolve_table_name
from .mapping.kinds import record_type_of
from .models import CreateTableResult, IndexDefinition, Response, extract_table_metadata, get_index_definition
from .utils import (
    MAX_ITEM_SIZE_BYTES,
    build_filter_expression,
    build_key_condition_expression,
    build_projection_expression,
    calculate_item_size,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar('RecordT')

BATCH_WRITE_SIZE = 25


def _status_code(response: Dict[str, Any]) -> int:
    return response.get('ResponseMetadata', {}).get('HTTPStatusCode', 200)


class DynamoDbStore:
    """
    Object mapper over a DynamoDB account.

    The naming policy and nesting limit are read from the configuration once;
    the store holds no other state besides the lazily created client.
    """

    def __init__(self, config: Optional[DynamoDBConfig] = None, client=None):
        """Initialize store.

        Args:
            config: DynamoDB configuration (read from the environment if None)
            client: Optional pre-built boto3 DynamoDB client
        """
        self.config = config or DynamoDBConfig.from_env()
        self.policy = self.config.naming_policy()
        self.encoder = AttributeEncoder(self.policy, self.config.max_nesting_depth)
        self.gateway = create_table_gateway(self.config, client)

        if self.config.enable_debug_logging:
            logging.getLogger(__name__.split('.')[0]).setLevel(logging.DEBUG)

    # =========================================================================
    # Naming and keys
    # =========================================================================

    def table_name(self, record_type: Type[Any]) -> str:
        """Physical table name for a record type."""
        return self.config.get_table_name(resolve_table_name(record_type, self.policy))

    def _key_fields(
        self,
        record_type: Type[Any],
        partition_key: Optional[str],
        sort_key: Optional[str]
    ) -> Tuple[str, Optional[str]]:
        meta = extract_table_metadata(record_type)
        partition_key = partition_key or meta['partition_key']
        if not partition_key:
            raise ValidationError(
                f"No partition key given for {record_type.__name__} and none declared in its Meta"
            )
        return partition_key, sort_key or meta['sort_key']

    def _encode_value(self, record_type: Type[Any], field_name: str, value: Any) -> Dict[str, Any]:
        attribute = self.encoder.encode(record_type, field_name, fallback=value)
        if attribute is None:
            raise ValidationError(
                f"Field '{field_name}' of {record_type.__name__} cannot be encoded from value {value!r}"
            )
        return attribute

    def _build_key(
        self,
        record_type: Type[Any],
        partition_key: str,
        partition_value: Any,
        sort_key: Optional[str],
        sort_value: Any
    ) -> Dict[str, Any]:
        key = {
            self.encoder.sanitize(partition_key): self._encode_value(record_type, partition_key, partition_value)
        }
        if sort_key:
            if sort_value is None:
                raise ValidationError(f"Missing sort key '{sort_key}' for {record_type.__name__}")
            key[self.encoder.sanitize(sort_key)] = self._encode_value(record_type, sort_key, sort_value)
        return key

    # =========================================================================
    # Table lifecycle
    # =========================================================================

    def _throughput(self) -> Dict[str, int]:
        return {
            'ReadCapacityUnits': self.config.read_capacity_units,
            'WriteCapacityUnits': self.config.write_capacity_units
        }

    def _key_schema(
        self,
        record_type: Type[Any],
        partition_key: str,
        sort_key: Optional[str]
    ) -> Tuple[List[Dict[str, str]], List[KeyDefinition]]:
        definitions = [define_key(record_type, partition_key, self.policy)]
        key_schema = [definitions[0].to_key_schema_element('HASH')]
        if sort_key:
            sort_definition = define_key(record_type, sort_key, self.policy)
            definitions.append(sort_definition)
            key_schema.append(sort_definition.to_key_schema_element('RANGE'))
        return key_schema, definitions

    def _index_spec(self, record_type: Type[Any], index: IndexDefinition) -> Tuple[Dict[str, Any], List[KeyDefinition]]:
        key_schema, definitions = self._key_schema(record_type, index.partition_key, index.sort_key)
        if index.projection:
            projection = {
                'ProjectionType': 'INCLUDE',
                'NonKeyAttributes': [self.encoder.sanitize(name) for name in index.projection]
            }
        else:
            projection = {'ProjectionType': 'ALL'}

        spec = {
            'IndexName': index.name,
            'KeySchema': key_schema,
            'Projection': projection
        }
        if self.config.billing_mode == 'PROVISIONED':
            spec['ProvisionedThroughput'] = self._throughput()
        return spec, definitions

    @staticmethod
    def _attribute_definitions(definitions: Iterable[KeyDefinition]) -> List[Dict[str, str]]:
        merged: Dict[str, KeyDefinition] = {}
        for definition in definitions:
            existing = merged.get(definition.attribute_name)
            if existing and existing.attribute_type != definition.attribute_type:
                raise KeyDefinitionError(
                    f"Attribute '{definition.attribute_name}' declared as both "
                    f"{existing.attribute_type} and {definition.attribute_type}"
                )
            merged.setdefault(definition.attribute_name, definition)
        return [definition.to_attribute_definition() for definition in merged.values()]

    def create_table(
        self,
        record_type: Type[Any],
        partition_key: Optional[str] = None,
        sort_key: Optional[str] = None
    ) -> CreateTableResult:
        """
        Create the table for a record type, including the indexes in its Meta.

        Args:
            record_type: Record type
            partition_key: Partition key field (defaults to Meta.partition_key)
            sort_key: Sort key field (defaults to Meta.sort_key)

        Returns:
            CreateTableResult with the HTTP status and table name

        Raises:
            KeyDefinitionError: A key field has no scalar type (e.g. bool)
            ConflictError: The table already exists
        """
        partition_key, sort_key = self._key_fields(record_type, partition_key, sort_key)
        table_name = self.table_name(record_type)

        key_schema, definitions = self._key_schema(record_type, partition_key, sort_key)
        index_specs = []
        for index in extract_table_metadata(record_type)['indexes']:
            spec, index_definitions = self._index_spec(record_type, index)
            index_specs.append(spec)
            definitions.extend(index_definitions)

        request = {
            'TableName': table_name,
            'KeySchema': key_schema,
            'AttributeDefinitions': self._attribute_definitions(definitions),
            'BillingMode': self.config.billing_mode
        }
        if self.config.billing_mode == 'PROVISIONED':
            request['ProvisionedThroughput'] = self._throughput()
        if index_specs:
            request['GlobalSecondaryIndexes'] = index_specs

        response = self.gateway.create_table(**request)
        return CreateTableResult(status_code=_status_code(response), table_name=table_name)

    def create_index(
        self,
        record_type: Type[Any],
        index_name: str,
        partition_key: Optional[str] = None,
        sort_key: Optional[str] = None
    ) -> CreateTableResult:
        """
        Add a global secondary index to an existing table.

        Keys default to the matching IndexDefinition in the record's Meta.

        Raises:
            NotFoundError: No keys given and no index of that name in Meta
            KeyDefinitionError: A key field has no scalar type
        """
        if partition_key:
            index = IndexDefinition(index_name, partition_key, sort_key)
        else:
            index = get_index_definition(record_type, index_name)
            if index is None:
                raise NotFoundError(
                    f"Index '{index_name}' is not declared on {record_type.__name__}.Meta",
                    'index',
                    index_name
                )

        table_name = self.table_name(record_type)
        spec, definitions = self._index_spec(record_type, index)
        response = self.gateway.update_table(
            TableName=table_name,
            AttributeDefinitions=self._attribute_definitions(definitions),
            GlobalSecondaryIndexUpdates=[{'Create': spec}]
        )
        return CreateTableResult(status_code=_status_code(response), table_name=table_name, index_name=index_name)

    def table_exists(self, record_type: Type[Any]) -> bool:
        return self.gateway.table_exists(self.table_name(record_type))

    # =========================================================================
    # Writes
    # =========================================================================

    def _item_for(self, record: Any) -> Dict[str, Any]:
        item = self.encoder.assemble(record)
        if not item:
            raise ValidationError(f"{record_type_of(record).__name__} record has no encodable fields")

        item_size = calculate_item_size(item)
        if item_size > MAX_ITEM_SIZE_BYTES:
            raise ValidationError(
                f"Item size {item_size} bytes exceeds 400KB DynamoDB limit for {record_type_of(record).__name__}"
            )
        return item

    def put(self, record: Any) -> Response:
        """
        Write a record, replacing any item with the same key.

        Raises:
            ValidationError: The record assembles to an empty or oversized item
        """
        table_name = self.table_name(record_type_of(record))
        response = self.gateway.put_item(table_name, self._item_for(record))
        return Response(status_code=_status_code(response))

    def put_many(self, records: Iterable[Any]) -> int:
        """
        Batch write records of one type.

        Items are sent in chunks of 25; UnprocessedItems are retried with
        exponential backoff up to ``config.batch_max_retries`` times.

        Returns:
            Number of items written

        Raises:
            ValidationError: Mixed record types, or an empty/oversized item
            ConnectionError: Items still unprocessed after all retries
        """
        records = list(records)
        if not records:
            return 0

        record_type = record_type_of(records[0])
        if any(record_type_of(record) is not record_type for record in records):
            raise ValidationError("put_many requires records of a single type")

        table_name = self.table_name(record_type)
        items = [self._item_for(record) for record in records]

        written = 0
        for i in range(0, len(items), BATCH_WRITE_SIZE):
            written += self._write_chunk_with_retry(table_name, items[i:i + BATCH_WRITE_SIZE])

        logger.info(f"Batch wrote {written} items to {table_name}")
        return written

    def _write_chunk_with_retry(self, table_name: str, items: List[Dict[str, Any]]) -> int:
        """Write a single chunk with retry logic for UnprocessedItems."""
        max_retries = self.config.batch_max_retries
        pending = items

        for attempt in range(max_retries + 1):
            try:
                response = self.gateway.batch_write_item({
                    table_name: [{'PutRequest': {'Item': item}} for item in pending]
                })
            except ClientError as e:
                error_code = e.response['Error']['Code']
                if error_code == 'ProvisionedThroughputExceededException' and attempt < max_retries:
                    delay = (2 ** attempt) * 2  # Longer delay for throttling
                    logger.warning(f"Throttled, backing off for {delay}s")
                    time.sleep(delay)
                    continue
                logger.error(f"Batch write error: {e}")
                raise map_dynamodb_error(e, "BatchWriteItem", table_name) from e

            unprocessed = response.get('UnprocessedItems', {}).get(table_name, [])
            if not unprocessed:
                return len(items)

            pending = [request['PutRequest']['Item'] for request in unprocessed]
            if attempt < max_retries:
                # Exponential backoff with jitter
                delay = (2 ** attempt) + (time.time() % 1)
                logger.warning(
                    f"Retrying {len(pending)} unprocessed items after {delay:.2f}s "
                    f"(attempt {attempt + 1}/{max_retries + 1})"
                )
                time.sleep(delay)

        logger.error(f"Failed to process {len(pending)} items after {max_retries} retries")
        raise ConnectionError(f"Batch write failed for {len(pending)} items after {max_retries} retries")

    def delete(
        self,
        record_type: Type[Any],
        partition_value: Any,
        sort_value: Any = None,
        partition_key: Optional[str] = None,
        sort_key: Optional[str] = None
    ) -> Response:
        partition_key, sort_key = self._key_fields(record_type, partition_key, sort_key)
        key = self._build_key(record_type, partition_key, partition_value, sort_key, sort_value)
        response = self.gateway.delete_item(self.table_name(record_type), key)
        return Response(status_code=_status_code(response))

    # =========================================================================
    # Reads
    # =========================================================================

    def get(
        self,
        record_type: Type[RecordT],
        partition_value: Any,
        sort_value: Any = None,
        partition_key: Optional[str] = None,
        sort_key: Optional[str] = None,
        consistent_read: bool = False
    ) -> Optional[RecordT]:
        """
        Get a single record by primary key.

        Key values are encoded with the key field's declared type, so an int
        key can be passed as ``42`` or ``"42"``.

        Returns:
            The record, or None when no item has that key
        """
        partition_key, sort_key = self._key_fields(record_type, partition_key, sort_key)
        key = self._build_key(record_type, partition_key, partition_value, sort_key, sort_value)

        item = self.gateway.get_item(self.table_name(record_type), key, ConsistentRead=consistent_read)
        if item is None:
            return None
        return item_to_record(item, record_type, self.policy)

    def query(
        self,
        record_type: Type[RecordT],
        partition_value: Any,
        sort_condition: str = "eq",
        sort_value: Any = None,
        sort_value2: Any = None,
        partition_key: Optional[str] = None,
        sort_key: Optional[str] = None,
        projection: Optional[List[str]] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        last_key: Optional[dict] = None,
        ascending: bool = True
    ) -> Tuple[List[RecordT], Optional[dict]]:
        """
        Query a table by partition key, optionally narrowed by sort key.

        DynamoDB Operation: Query on the base table

        Args:
            record_type: Record type
            partition_value: Partition key value
            sort_condition: 'eq', 'begins_with', 'between', 'gt', 'gte', 'lt', 'lte'
            sort_value: Sort key value (the condition is skipped when None)
            sort_value2: Upper bound for 'between'
            partition_key: Partition key field (defaults to Meta)
            sort_key: Sort key field (defaults to Meta)
            projection: Field names to return; other fields read back as their zero values
            filters: Field names mapped to values, matched for equality server-side
            limit: Maximum items to evaluate
            last_key: Pagination token from a previous query
            ascending: Sort key order

        Returns:
            Tuple of (records, next_page_token)
        """
        partition_key, sort_key = self._key_fields(record_type, partition_key, sort_key)
        return self._query(
            record_type, None, partition_key, partition_value, sort_key, sort_condition,
            sort_value, sort_value2, projection, filters, limit, last_key, ascending
        )

    def query_index(
        self,
        record_type: Type[RecordT],
        index_name: str,
        partition_value: Any,
        sort_condition: str = "eq",
        sort_value: Any = None,
        sort_value2: Any = None,
        projection: Optional[List[str]] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        last_key: Optional[dict] = None,
        ascending: bool = True
    ) -> Tuple[List[RecordT], Optional[dict]]:
        """
        Query a global secondary index declared in the record's Meta.

        Same arguments and result as ``query``; keys come from the index.

        Raises:
            NotFoundError: The index is not declared on the record type
        """
        index = get_index_definition(record_type, index_name)
        if index is None:
            raise NotFoundError(
                f"Index '{index_name}' is not declared on {record_type.__name__}.Meta",
                'index',
                index_name
            )
        return self._query(
            record_type, index_name, index.partition_key, partition_value, index.sort_key, sort_condition,
            sort_value, sort_value2, projection, filters, limit, last_key, ascending
        )

    def _query(
        self,
        record_type: Type[RecordT],
        index_name: Optional[str],
        partition_key: str,
        partition_value: Any,
        sort_key: Optional[str],
        sort_condition: str,
        sort_value: Any,
        sort_value2: Any,
        projection: Optional[List[str]],
        filters: Optional[Dict[str, Any]],
        limit: Optional[int],
        last_key: Optional[dict],
        ascending: bool
    ) -> Tuple[List[RecordT], Optional[dict]]:
        if not sort_key and (sort_value is not None or sort_value2 is not None):
            raise ValidationError(
                f"Sort value given but {record_type.__name__} has no sort key for this query"
            )

        encoded_sort = None
        encoded_sort2 = None
        if sort_key and sort_value is not None:
            encoded_sort = self._encode_value(record_type, sort_key, sort_value)
            if sort_value2 is not None:
                encoded_sort2 = self._encode_value(record_type, sort_key, sort_value2)

        key_expr, names, values = build_key_condition_expression(
            self.encoder.sanitize(partition_key),
            self._encode_value(record_type, partition_key, partition_value),
            self.encoder.sanitize(sort_key) if sort_key else None,
            sort_condition,
            encoded_sort,
            encoded_sort2
        )

        request = {
            'TableName': self.table_name(record_type),
            'KeyConditionExpression': key_expr,
            'ScanIndexForward': ascending
        }
        if index_name:
            request['IndexName'] = index_name

        if filters:
            encoded_filters = {
                self.encoder.sanitize(name): self._encode_value(record_type, name, value)
                for name, value in filters.items()
            }
            filter_expr, filter_names, filter_values = build_filter_expression(encoded_filters)
            request['FilterExpression'] = filter_expr
            names.update(filter_names)
            values.update(filter_values)

        proj_expr, proj_names = build_projection_expression(
            [self.encoder.sanitize(name) for name in projection] if projection else None
        )
        if proj_expr:
            request['ProjectionExpression'] = proj_expr
            names.update(proj_names)

        request['ExpressionAttributeNames'] = names
        request['ExpressionAttributeValues'] = values
        if limit:
            request['Limit'] = limit
        if last_key:
            request['ExclusiveStartKey'] = last_key

        response = self.gateway.query(**request)
        records = [item_to_record(item, record_type, self.policy) for item in response.get('Items', [])]
        return records, response.get('LastEvaluatedKey')
