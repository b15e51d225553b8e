"""
Integration tests for DynamoDbStore against moto's in-memory DynamoDB.

These tests exercise the full path: record -> wire item -> client -> wire
item -> record, including table/index creation from record types.
"""

from decimal import Decimal
from typing import List, Optional

import pytest
from pydantic import BaseModel

from dynamodb_orm import (
    ConflictError,
    DynamoDbStore,
    IndexDefinition,
    KeyDefinitionError,
    NotFoundError,
    TableMeta,
    ValidationError,
)


class LineItem(BaseModel):
    item_sku: str = ""
    quantity: int = 0


class Order(BaseModel):
    customer_id: str
    order_id: str
    status: str = ""
    total: Decimal = Decimal("0")
    quantity: int = 0
    tags: List[str] = []
    discount: Optional[int] = None
    lines: List[LineItem] = []

    class Meta(TableMeta):
        partition_key = "customer_id"
        sort_key = "order_id"
        indexes = [
            IndexDefinition(name="StatusIndex", partition_key="status", sort_key="order_id")
        ]


class Reading(BaseModel):
    sensor_id: str = ""
    sequence: int = 0
    unit: str = ""
    value: float = 0.0


class Category(BaseModel):
    category_id: str = ""
    display_name: str = ""

    class Meta(TableMeta):
        partition_key = "category_id"


class Wallet(BaseModel):
    wallet_id: str
    balance: int
    frozen: bool

    class Meta(TableMeta):
        partition_key = "wallet_id"


class Flagged(BaseModel):
    enabled: bool = False
    name: str = ""


@pytest.fixture
def orders(store):
    """Order table with five orders for one customer."""
    store.create_table(Order)
    for i in range(1, 6):
        store.put(Order(
            customer_id="c-1",
            order_id=f"o-{i}",
            status="open" if i % 2 else "shipped",
            total=Decimal(f"{i}.50"),
            quantity=i
        ))
    store.put(Order(customer_id="c-2", order_id="o-9", status="open"))
    return store


class TestTableLifecycle:
    """Test table and index creation from record types."""

    def test_create_table_from_meta(self, store, mock_dynamodb_client):
        """Test that keys and indexes come from the record's Meta."""
        result = store.create_table(Order)

        assert result.status_code == 200
        assert result.table_name == "test_Order"
        assert store.table_exists(Order)

        table = mock_dynamodb_client.describe_table(TableName="test_Order")["Table"]
        assert {k["AttributeName"]: k["KeyType"] for k in table["KeySchema"]} == {
            "customer_id": "HASH",
            "order_id": "RANGE",
        }
        assert {d["AttributeName"] for d in table["AttributeDefinitions"]} == {
            "customer_id", "order_id", "status"
        }
        assert [i["IndexName"] for i in table["GlobalSecondaryIndexes"]] == ["StatusIndex"]
        assert table["ProvisionedThroughput"]["ReadCapacityUnits"] == 5

    def test_create_table_with_explicit_keys(self, store, mock_dynamodb_client):
        store.create_table(Reading, "sensor_id", "sequence")

        table = mock_dynamodb_client.describe_table(TableName="test_Reading")["Table"]
        types = {d["AttributeName"]: d["AttributeType"] for d in table["AttributeDefinitions"]}
        assert types == {"sensor_id": "S", "sequence": "N"}

    def test_table_exists_false(self, store):
        assert store.table_exists(Reading) is False

    def test_duplicate_create_conflicts(self, store):
        store.create_table(Category)
        with pytest.raises(ConflictError):
            store.create_table(Category)

    def test_bool_key_rejected(self, store):
        with pytest.raises(KeyDefinitionError):
            store.create_table(Flagged, "enabled")
        assert store.table_exists(Flagged) is False

    def test_missing_partition_key(self, store):
        with pytest.raises(ValidationError, match="No partition key"):
            store.create_table(Reading)

    def test_create_index(self, store, mock_dynamodb_client):
        """Test adding an index to an existing table."""
        store.create_table(Reading, "sensor_id", "sequence")

        result = store.create_index(Reading, "UnitIndex", "unit", "sequence")

        assert result.index_name == "UnitIndex"
        table = mock_dynamodb_client.describe_table(TableName="test_Reading")["Table"]
        assert "UnitIndex" in [i["IndexName"] for i in table.get("GlobalSecondaryIndexes", [])]

    def test_create_index_unknown_name(self, store):
        store.create_table(Order)
        with pytest.raises(NotFoundError):
            store.create_index(Order, "NoSuchIndex")

    def test_pay_per_request(self, mock_dynamodb_config, mock_dynamodb_client):
        config = mock_dynamodb_config.model_copy(update={"billing_mode": "PAY_PER_REQUEST"})
        store = DynamoDbStore(config, client=mock_dynamodb_client)
        store.create_table(Order)

        table = mock_dynamodb_client.describe_table(TableName="test_Order")["Table"]
        assert table["BillingModeSummary"]["BillingMode"] == "PAY_PER_REQUEST"


class TestPutAndGet:
    """Test single-item writes and reads."""

    def test_put_get_round_trip(self, store):
        store.create_table(Order)
        order = Order(
            customer_id="c-1",
            order_id="o-1",
            status="open",
            total=Decimal("12.34"),
            quantity=2,
            tags=["gift", "express"],
            discount=0,
            lines=[LineItem(item_sku="sku-1", quantity=2)]
        )

        response = store.put(order)

        assert response.status_code == 200
        assert store.get(Order, "c-1", "o-1") == order

    def test_zero_fields_not_stored(self, store, mock_dynamodb_client):
        store.create_table(Order)
        store.put(Order(customer_id="c-1", order_id="o-1"))

        item = mock_dynamodb_client.get_item(
            TableName="test_Order",
            Key={"customer_id": {"S": "c-1"}, "order_id": {"S": "o-1"}}
        )["Item"]
        assert item == {"customer_id": {"S": "c-1"}, "order_id": {"S": "o-1"}}

    def test_get_missing_returns_none(self, store):
        store.create_table(Order)
        assert store.get(Order, "c-1", "nope") is None

    def test_get_missing_sort_value(self, store):
        store.create_table(Order)
        with pytest.raises(ValidationError, match="Missing sort key"):
            store.get(Order, "c-1")

    def test_get_missing_table(self, store):
        with pytest.raises(NotFoundError):
            store.get(Category, "x")

    def test_numeric_key_from_string(self, store):
        store.create_table(Reading, "sensor_id", "sequence")
        store.put(Reading(sensor_id="s-1", sequence=7, value=1.5))

        found = store.get(Reading, "s-1", "7", partition_key="sensor_id", sort_key="sequence")
        assert found == Reading(sensor_id="s-1", sequence=7, value=1.5)

    def test_required_zero_fields_round_trip(self, store):
        """Test that zero values omitted on write are restored on read."""
        store.create_table(Wallet)
        wallet = Wallet(wallet_id="w-1", balance=0, frozen=False)

        store.put(wallet)

        assert store.get(Wallet, "w-1") == wallet

    def test_fractional_value_for_integer_key(self, store):
        store.create_table(Reading, "sensor_id", "sequence")
        store.put(Reading(sensor_id="s-1", sequence=7, value=1.5))

        for value in (7.9, "7.9"):
            with pytest.raises(ValidationError, match="sequence"):
                store.get(Reading, "s-1", value, partition_key="sensor_id", sort_key="sequence")

    def test_empty_record_rejected(self, store):
        store.create_table(Category)
        with pytest.raises(ValidationError):
            store.put(Category())

    def test_delete(self, orders):
        response = orders.delete(Order, "c-1", "o-1")

        assert response.status_code == 200
        assert orders.get(Order, "c-1", "o-1") is None
        assert orders.get(Order, "c-1", "o-2") is not None


class TestQuery:
    """Test base table queries."""

    def test_partition_only(self, orders):
        records, last_key = orders.query(Order, "c-1")

        assert [r.order_id for r in records] == ["o-1", "o-2", "o-3", "o-4", "o-5"]
        assert last_key is None

    @pytest.mark.parametrize("condition,value,expected", [
        ("eq", "o-3", ["o-3"]),
        ("gt", "o-3", ["o-4", "o-5"]),
        ("gte", "o-4", ["o-4", "o-5"]),
        ("lt", "o-2", ["o-1"]),
        ("lte", "o-2", ["o-1", "o-2"]),
        ("begins_with", "o-", ["o-1", "o-2", "o-3", "o-4", "o-5"]),
    ])
    def test_sort_conditions(self, orders, condition, value, expected):
        records, _ = orders.query(Order, "c-1", sort_condition=condition, sort_value=value)
        assert [r.order_id for r in records] == expected

    def test_between(self, orders):
        records, _ = orders.query(Order, "c-1", sort_condition="between", sort_value="o-2", sort_value2="o-4")
        assert [r.order_id for r in records] == ["o-2", "o-3", "o-4"]

    def test_descending(self, orders):
        records, _ = orders.query(Order, "c-1", ascending=False)
        assert records[0].order_id == "o-5"

    def test_pagination(self, orders):
        seen = []
        last_key = None
        while True:
            records, last_key = orders.query(Order, "c-1", limit=2, last_key=last_key)
            seen.extend(r.order_id for r in records)
            if not last_key:
                break

        assert seen == ["o-1", "o-2", "o-3", "o-4", "o-5"]

    def test_filters(self, orders):
        records, _ = orders.query(Order, "c-1", filters={"status": "shipped"})
        assert [r.order_id for r in records] == ["o-2", "o-4"]

    def test_projection(self, orders):
        records, _ = orders.query(Order, "c-1", projection=["customer_id", "order_id"])

        assert len(records) == 5
        assert all(r.total == Decimal("0") for r in records)

    def test_sort_value_without_sort_key(self, store):
        """Test that a sort value is rejected when the query has no sort key."""
        with pytest.raises(ValidationError, match="no sort key"):
            store.query(Category, "cat-1", sort_value="x")

    def test_sort_value_without_index_sort_key(self, store):
        class Listing(BaseModel):
            listing_id: str = ""
            city: str = ""

            class Meta(TableMeta):
                partition_key = "listing_id"
                indexes = [IndexDefinition(name="CityIndex", partition_key="city")]

        with pytest.raises(ValidationError, match="no sort key"):
            store.query_index(Listing, "CityIndex", "Paris", sort_condition="gt", sort_value="a")

    def test_query_values_are_typed(self, orders):
        records, _ = orders.query(Order, "c-1", sort_value="o-3")
        assert records[0].total == Decimal("3.50")
        assert records[0].quantity == 3


class TestQueryIndex:
    """Test global secondary index queries."""

    def test_query_index(self, orders):
        records, _ = orders.query_index(Order, "StatusIndex", "open")
        assert sorted((r.customer_id, r.order_id) for r in records) == [
            ("c-1", "o-1"), ("c-1", "o-3"), ("c-1", "o-5"), ("c-2", "o-9")
        ]

    def test_query_index_sort_condition(self, orders):
        records, _ = orders.query_index(Order, "StatusIndex", "open", sort_condition="gt", sort_value="o-3")
        assert sorted(r.order_id for r in records) == ["o-5", "o-9"]

    def test_unknown_index(self, orders):
        with pytest.raises(NotFoundError):
            orders.query_index(Order, "Missing", "open")


class TestBatchWrites:
    """Test put_many against the mocked service."""

    def test_put_many(self, store):
        store.create_table(Order)
        written = store.put_many(
            Order(customer_id="c-1", order_id=f"o-{i:02d}", quantity=i + 1) for i in range(30)
        )

        assert written == 30
        records, _ = store.query(Order, "c-1")
        assert len(records) == 30


class TestCamelCaseNaming:
    """Test a store with every naming switch on."""

    def test_table_and_attribute_names(self, camel_case_store, mock_dynamodb_client):
        camel_case_store.create_table(Category)
        camel_case_store.put(Category(category_id="cat-1", display_name="Books"))

        assert camel_case_store.table_name(Category) == "test_categories"
        item = mock_dynamodb_client.get_item(
            TableName="test_categories",
            Key={"categoryId": {"S": "cat-1"}}
        )["Item"]
        assert item == {"categoryId": {"S": "cat-1"}, "displayName": {"S": "Books"}}

    def test_round_trip(self, camel_case_store):
        camel_case_store.create_table(Order)
        order = Order(customer_id="c-1", order_id="o-1", status="open", lines=[LineItem(item_sku="s-1", quantity=1)])
        camel_case_store.put(order)

        assert camel_case_store.table_name(Order) == "test_orders"
        assert camel_case_store.get(Order, "c-1", "o-1") == order
        records, _ = camel_case_store.query(Order, "c-1", filters={"status": "open"})
        assert records == [order]
