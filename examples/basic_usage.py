#!/usr/bin/env python3
"""
Basic usage examples for the DynamoDB ORM.

This example demonstrates:
1. Setting up configuration
2. Declaring record types with table metadata
3. Creating tables and indexes from record types
4. Writing, reading and deleting records
5. Querying tables and indexes with sort conditions and pagination
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from dynamodb_orm import (
    DynamoDBConfig,
    DynamoDbStore,
    IndexDefinition,
    TableMeta,
)


class LineItem(BaseModel):
    sku: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0")


class Order(BaseModel):
    customer_id: str
    order_id: str
    status: str = "open"
    placed_at: datetime = datetime.min
    total: Decimal = Decimal("0")
    discount_percent: Optional[int] = None
    tags: List[str] = []
    lines: List[LineItem] = []

    class Meta(TableMeta):
        partition_key = "customer_id"
        sort_key = "order_id"
        indexes = [
            IndexDefinition(name="StatusIndex", partition_key="status", sort_key="order_id")
        ]


class SensorReading(BaseModel):
    sensor_id: str = ""
    sequence: int = 0
    unit: str = ""
    value: float = 0.0


def main():
    """Demonstrate basic usage of the DynamoDB ORM."""

    # 1. Configure DynamoDB connection
    print("1. Setting up DynamoDB configuration...")
    config = DynamoDBConfig.from_env()  # Uses environment variables

    # For local development, you might use:
    # config = DynamoDBConfig.for_local_development()

    store = DynamoDbStore(config)

    # 2. Create tables (keys and indexes from Meta, or passed explicitly)
    print("2. Creating tables...")
    if not store.table_exists(Order):
        result = store.create_table(Order)
        print(f"Created {result.table_name} (HTTP {result.status_code})")

    if not store.table_exists(SensorReading):
        store.create_table(SensorReading, "sensor_id", "sequence")
        store.create_index(SensorReading, "UnitIndex", "unit", "sequence")

    # 3. Write records
    print("3. Writing orders...")
    order = Order(
        customer_id="c-100",
        order_id="2024-06-01#0001",
        placed_at=datetime(2024, 6, 1, 9, 30),
        total=Decimal("59.97"),
        discount_percent=0,  # Nullable numbers keep an explicit zero
        tags=["gift", "express"],
        lines=[
            LineItem(sku="BOOK-1", quantity=2, unit_price=Decimal("19.99")),
            LineItem(sku="PEN-7", quantity=1, unit_price=Decimal("19.99")),
        ]
    )
    response = store.put(order)
    print(f"Put order: HTTP {response.status_code}")

    written = store.put_many(
        Order(customer_id="c-100", order_id=f"2024-06-{day:02d}#0001", status="shipped", total=Decimal(day))
        for day in range(2, 10)
    )
    print(f"Batch wrote {written} orders")

    # 4. Read a single record
    print("4. Reading orders...")
    found = store.get(Order, "c-100", "2024-06-01#0001")
    if found:
        print(f"Found order {found.order_id} with {len(found.lines)} lines, total {found.total}")

    # 5. Query by sort key prefix, with pagination
    print("5. Querying orders...")
    last_key = None
    page = 1
    while True:
        orders, last_key = store.query(
            Order,
            "c-100",
            sort_condition="begins_with",
            sort_value="2024-06",
            limit=3,
            last_key=last_key
        )
        print(f"Page {page}: {[o.order_id for o in orders]}")
        if not last_key:
            break
        page += 1

    # Query an index with a projection
    shipped, _ = store.query_index(Order, "StatusIndex", "shipped", projection=["customer_id", "order_id", "status"])
    print(f"Shipped orders: {len(shipped)}")

    # 6. Delete a record
    store.delete(Order, "c-100", "2024-06-01#0001")
    print("Order deleted")

    print("\nDynamoDB ORM Example Completed!")


if __name__ == "__main__":
    main()
