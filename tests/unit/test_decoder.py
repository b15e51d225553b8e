"""
Tests for materializing wire items into records (mapping/decoder.py).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Set

import pytest
from pydantic import BaseModel

from dynamodb_orm.exceptions import ValidationError
from dynamodb_orm.mapping.decoder import deserialize_item, item_to_record
from dynamodb_orm.mapping.encoder import AttributeEncoder
from dynamodb_orm.mapping.naming import NamingPolicy


class LineItem(BaseModel):
    item_sku: str = ""
    quantity: int = 0


class Order(BaseModel):
    order_id: str
    total: Decimal = Decimal("0")
    weight: float = 0.0
    quantity: int = 0
    paid: bool = False
    placed_at: datetime = datetime.min
    tags: List[str] = []
    regions: Set[str] = set()
    discount: Optional[int] = None
    lines: List[LineItem] = []


@dataclass
class Measurement:
    sensor_id: str = ""
    reading: float = 0.0
    labels: List[str] = field(default_factory=list)


CAMEL = NamingPolicy(camel_case_attribute_names=True)


class Tier(str, Enum):
    GOLD = "gold"


class Account(BaseModel):
    account_id: str
    balance: int
    credit: Decimal
    rate: float
    active: bool
    nickname: str
    opened_at: datetime
    aliases: List[str]
    limit: Optional[int]
    note: Optional[str]
    tier: Optional[Tier]
    children: List[LineItem]


@dataclass
class Tick:
    symbol: str
    price: float
    volume: int


class TestItemToRecord:
    """Test wire item -> record conversion."""

    def test_scalar_values(self):
        item = {
            "order_id": {"S": "o-1"},
            "total": {"N": "19.99"},
            "weight": {"N": "1.5"},
            "quantity": {"N": "3"},
            "paid": {"BOOL": True},
            "placed_at": {"S": "2024-01-02T03:04:05"},
        }

        order = item_to_record(item, Order)

        assert order.order_id == "o-1"
        assert order.total == Decimal("19.99")
        assert order.weight == 1.5
        assert order.quantity == 3
        assert order.paid is True
        assert order.placed_at == datetime(2024, 1, 2, 3, 4, 5)

    def test_missing_attributes_read_as_zero_values(self):
        order = item_to_record({"order_id": {"S": "o-1"}}, Order)
        assert order.quantity == 0
        assert order.tags == []
        assert order.discount is None

    def test_string_set_order_kept(self):
        order = item_to_record({"order_id": {"S": "o-1"}, "tags": {"SS": ["z", "a", "m"]}}, Order)
        assert order.tags == ["z", "a", "m"]

    def test_string_set_into_set_field(self):
        order = item_to_record({"order_id": {"S": "o-1"}, "regions": {"SS": ["eu", "us"]}}, Order)
        assert order.regions == {"eu", "us"}

    def test_camel_case_names_restored(self):
        item = {
            "orderId": {"S": "o-1"},
            "lines": {"L": [{"M": {"itemSku": {"S": "sku-1"}, "quantity": {"N": "2"}}}]},
        }

        order = item_to_record(item, Order, CAMEL)

        assert order.order_id == "o-1"
        assert order.lines == [LineItem(item_sku="sku-1", quantity=2)]

    def test_dataclass_target(self):
        item = {"sensor_id": {"S": "s-1"}, "reading": {"N": "21.5"}, "labels": {"SS": ["indoor"]}}
        assert item_to_record(item, Measurement) == Measurement(sensor_id="s-1", reading=21.5, labels=["indoor"])

    def test_unknown_attributes_ignored(self):
        order = item_to_record({"order_id": {"S": "o-1"}, "legacy": {"S": "x"}}, Order)
        assert order.order_id == "o-1"

    def test_invalid_item_raises_validation_error(self):
        with pytest.raises(ValidationError):
            item_to_record({"total": {"N": "1"}}, Order)

    def test_encoded_record_reads_back(self):
        encoder = AttributeEncoder(CAMEL)
        order = Order(
            order_id="o-9",
            total=Decimal("5.25"),
            tags=["b", "a"],
            discount=0,
            lines=[LineItem(item_sku="s", quantity=1)],
        )

        assert item_to_record(encoder.assemble(order), Order, CAMEL) == order


class TestDeserializeItem:
    """Test raw attribute value deserialization."""

    def test_numbers_are_decimals(self):
        assert deserialize_item({"n": {"N": "1.5"}}) == {"n": Decimal("1.5")}

    def test_string_sets_are_lists(self):
        assert deserialize_item({"s": {"SS": ["b", "a"]}}) == {"s": ["b", "a"]}


class TestZeroValueRestore:
    """Test that fields omitted for holding zero values read back."""

    def test_required_zero_fields_on_model(self):
        account = Account(
            account_id="a-1",
            balance=0,
            credit=Decimal("0"),
            rate=0.0,
            active=False,
            nickname="",
            opened_at=datetime.min,
            aliases=[],
            limit=None,
            note=None,
            tier=None,
            children=[]
        )
        item = AttributeEncoder().assemble(account)
        assert item == {"account_id": {"S": "a-1"}}

        assert item_to_record(item, Account) == account

    def test_required_zero_fields_on_dataclass(self):
        tick = Tick(symbol="X", price=0.0, volume=0)
        item = AttributeEncoder().assemble(tick)

        assert item_to_record(item, Tick) == tick

    def test_nested_elements_restored(self):
        item = {
            "account_id": {"S": "a-1"},
            "children": {"L": [{"M": {"item_sku": {"S": "s-1"}}}]},
        }

        account = item_to_record(item, Account)

        assert account.children == [LineItem(item_sku="s-1", quantity=0)]
        assert account.balance == 0
        assert account.opened_at == datetime.min

    def test_str_enum_without_zero_member_keeps_default(self):
        class Badge(BaseModel):
            badge_id: str
            tier: Tier = Tier.GOLD

        assert item_to_record({"badge_id": {"S": "b-1"}}, Badge).tier is Tier.GOLD


class TestNameCollisions:
    """Test that the first field claiming an attribute name owns it."""

    def test_later_field_not_filled_from_taken_attribute(self):
        class Clash(BaseModel):
            user_id: str = ""
            userId: str = "unset"

        record = item_to_record({"userId": {"S": "first"}}, Clash, CAMEL)

        assert record.user_id == "first"
        assert record.userId == "unset"
