"""
Document-to-Record Decoder

Materializes low-level DynamoDB items (as returned by GetItem/Query) into
record instances. This is the reverse of ``AttributeEncoder.assemble``:

- Attribute values are deserialized with boto3's TypeDeserializer, except
  that string sets come back as ordered lists.
- Sanitized attribute names are mapped back to declared field names,
  including inside nested ``L``-of-``M`` lists.
- Declared fields with no attribute were omitted for holding their zero
  value, so they read back as that zero value.
- The result is validated into the record type with a pydantic TypeAdapter,
  which parses N strings back into int/Decimal/float and ISO strings back
  into datetimes.
"""

import logging
from typing import Any, Dict, Type, TypeVar

from boto3.dynamodb.types import TypeDeserializer
from pydantic import TypeAdapter

from ..exceptions import ValidationError
from .encoder import zero_value
from .kinds import SemanticKind, iter_record_fields, resolve_annotation
from .naming import NamingPolicy, sanitize_attribute_name

logger = logging.getLogger(__name__)

RecordT = TypeVar('RecordT')


class OrderedSetDeserializer(TypeDeserializer):
    """TypeDeserializer that keeps string sets in stored order."""

    def _deserialize_ss(self, value):
        return [self._deserialize_s(v) for v in value]


_DESERIALIZER = OrderedSetDeserializer()


def deserialize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Wire item -> plain Python values (N as Decimal, SS as list)."""
    return {name: _DESERIALIZER.deserialize(value) for name, value in item.items()}


def _restore_field_names(data: Dict[str, Any], record_type: Type[Any], policy: NamingPolicy) -> Dict[str, Any]:
    """Map attribute names back to field names.

    Mirrors ``assemble``: the first field claiming an attribute name owns it,
    and a declared field with no attribute held its zero value when written.
    """
    restored = {}
    taken = set()
    for name, annotation in iter_record_fields(record_type):
        attr_name = sanitize_attribute_name(name, policy)
        if attr_name in taken:
            continue
        taken.add(attr_name)

        resolved = resolve_annotation(name, annotation)
        if attr_name not in data:
            if resolved is not None:
                has_zero, zero = zero_value(resolved, annotation)
                if has_zero:
                    restored[name] = zero
            continue

        value = data[attr_name]
        if resolved is not None and resolved.kind is SemanticKind.LIST and isinstance(value, list):
            value = [
                _restore_field_names(element, resolved.element_type, policy) if isinstance(element, dict) else element
                for element in value
            ]
        restored[name] = value
    return restored


def item_to_record(item: Dict[str, Any], record_type: Type[RecordT], policy: NamingPolicy = None) -> RecordT:
    """
    Convert a low-level DynamoDB item into a record instance.

    Args:
        item: Item in wire shape, e.g. ``{"name": {"S": "Ada"}}``
        record_type: Target pydantic model or dataclass
        policy: Naming policy the item was written with

    Returns:
        Validated record instance

    Raises:
        ValidationError: If the item cannot be converted
    """
    policy = policy or NamingPolicy()
    try:
        data = _restore_field_names(deserialize_item(item), record_type, policy)
        return TypeAdapter(record_type).validate_python(data)
    except Exception as e:
        logger.error(f"Failed to convert DynamoDB item to {record_type.__name__}: {e}")
        raise ValidationError(f"Failed to convert DynamoDB item to {record_type.__name__}: {e}", original_error=e) from e
