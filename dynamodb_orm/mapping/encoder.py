"""
Attribute Value Encoder and Record Assembler

Converts record fields into DynamoDB attribute values in the low-level wire
shape (``{"S": "Ada"}``, ``{"N": "42"}``, ``{"SS": [...]}``, ``{"L": [...]}``).

Rules:
- Numbers are always carried as their decimal string representation.
- A field holding its kind's zero value (0, "", False, None, datetime.min,
  empty collection) produces no attribute, unless the caller supplies a
  fallback. Fallbacks are only used when resolving key values.
- A single field never raises: unsupported types and conversion failures
  both yield None ("absent"), the latter with a warning.
- Lists of nested records are encoded as ``L`` of ``M``; nesting is bounded
  by ``max_nesting_depth`` and cycles are cut.

Example:
    >>> encoder = AttributeEncoder(NamingPolicy())
    >>> encoder.assemble(Person(name="Ada", age=0))
    {'name': {'S': 'Ada'}}
"""

import logging
import math
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .kinds import (
    NUMERIC_KINDS,
    ResolvedField,
    SemanticKind,
    get_field_annotation,
    is_record_type,
    iter_record_fields,
    record_type_of,
    resolve_annotation,
    unwrap_annotation,
)
from .naming import NamingPolicy, sanitize_attribute_name

logger = logging.getLogger(__name__)

AttributeValue = Dict[str, Any]

DEFAULT_MAX_NESTING_DEPTH = 32

_UNSET = object()

# Scalar zero values; collections get a fresh list
_ZERO_VALUES: Dict[SemanticKind, Any] = {
    SemanticKind.BOOL: False,
    SemanticKind.INTEGER: 0,
    SemanticKind.DECIMAL: Decimal(0),
    SemanticKind.DOUBLE: 0.0,
    SemanticKind.FLOAT: 0.0,
    SemanticKind.STRING: "",
    SemanticKind.TIMESTAMP: datetime.min,
}


def is_zero_value(value: Any, kind: SemanticKind) -> bool:
    """True when ``value`` is the zero value of ``kind``."""
    if value is None:
        return True
    if kind is SemanticKind.NULLABLE_SCALAR:
        return False
    if kind is SemanticKind.BOOL:
        return value is False
    if kind in NUMERIC_KINDS:
        if isinstance(value, Enum):
            value = value.value
        try:
            return value == 0
        except TypeError:
            return False
    if kind is SemanticKind.STRING:
        if isinstance(value, Enum):
            value = value.value
        return value == ""
    if kind is SemanticKind.TIMESTAMP:
        return isinstance(value, datetime) and value.replace(tzinfo=None) == datetime.min
    if kind in (SemanticKind.STRING_SET, SemanticKind.LIST):
        try:
            return len(value) == 0
        except TypeError:
            return False
    return False


def zero_value(resolved: ResolvedField, annotation: Any) -> Tuple[bool, Any]:
    """Return ``(has_zero, value)``: the value a field held when ``assemble`` omitted it.

    Optional fields read back as None. Enum fields only have a zero value
    when one of their members carries it.
    """
    is_optional, inner = unwrap_annotation(annotation)
    if is_optional or resolved.kind is SemanticKind.NULLABLE_SCALAR:
        return True, None
    if resolved.kind in (SemanticKind.STRING_SET, SemanticKind.LIST):
        return True, []

    zero = _ZERO_VALUES[resolved.kind]
    if isinstance(inner, type) and issubclass(inner, Enum):
        for member in inner:
            if member.value == zero:
                return True, member
        return False, None
    return True, zero


def _require_finite(number: Decimal, value: Any) -> None:
    if not number.is_finite():
        raise ValueError(f"Non-finite number {value!r} cannot be stored")


def format_number(value: Any, kind: SemanticKind) -> str:
    """Decimal string for a numeric value.

    Raises:
        ValueError: NaN/infinity, or a fractional value for an integer kind
        ArithmeticError: a string that is not a number
        TypeError: value cannot be converted
    """
    if isinstance(value, Enum):
        value = value.value

    if isinstance(value, str):
        value = Decimal(value.strip())

    if kind is SemanticKind.INTEGER:
        if isinstance(value, int):
            return str(int(value))
        number = value if isinstance(value, Decimal) else Decimal(str(value))
        _require_finite(number, value)
        if number != number.to_integral_value():
            raise ValueError(f"{value!r} is not a whole number")
        return str(int(number))

    if kind is SemanticKind.DECIMAL or isinstance(value, Decimal):
        number = value if isinstance(value, Decimal) else Decimal(str(value))
        _require_finite(number, value)
        return str(number)

    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"Non-finite number {value!r} cannot be stored")
    if kind is SemanticKind.FLOAT and not isinstance(value, float):
        # Single-precision values print their own shortest form
        return str(value)
    return repr(number)


class AttributeEncoder:
    """
    Encodes record fields and whole records into DynamoDB attribute values.

    The naming policy is fixed at construction, so a single encoder can be
    shared between callers.
    """

    def __init__(self, policy: Optional[NamingPolicy] = None, max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH):
        self.policy = policy or NamingPolicy()
        self.max_nesting_depth = max_nesting_depth

    def sanitize(self, name: str) -> str:
        """Wire attribute name for a field name."""
        return sanitize_attribute_name(name, self.policy)

    def encode(self, record: Any, field_name: str, fallback: Any = None) -> Optional[AttributeValue]:
        """
        Encode a single field of a record.

        Args:
            record: Record instance, or the record type itself (reads as zero values)
            field_name: Declared field name (not the sanitized wire name)
            fallback: Value substituted when the field holds its zero value

        Returns:
            Attribute value, or None when no attribute is produced

        Example:
            >>> encoder.encode(Order, "order_id", fallback="o-1")
            {'S': 'o-1'}
        """
        record_type = record_type_of(record)
        found, annotation = get_field_annotation(record_type, field_name)
        if not found:
            logger.warning(f"Field '{field_name}' is not declared on {record_type.__name__}; no attribute produced")
            return None

        resolved = resolve_annotation(field_name, annotation)
        if resolved is None:
            logger.debug(f"Field '{field_name}' of {record_type.__name__} has unsupported type {annotation!r}")
            return None

        return self._encode_resolved(record, resolved, fallback, 0, frozenset())

    def assemble(self, record: Any) -> Dict[str, AttributeValue]:
        """
        Build a complete wire item from every readable field of a record.

        Fields are visited in declaration order. When two fields sanitize to
        the same attribute name the first one wins. Fields that produce no
        attribute are left out; the item is never padded with nulls.
        """
        return self._assemble(record, 0, frozenset())

    def _assemble(self, record: Any, depth: int, ancestors: FrozenSet[int]) -> Dict[str, AttributeValue]:
        record_type = record_type_of(record)
        ancestors = ancestors | {id(record)}
        item: Dict[str, AttributeValue] = {}
        seen = set()

        for name, annotation in iter_record_fields(record_type):
            attr_name = self.sanitize(name)
            if attr_name in seen:
                continue
            seen.add(attr_name)

            resolved = resolve_annotation(name, annotation)
            if resolved is None:
                logger.debug(f"Skipping field '{name}' of {record_type.__name__}: unsupported type {annotation!r}")
                continue

            value = self._encode_resolved(record, resolved, None, depth, ancestors)
            if value is not None:
                item[attr_name] = value

        return item

    def _read_value(self, record: Any, field_name: str) -> Any:
        if isinstance(record, type):
            return None
        value = getattr(record, field_name, _UNSET)
        # Declared but never assigned (e.g. model_construct without the field)
        return None if value is _UNSET else value

    def _encode_resolved(
        self,
        record: Any,
        resolved: ResolvedField,
        fallback: Any,
        depth: int,
        ancestors: FrozenSet[int]
    ) -> Optional[AttributeValue]:
        try:
            value = self._read_value(record, resolved.name)
            if is_zero_value(value, resolved.kind):
                if fallback is None:
                    return None
                value = fallback
            return self._to_attribute(value, resolved, depth, ancestors)
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(
                f"Could not encode field '{resolved.name}' of {record_type_of(record).__name__} "
                f"as {resolved.kind.value}: {e}"
            )
            return None

    def _to_attribute(
        self,
        value: Any,
        resolved: ResolvedField,
        depth: int,
        ancestors: FrozenSet[int]
    ) -> Optional[AttributeValue]:
        kind = resolved.kind

        if kind is SemanticKind.BOOL:
            if not isinstance(value, bool):
                raise TypeError(f"expected bool, got {type(value).__name__}")
            return {'BOOL': value}

        if kind in NUMERIC_KINDS or kind is SemanticKind.NULLABLE_SCALAR:
            text = format_number(value, resolved.scalar_kind)
            return {'N': text} if text else None

        if kind is SemanticKind.STRING:
            text = value.value if isinstance(value, Enum) else str(value)
            return {'S': text} if text else None

        if kind is SemanticKind.TIMESTAMP:
            text = value.isoformat() if isinstance(value, datetime) else str(value)
            return {'S': text} if text else None

        if kind is SemanticKind.STRING_SET:
            if isinstance(value, str):
                raise TypeError("expected a collection of strings, got a single string")
            # Sets hold unique, non-empty members; first occurrence keeps its position
            strings = list(dict.fromkeys(str(v) for v in value if v is not None and str(v) != ""))
            return {'SS': strings} if strings else None

        if kind is SemanticKind.LIST:
            return self._encode_list(value, resolved, depth, ancestors)

        return None

    def _encode_list(
        self,
        value: Any,
        resolved: ResolvedField,
        depth: int,
        ancestors: FrozenSet[int]
    ) -> Optional[AttributeValue]:
        if depth >= self.max_nesting_depth:
            logger.warning(
                f"Field '{resolved.name}' exceeds the maximum nesting depth of {self.max_nesting_depth}; omitted"
            )
            return None

        elements = []
        for element in value:
            if not is_record_type(type(element)):
                raise TypeError(f"list element of type {type(element).__name__} is not a record")
            if id(element) in ancestors:
                logger.warning(f"Field '{resolved.name}' contains a reference cycle; omitted")
                return None
            elements.append({'M': self._assemble(element, depth + 1, ancestors)})

        return {'L': elements} if elements else None
