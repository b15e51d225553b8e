"""
Type Schema Resolver

Classifies a record field's declared type into a semantic kind, which in
turn decides the DynamoDB attribute variant used on the wire. Record types
are pydantic models or dataclasses; their fields are discovered through
``iter_record_fields`` in declaration order.

Resolution mirrors a fixed lookup table keyed by lowercased type name.
Generic wrappers are classified by their origin (``Optional``, ``List``,
``Set``...), and only list element types are unpacked further.
"""

import dataclasses
import logging
import types
import typing
from enum import Enum
from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class SemanticKind(str, Enum):
    """Internal classification of a field's type."""
    BOOL = "bool"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DOUBLE = "double"
    FLOAT = "float"
    STRING = "string"
    TIMESTAMP = "timestamp"
    STRING_SET = "string_set"
    NULLABLE_SCALAR = "nullable_scalar"
    LIST = "list"


NUMERIC_KINDS = frozenset({
    SemanticKind.INTEGER,
    SemanticKind.DECIMAL,
    SemanticKind.DOUBLE,
    SemanticKind.FLOAT,
})

# Wire variant carried by each kind
WIRE_TYPES: Dict[SemanticKind, str] = {
    SemanticKind.BOOL: 'BOOL',
    SemanticKind.INTEGER: 'N',
    SemanticKind.DECIMAL: 'N',
    SemanticKind.DOUBLE: 'N',
    SemanticKind.FLOAT: 'N',
    SemanticKind.STRING: 'S',
    SemanticKind.TIMESTAMP: 'S',
    SemanticKind.STRING_SET: 'SS',
    SemanticKind.NULLABLE_SCALAR: 'N',
    SemanticKind.LIST: 'L',
}

# Lowercased type name -> kind
_SCALAR_TYPE_NAMES: Dict[str, SemanticKind] = {
    'bool': SemanticKind.BOOL,
    'int': SemanticKind.INTEGER,
    'decimal': SemanticKind.DECIMAL,
    'float': SemanticKind.DOUBLE,
    'float32': SemanticKind.FLOAT,
    'float16': SemanticKind.FLOAT,
    'str': SemanticKind.STRING,
    'datetime': SemanticKind.TIMESTAMP,
}

_SEQUENCE_ORIGINS = (list, set, frozenset, tuple)

_UNION_TYPES = tuple(t for t in (Union, getattr(types, 'UnionType', None)) if t is not None)


class ResolvedField(NamedTuple):
    """Result of resolving one field of a record type.

    ``scalar_kind`` is the kind used to format the value: the wrapped
    numeric kind for NULLABLE_SCALAR, otherwise ``kind`` itself.
    ``element_type`` is set for LIST fields only.
    """
    name: str
    kind: SemanticKind
    scalar_kind: SemanticKind
    element_type: Optional[type] = None

    @property
    def wire_type(self) -> str:
        return WIRE_TYPES[self.kind]


def record_type_of(record: Any) -> type:
    """Record type of an instance, or the argument itself when it is a type."""
    return record if isinstance(record, type) else type(record)


def is_record_type(tp: Any) -> bool:
    """True for pydantic models and dataclasses."""
    if not isinstance(tp, type):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def iter_record_fields(record_type: Type[Any]) -> Iterator[Tuple[str, Any]]:
    """Yield ``(field_name, annotation)`` pairs in declaration order.

    Private names (leading underscore) are skipped. Types that are neither
    pydantic models nor dataclasses have no readable fields.
    """
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        for name, info in record_type.model_fields.items():
            if not name.startswith('_'):
                yield name, info.annotation
    elif dataclasses.is_dataclass(record_type):
        try:
            hints = typing.get_type_hints(record_type)
        except Exception as e:
            logger.warning(f"Could not resolve type hints for {record_type.__name__}: {e}")
            hints = {}
        for field in dataclasses.fields(record_type):
            if not field.name.startswith('_'):
                yield field.name, hints.get(field.name, field.type)


def get_field_annotation(record_type: Type[Any], field_name: str) -> Tuple[bool, Any]:
    """Return ``(found, annotation)`` for a named field."""
    for name, annotation in iter_record_fields(record_type):
        if name == field_name:
            return True, annotation
    return False, None


def _kind_for_type(tp: Any) -> Optional[SemanticKind]:
    if not isinstance(tp, type):
        return None

    if issubclass(tp, Enum):
        # str/int-valued enums are stored through their value
        if issubclass(tp, str):
            return SemanticKind.STRING
        if issubclass(tp, int) and not issubclass(tp, bool):
            return SemanticKind.INTEGER
        return None

    return _SCALAR_TYPE_NAMES.get(tp.__name__.lower())


def _unwrap_optional(annotation: Any) -> Tuple[bool, Any]:
    """Return ``(is_optional, inner)`` for ``Optional[X]``; non-optional unions yield ``(False, None)``."""
    args = get_args(annotation)
    non_none = [arg for arg in args if arg is not type(None)]
    if len(non_none) == 1 and len(non_none) < len(args):
        return True, non_none[0]
    return False, None


def unwrap_annotation(annotation: Any) -> Tuple[bool, Any]:
    """Return ``(is_optional, inner_type)`` with ``Annotated`` and ``Optional`` stripped."""
    if get_origin(annotation) is typing.Annotated:
        annotation = get_args(annotation)[0]
    if get_origin(annotation) in _UNION_TYPES:
        is_optional, inner = _unwrap_optional(annotation)
        if is_optional:
            return True, unwrap_annotation(inner)[1]
    return False, annotation


def _collection_element(origin: Any, args: Tuple[Any, ...]) -> Optional[Any]:
    if not args:
        return None
    if origin is tuple:
        elements = [arg for arg in args if arg is not Ellipsis]
        if len(set(elements)) != 1:
            return None
        return elements[0]
    return args[0]


def resolve_annotation(name: str, annotation: Any) -> Optional[ResolvedField]:
    """Classify a declared type; None means the type is not supported."""
    origin = get_origin(annotation)

    if origin is None:
        kind = _kind_for_type(annotation)
        return ResolvedField(name, kind, kind) if kind else None

    if origin is typing.Annotated:
        return resolve_annotation(name, get_args(annotation)[0])

    if origin in _UNION_TYPES:
        is_optional, inner = _unwrap_optional(annotation)
        if not is_optional:
            return None
        resolved = resolve_annotation(name, inner)
        if resolved is None:
            return None
        if resolved.kind in NUMERIC_KINDS:
            return ResolvedField(name, SemanticKind.NULLABLE_SCALAR, resolved.kind)
        # None is already the zero value of every other kind
        return resolved

    if origin in _SEQUENCE_ORIGINS:
        element = _collection_element(origin, get_args(annotation))
        if element is str:
            return ResolvedField(name, SemanticKind.STRING_SET, SemanticKind.STRING_SET)
        if origin is list and is_record_type(element):
            return ResolvedField(name, SemanticKind.LIST, SemanticKind.LIST, element)

    return None


def resolve_field(record_type: Type[Any], field_name: str) -> Optional[ResolvedField]:
    """Resolve a named field of a record type.

    Returns None when the field is not declared or its type is not
    supported; callers skip the field in both cases.
    """
    found, annotation = get_field_annotation(record_type, field_name)
    if not found:
        return None
    return resolve_annotation(field_name, annotation)


def resolve_kind(record_type: Type[Any], field_name: str) -> Optional[SemanticKind]:
    resolved = resolve_field(record_type, field_name)
    return resolved.kind if resolved else None


def resolve_value_kind(value: Any) -> Optional[SemanticKind]:
    """Kind of an ad hoc value, from its runtime type."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        if value and all(isinstance(v, str) for v in value):
            return SemanticKind.STRING_SET
        return None
    return _kind_for_type(type(value))


__all__ = [
    "SemanticKind",
    "NUMERIC_KINDS",
    "WIRE_TYPES",
    "ResolvedField",
    "record_type_of",
    "is_record_type",
    "iter_record_fields",
    "get_field_annotation",
    "resolve_annotation",
    "unwrap_annotation",
    "resolve_field",
    "resolve_kind",
    "resolve_value_kind",
]
