"""
Attribute Definition Builder

Derives the scalar type declaration (S, N or B) of a key attribute for
CreateTable and UpdateTable requests. Unlike field encoding, a key whose
type cannot be declared is a hard error: a table cannot exist without a
typed key.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import KeyDefinitionError
from .kinds import NUMERIC_KINDS, SemanticKind, record_type_of, resolve_field, get_field_annotation, resolve_value_kind
from .naming import NamingPolicy, sanitize_attribute_name

logger = logging.getLogger(__name__)

SCALAR_ATTRIBUTE_TYPES = ('S', 'N', 'B')


class KeyDefinition(BaseModel):
    """Key attribute name (already sanitized) and its scalar wire type."""

    attribute_name: str
    attribute_type: str

    model_config = ConfigDict(frozen=True)

    def to_attribute_definition(self) -> Dict[str, str]:
        return {'AttributeName': self.attribute_name, 'AttributeType': self.attribute_type}

    def to_key_schema_element(self, key_type: str) -> Dict[str, str]:
        return {'AttributeName': self.attribute_name, 'KeyType': key_type}


def scalar_attribute_type(wire_type: str) -> str:
    """Validate a wire type as a DynamoDB ScalarAttributeType."""
    if wire_type not in SCALAR_ATTRIBUTE_TYPES:
        raise KeyDefinitionError(f"'{wire_type}' is not a scalar attribute type")
    return wire_type


def _scalar_type_for_kind(kind: Optional[SemanticKind]) -> Optional[str]:
    if kind in NUMERIC_KINDS or kind is SemanticKind.NULLABLE_SCALAR:
        return scalar_attribute_type('N')
    if kind in (SemanticKind.STRING, SemanticKind.TIMESTAMP):
        return scalar_attribute_type('S')
    return None


def define_key(record: Any, field_name: str, policy: Optional[NamingPolicy] = None, value: Any = None) -> KeyDefinition:
    """
    Build the key declaration for a field.

    When the field is not declared on the record type, the runtime type of
    ``value`` is inspected instead, which lets callers key a table on an
    ad hoc value.

    Args:
        record: Record instance or record type
        field_name: Declared field name
        policy: Naming policy used to sanitize the attribute name
        value: Ad hoc key value, used only when the field is not declared

    Returns:
        KeyDefinition with the sanitized name and S/N type

    Raises:
        KeyDefinitionError: Boolean, collection or unsupported key types
    """
    policy = policy or NamingPolicy()
    record_type = record_type_of(record)

    found, _ = get_field_annotation(record_type, field_name)
    if found:
        resolved = resolve_field(record_type, field_name)
        kind = resolved.kind if resolved else None
    else:
        kind = resolve_value_kind(value)

    if kind is SemanticKind.BOOL:
        raise KeyDefinitionError(
            f"Boolean field '{field_name}' cannot be used as a key",
            record_type.__name__,
            field_name
        )

    scalar_type = _scalar_type_for_kind(kind)
    if scalar_type is None:
        kind_name = kind.value if kind else "unsupported"
        raise KeyDefinitionError(
            f"Field '{field_name}' of kind '{kind_name}' cannot be declared as a key attribute",
            record_type.__name__,
            field_name
        )

    attribute_name = sanitize_attribute_name(field_name, policy)
    logger.debug(f"Key '{attribute_name}' of {record_type.__name__} declared as {scalar_type}")
    return KeyDefinition(attribute_name=attribute_name, attribute_type=scalar_type)
