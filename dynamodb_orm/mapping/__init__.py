"""
Attribute mapping between records and DynamoDB wire items.

- kinds: field type classification (semantic kinds)
- naming: naming policy, camel-casing, pluralization, table names
- encoder: per-field encoding and whole-record assembly
- definitions: key attribute declarations for table/index creation
- decoder: wire items back into records
"""

from .kinds import SemanticKind, ResolvedField, iter_record_fields, resolve_field, resolve_kind
from .naming import NamingPolicy, to_camel_case, to_plural, sanitize_attribute_name, resolve_table_name
from .encoder import AttributeEncoder, AttributeValue, DEFAULT_MAX_NESTING_DEPTH
from .definitions import KeyDefinition, define_key
from .decoder import item_to_record, deserialize_item

__all__ = [
    "SemanticKind",
    "ResolvedField",
    "iter_record_fields",
    "resolve_field",
    "resolve_kind",
    "NamingPolicy",
    "to_camel_case",
    "to_plural",
    "sanitize_attribute_name",
    "resolve_table_name",
    "AttributeEncoder",
    "AttributeValue",
    "DEFAULT_MAX_NESTING_DEPTH",
    "KeyDefinition",
    "define_key",
    "item_to_record",
    "deserialize_item",
]
