"""
Naming Policy

Turns record type names into table names and field names into wire
attribute names. The policy is fixed when a store is built and never
changes afterwards.
"""

from typing import Any, Type

from pydantic import BaseModel, ConfigDict

from ..models import extract_table_metadata


class NamingPolicy(BaseModel):
    """Immutable naming switches applied to table and attribute names."""

    camel_case_table_name: bool = False
    pluralize_table_name: bool = False
    camel_case_attribute_names: bool = False

    model_config = ConfigDict(frozen=True)


def to_camel_case(value: str) -> str:
    """Convert a snake_case identifier to lowerCamelCase.

    A name without underscores is lowercased entirely unless it already
    starts with a lowercase letter, which keeps the conversion idempotent:
    ``to_camel_case(to_camel_case(x)) == to_camel_case(x)``.

    Examples:
        >>> to_camel_case("user_id")
        'userId'
        >>> to_camel_case("Name")
        'name'
        >>> to_camel_case("userId")
        'userId'
    """
    if not value:
        return value

    words = [word for word in value.split('_') if word]
    if not words:
        return value

    if len(words) == 1:
        word = words[0]
        return word if word[0].islower() else word.lower()

    camel = words[0].lower()
    for word in words[1:]:
        camel += word[0].upper() + word[1:]
    return camel


def to_plural(value: str) -> str:
    """Pluralize an English type name.

    Examples:
        >>> to_plural("Category")
        'Categories'
        >>> to_plural("Order")
        'Orders'
    """
    if not value:
        return value

    if value.lower().endswith('y'):
        return value[:-1] + 'ies'

    return value + 's'


def sanitize_attribute_name(name: str, policy: NamingPolicy) -> str:
    """Wire attribute name for a field name under the given policy."""
    if policy.camel_case_attribute_names:
        return to_camel_case(name)
    return name


def resolve_table_name(record_type: Type[Any], policy: NamingPolicy) -> str:
    """Base table name for a record type.

    An explicit ``Meta.table_name`` is used verbatim (never pluralized);
    otherwise the class name is pluralized when the policy asks for it.
    Camel-casing applies to both.
    """
    override = extract_table_metadata(record_type)['table_name']
    if override:
        name = override
    else:
        name = record_type.__name__
        if policy.pluralize_table_name:
            name = to_plural(name)

    if policy.camel_case_table_name:
        name = to_camel_case(name)
    return name
