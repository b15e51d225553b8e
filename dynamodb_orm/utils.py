"""
DynamoDB ORM Utilities

Expression building for the low-level client. Every helper returns the
expression string together with its ExpressionAttributeNames and, where
needed, ExpressionAttributeValues. Names are always referenced through
placeholders, so reserved words (``name``, ``status``, ``data``...) are safe.

Placeholder prefixes never overlap, so results of different helpers can be
merged into one request:
- ``#k``/``:k`` key conditions
- ``#f``/``:f`` filters
- ``#p`` projections
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_ITEM_SIZE_BYTES = 400 * 1024

SORT_CONDITIONS = ('eq', 'begins_with', 'between', 'gt', 'gte', 'lt', 'lte')

_COMPARISON_OPERATORS = {
    'eq': '=',
    'gt': '>',
    'gte': '>=',
    'lt': '<',
    'lte': '<=',
}


def build_projection_expression(attribute_names: Optional[List[str]]) -> Tuple[Optional[str], Optional[Dict[str, str]]]:
    """Build ProjectionExpression with ExpressionAttributeNames.

    Args:
        attribute_names: Wire attribute names to project, None for all attributes

    Returns:
        Tuple of (ProjectionExpression, ExpressionAttributeNames) or (None, None)

    Example:
        >>> build_projection_expression(['userId', 'status'])
        ('#p0, #p1', {'#p0': 'userId', '#p1': 'status'})
    """
    if not attribute_names:
        return None, None

    expression_names = {}
    projection_parts = []

    for i, name in enumerate(attribute_names):
        placeholder = f"#p{i}"
        expression_names[placeholder] = name
        projection_parts.append(placeholder)

    return ', '.join(projection_parts), expression_names


def build_key_condition_expression(
    partition_key: str,
    partition_value: Dict[str, Any],
    sort_key: Optional[str] = None,
    sort_condition: str = "eq",
    sort_value: Optional[Dict[str, Any]] = None,
    sort_value2: Optional[Dict[str, Any]] = None
) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """Build KeyConditionExpression from encoded key values.

    Args:
        partition_key: Partition key attribute name
        partition_value: Encoded partition key value, e.g. ``{'S': 'c-1'}``
        sort_key: Sort key attribute name (optional)
        sort_condition: 'eq', 'begins_with', 'between', 'gt', 'gte', 'lt' or 'lte'
        sort_value: Encoded sort key value
        sort_value2: Encoded upper bound (required for 'between')

    Returns:
        Tuple of (expression, ExpressionAttributeNames, ExpressionAttributeValues)

    Examples:
        >>> build_key_condition_expression('customerId', {'S': 'c-1'})
        ('#k0 = :k0', {'#k0': 'customerId'}, {':k0': {'S': 'c-1'}})

        >>> build_key_condition_expression('pk', {'S': 'a'}, 'sk', 'begins_with', {'S': '2024'})
        ('#k0 = :k0 AND begins_with(#k1, :k1)', ...)

    Raises:
        ValueError: For invalid sort_condition or missing sort_value2 for 'between'
    """
    names = {'#k0': partition_key}
    values = {':k0': partition_value}
    expression = "#k0 = :k0"

    if sort_key and sort_value is not None:
        names['#k1'] = sort_key
        values[':k1'] = sort_value

        if sort_condition in _COMPARISON_OPERATORS:
            expression += f" AND #k1 {_COMPARISON_OPERATORS[sort_condition]} :k1"
        elif sort_condition == "begins_with":
            expression += " AND begins_with(#k1, :k1)"
        elif sort_condition == "between":
            if sort_value2 is None:
                raise ValueError("'between' condition requires sort_value2 parameter")
            values[':k2'] = sort_value2
            expression += " AND #k1 BETWEEN :k1 AND :k2"
        else:
            raise ValueError(
                f"Unsupported sort_condition: {sort_condition}. "
                f"Supported values: {', '.join(SORT_CONDITIONS)}"
            )

    return expression, names, values


def build_filter_expression(filters: Dict[str, Dict[str, Any]]) -> Tuple[Optional[str], Dict[str, str], Dict[str, Any]]:
    """Build an equality FilterExpression joined with AND.

    Args:
        filters: Wire attribute names mapped to encoded values

    Returns:
        Tuple of (FilterExpression or None, names, values)

    Example:
        >>> build_filter_expression({'status': {'S': 'open'}})
        ('#f0 = :f0', {'#f0': 'status'}, {':f0': {'S': 'open'}})
    """
    if not filters:
        return None, {}, {}

    names = {}
    values = {}
    conditions = []
    for i, (attr_name, value) in enumerate(filters.items()):
        names[f"#f{i}"] = attr_name
        values[f":f{i}"] = value
        conditions.append(f"#f{i} = :f{i}")

    return " AND ".join(conditions), names, values


def calculate_item_size(item: Dict[str, Any]) -> int:
    """Calculate approximate DynamoDB item size in bytes.

    Attribute names and values both count toward the size; serializing the
    wire item to compact JSON is a close approximation.
    """
    json_str = json.dumps(item, default=str, separators=(',', ':'))
    return len(json_str.encode('utf-8'))


__all__ = [
    "MAX_ITEM_SIZE_BYTES",
    "SORT_CONDITIONS",
    "build_projection_expression",
    "build_key_condition_expression",
    "build_filter_expression",
    "calculate_item_size",
]
