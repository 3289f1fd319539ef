from __future__ import annotations

from typing import Any, Collection, Dict, Mapping, Tuple

COLUMN_ATTRIBUTES: Tuple[str, ...] = (
    'id',
    'name',
    'display',
    'format',
    'formula',
    'defaultValue',
    'href',
    'calculated',
    'type',
)

ROW_ATTRIBUTES: Tuple[str, ...] = (
    'id',
    'name',
    'values',
    'createdAt',
    'updatedAt',
    'href',
    'index',
    'browserLink',
)

DEFAULT_COLUMN_ATTRIBUTES: Tuple[str, ...] = ('name', 'display', 'format', 'formula', 'defaultValue', 'type')
DEFAULT_ROW_ATTRIBUTES: Tuple[str, ...] = ('values',)


def is_empty_value(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == '')


def select_attributes(
    record: Mapping[str, Any],
    attributes: Collection[str],
    exclude: Collection[str] = (),
) -> Dict[str, Any]:
    """Restrict a record's own fields to ``attributes``.

    Fields whose value is ``""`` or ``None`` are always dropped, whichever
    attribute named them. Field order follows the record.
    """
    allowed = set(attributes)
    return {
        key: value
        for key, value in record.items()
        if key in allowed and key not in exclude and not is_empty_value(value)
    }
