from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Dict, List, Mapping, Optional, Sequence, Tuple

from .attributes import is_empty_value, select_attributes


class OutputMode(str, Enum):
    COLUMN_CENTRIC = 'column-centric'
    ROW_CENTRIC = 'row-centric'


@dataclass(frozen=True)
class ProjectionConfig:
    """Everything ``project`` needs besides the data itself.

    ``column_selection`` of ``None`` keeps every column; an empty tuple keeps none.
    """

    column_selection: Optional[Tuple[str, ...]]
    column_attrs: Tuple[str, ...]
    row_attrs: Tuple[str, ...]
    mode: OutputMode = OutputMode.COLUMN_CENTRIC


def _coerce_mode(mode: Any) -> OutputMode:
    try:
        return OutputMode(mode)
    except ValueError:
        return OutputMode.COLUMN_CENTRIC


def _column_key(column: Mapping[str, Any]) -> Any:
    name = column.get('name')
    return name if name is not None else column.get('id')


def _records(items: Any) -> List[Mapping[str, Any]]:
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def filter_columns(
    columns: Sequence[Mapping[str, Any]],
    column_selection: Optional[Collection[str]],
) -> List[Mapping[str, Any]]:
    columns = _records(columns)
    if column_selection is None:
        return list(columns)
    selected = set(column_selection)
    return [col for col in columns if col.get('id') in selected]


def find_name_collisions(
    columns: Sequence[Mapping[str, Any]],
    column_selection: Optional[Collection[str]] = None,
) -> Dict[Any, List[str]]:
    """Map each output name shared by several kept columns to their ids."""
    by_name: Dict[Any, List[str]] = {}
    for column in filter_columns(columns, column_selection):
        by_name.setdefault(_column_key(column), []).append(column.get('id'))
    return {name: ids for name, ids in by_name.items() if len(ids) > 1}


def _project_column_centric(rows, kept_columns, column_attrs, row_attrs) -> Dict[Any, Any]:
    # Values under deselected ids are dropped, even when the name matches a kept column.
    id_to_name = {col.get('id'): _column_key(col) for col in kept_columns}

    structured: Dict[Any, Any] = {}
    for column in kept_columns:
        entry = select_attributes(column, column_attrs)
        entry['rows'] = []
        structured[_column_key(column)] = entry

    for row in rows:
        values = row.get('values')
        if not isinstance(values, Mapping):
            continue
        row_base = select_attributes(row, row_attrs, exclude=('values',))
        for column_id, value in values.items():
            if column_id not in id_to_name or is_empty_value(value):
                continue
            structured[id_to_name[column_id]]['rows'].append({**row_base, 'value': value})

    return structured


def _project_row_centric(rows, kept_columns, column_attrs, row_attrs) -> Dict[str, Any]:
    structured: Dict[str, Any] = {
        'columns': [select_attributes(col, column_attrs) for col in kept_columns],
        'rows': [],
    }

    for row in rows:
        values = row.get('values')
        if not isinstance(values, Mapping):
            continue
        row_data = select_attributes(row, row_attrs, exclude=('values',))
        row_values: Dict[Any, Any] = {}
        for column in kept_columns:
            value = values.get(column.get('id'))
            if is_empty_value(value):
                continue
            row_values[_column_key(column)] = value
        row_data['values'] = row_values
        structured['rows'].append(row_data)

    return structured


def project(
    columns: Sequence[Mapping[str, Any]],
    rows: Sequence[Mapping[str, Any]],
    column_selection: Optional[Collection[str]],
    column_attrs: Collection[str],
    row_attrs: Collection[str],
    mode: OutputMode = OutputMode.COLUMN_CENTRIC,
) -> Dict[Any, Any]:
    """Reshape a table's columns and rows into an exportable JSON value.

    Column-centric output maps each column name to its selected fields plus a
    ``rows`` list of ``{...row fields, value}`` entries. Row-centric output is
    ``{"columns": [...], "rows": [...]}`` with each row's ``values`` keyed by
    column name.

    Never raises on malformed input: records that are not mappings, rows
    without ``values`` and values under unknown column ids are left out.
    Inputs are not mutated.
    """
    columns = _records(columns)
    rows = _records(rows)
    kept_columns = filter_columns(columns, column_selection)

    if _coerce_mode(mode) is OutputMode.ROW_CENTRIC:
        return _project_row_centric(rows, kept_columns, column_attrs, row_attrs)
    return _project_column_centric(rows, kept_columns, column_attrs, row_attrs)


def project_with_config(
    columns: Sequence[Mapping[str, Any]],
    rows: Sequence[Mapping[str, Any]],
    config: ProjectionConfig,
) -> Dict[Any, Any]:
    return project(
        columns,
        rows,
        config.column_selection,
        config.column_attrs,
        config.row_attrs,
        config.mode,
    )
