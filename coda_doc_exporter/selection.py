from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from .attributes import DEFAULT_COLUMN_ATTRIBUTES, DEFAULT_ROW_ATTRIBUTES
from .projection import OutputMode, ProjectionConfig

logger = logging.getLogger(__name__)


class ColumnSelectionKind(str, Enum):
    NOT_LOADED = 'not_loaded'
    ALL = 'all'
    SUBSET = 'subset'


@dataclass(frozen=True)
class ColumnSelection:
    kind: ColumnSelectionKind = ColumnSelectionKind.NOT_LOADED
    ids: Tuple[str, ...] = ()

    @classmethod
    def all_columns(cls) -> 'ColumnSelection':
        return cls(ColumnSelectionKind.ALL)

    @classmethod
    def subset(cls, ids: Iterable[str]) -> 'ColumnSelection':
        return cls(ColumnSelectionKind.SUBSET, tuple(dict.fromkeys(ids)))

    def resolve(self) -> Optional[Tuple[str, ...]]:
        """Column ids for the projection engine; ``None`` means every column."""
        if self.kind is ColumnSelectionKind.ALL:
            return None
        if self.kind is ColumnSelectionKind.SUBSET:
            return self.ids
        return ()


@dataclass
class SelectionState:
    """Which columns and attributes each table exports.

    Per-table overrides replace the global attribute lists outright; column and
    row overrides are tracked independently.
    """

    global_column_attrs: Tuple[str, ...] = DEFAULT_COLUMN_ATTRIBUTES
    global_row_attrs: Tuple[str, ...] = DEFAULT_ROW_ATTRIBUTES
    mode: OutputMode = OutputMode.COLUMN_CENTRIC
    column_overrides: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    row_overrides: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    column_selections: Dict[str, ColumnSelection] = field(default_factory=dict)

    def seed_columns(self, table_id: str) -> None:
        self.column_selections[table_id] = ColumnSelection.all_columns()

    def set_column_selection(self, table_id: str, ids: Iterable[str]) -> None:
        self.column_selections[table_id] = ColumnSelection.subset(ids)

    def column_selection(self, table_id: str) -> ColumnSelection:
        return self.column_selections.get(table_id, ColumnSelection())

    def resolve_column_ids(self, table_id: str) -> Optional[Tuple[str, ...]]:
        return self.column_selection(table_id).resolve()

    def set_column_override(self, table_id: str, attrs: Optional[Iterable[str]]) -> None:
        if attrs is None:
            self.column_overrides.pop(table_id, None)
        else:
            self.column_overrides[table_id] = tuple(attrs)

    def set_row_override(self, table_id: str, attrs: Optional[Iterable[str]]) -> None:
        if attrs is None:
            self.row_overrides.pop(table_id, None)
        else:
            self.row_overrides[table_id] = tuple(attrs)

    def reset_override(self, table_id: str, kind: str) -> None:
        if kind == 'columns':
            self.set_column_override(table_id, None)
        elif kind == 'rows':
            self.set_row_override(table_id, None)
        else:
            raise ValueError(f"Unknown override kind: {kind!r}")

    def has_column_override(self, table_id: str) -> bool:
        return table_id in self.column_overrides

    def has_row_override(self, table_id: str) -> bool:
        return table_id in self.row_overrides

    def effective_column_attrs(self, table_id: str) -> Tuple[str, ...]:
        override = self.column_overrides.get(table_id)
        return override if override is not None else self.global_column_attrs

    def effective_row_attrs(self, table_id: str) -> Tuple[str, ...]:
        override = self.row_overrides.get(table_id)
        return override if override is not None else self.global_row_attrs

    def set_global_column_attrs(self, attrs: Iterable[str]) -> None:
        self.global_column_attrs = tuple(attrs)

    def set_global_row_attrs(self, attrs: Iterable[str]) -> None:
        self.global_row_attrs = tuple(attrs)

    def set_mode(self, mode) -> None:
        self.mode = OutputMode(mode)

    def projection_config(self, table_id: str) -> ProjectionConfig:
        return ProjectionConfig(
            column_selection=self.resolve_column_ids(table_id),
            column_attrs=self.effective_column_attrs(table_id),
            row_attrs=self.effective_row_attrs(table_id),
            mode=self.mode,
        )

    def clear(self) -> None:
        """Drop per-table state; global attributes and mode are kept."""
        logger.debug("Clearing selection state for %d tables", len(self.column_selections))
        self.column_overrides.clear()
        self.row_overrides.clear()
        self.column_selections.clear()
