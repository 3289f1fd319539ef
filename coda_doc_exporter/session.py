from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .client import CodaClient, parse_row_count
from .errors import ExporterError
from .models import TableSummary
from .projection import find_name_collisions, project_with_config
from .selection import SelectionState

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_LOADING = 'loading'
STATUS_LOADED = 'loaded'
STATUS_ERROR = 'error'

DEFAULT_ROW_COUNT = '1'


@dataclass
class TableData:
    columns: Optional[List[Dict[str, Any]]] = None
    rows: Optional[List[Dict[str, Any]]] = None

    @property
    def columns_loaded(self) -> bool:
        return self.columns is not None


@dataclass
class ExporterSession:
    """Everything one browser session has loaded and selected.

    Kept in ``gr.State``, so it holds plain data only; callers pass an open
    ``CodaClient`` into the methods that fetch.
    """

    api_token: str = ''
    doc_id: str = ''
    doc_name: str = ''
    tables: List[TableSummary] = field(default_factory=list)
    selected_tables: List[str] = field(default_factory=list)
    row_counts: Dict[str, str] = field(default_factory=dict)
    table_status: Dict[str, str] = field(default_factory=dict)
    table_data: Dict[str, TableData] = field(default_factory=dict)
    selection: SelectionState = field(default_factory=SelectionState)

    @property
    def loaded(self) -> bool:
        return bool(self.tables)

    def find_table(self, table_id: str) -> TableSummary:
        for table in self.tables:
            if table.id == table_id:
                return table
        raise LookupError(f"Unknown table: {table_id}")

    def clear_tables(self) -> None:
        self.tables = []
        self.selected_tables = []
        self.row_counts = {}
        self.table_status = {}
        self.table_data = {}
        self.selection.clear()

    def switch_document(self, api_token: str, doc_id: str, doc_name: str = '') -> None:
        self.api_token = api_token
        self.doc_id = doc_id
        self.doc_name = doc_name
        self.clear_tables()

    def reset(self) -> None:
        self.switch_document('', '', '')

    def load_tables(self, client: CodaClient, *, retries: int = 0, retry_delay: float = 1.0) -> List[TableSummary]:
        self.clear_tables()
        try:
            document = client.get_document(self.doc_id)
            tables = client.load_table_summaries(self.doc_id, retries=retries, retry_delay=retry_delay)
        except ExporterError:
            self.doc_name = ''
            raise

        self.doc_name = document.get('name') or self.doc_id
        self.tables = tables
        self.selected_tables = [t.id for t in tables if not t.is_view]
        self.row_counts = {t.id: DEFAULT_ROW_COUNT for t in tables}
        self.table_status = {t.id: STATUS_PENDING for t in tables}
        return tables

    def set_selected_tables(self, table_ids: Iterable[str]) -> None:
        known = {t.id for t in self.tables}
        wanted = set(table_ids)
        self.selected_tables = [t.id for t in self.tables if t.id in wanted and t.id in known]

    def load_table(
        self,
        client: CodaClient,
        table_id: str,
        row_count: Optional[str] = None,
        *,
        refresh_columns: bool = False,
    ) -> TableData:
        """Fetch columns (first time only, unless refreshed) and rows for one table."""
        self.find_table(table_id)
        row_count = row_count or self.row_counts.get(table_id, DEFAULT_ROW_COUNT)
        parse_row_count(row_count)

        self.row_counts[table_id] = row_count
        self.table_status[table_id] = STATUS_LOADING
        data = self.table_data.setdefault(table_id, TableData())

        try:
            if refresh_columns or not data.columns_loaded:
                data.columns = client.list_columns(self.doc_id, table_id)
                self.selection.seed_columns(table_id)
            data.rows = client.fetch_rows(self.doc_id, table_id, row_count)
        except ExporterError:
            self.table_status[table_id] = STATUS_ERROR
            data.rows = None
            raise

        self.table_status[table_id] = STATUS_LOADED
        logger.info(
            "Loaded table %s: %d columns, %d rows",
            table_id,
            len(data.columns or []),
            len(data.rows or []),
        )
        return data

    def column_choices(self, table_id: str) -> List[Dict[str, Any]]:
        data = self.table_data.get(table_id)
        return list(data.columns or []) if data else []

    def selected_column_ids(self, table_id: str) -> List[str]:
        ids = self.selection.resolve_column_ids(table_id)
        if ids is None:
            return [col.get('id') for col in self.column_choices(table_id)]
        return list(ids)

    def table_payload(self, table_id: str) -> Dict[Any, Any]:
        data = self.table_data.get(table_id)
        if data is None or not data.columns_loaded:
            return {}

        config = self.selection.projection_config(table_id)
        collisions = find_name_collisions(data.columns, config.column_selection)
        for name, ids in collisions.items():
            logger.warning(
                "Table %s: columns %s share the name %r; only the last one is exported",
                table_id,
                ", ".join(str(i) for i in ids),
                name,
            )
        return project_with_config(data.columns, data.rows or [], config)

    def document_payload(self) -> Dict[str, Any]:
        """Projection of every selected, successfully loaded table, keyed by table name."""
        payload: Dict[str, Any] = {}
        for table in self.tables:
            if table.id not in self.selected_tables:
                continue
            if self.table_status.get(table.id) != STATUS_LOADED:
                continue
            payload[table.name] = self.table_payload(table.id)
        return payload
