from __future__ import annotations

import logging
from typing import List, Optional

import gradio as gr

from .client import CodaClient
from .config_store import ConfigStore
from .credentials import require_credentials
from .errors import ExporterError, StorageError
from .io_utils import dump_json, write_export
from .models import SavedDocument
from .session import ExporterSession
from .settings import get_settings

logger = logging.getLogger(__name__)

ROW_COUNT_CHOICES = [("Columns Only", "0"), ("1 Row", "1"), ("10 Rows", "10"), ("All Rows", "All")]


def open_client(api_token: str) -> CodaClient:
    settings = get_settings()
    return CodaClient(api_token, base_url=settings.api_base_url, timeout=settings.request_timeout)


def get_config_store() -> ConfigStore:
    return ConfigStore(get_settings().config_path)


def ensure_session(session) -> ExporterSession:
    return session if isinstance(session, ExporterSession) else ExporterSession()


def saved_docs_update(docs: List[SavedDocument], value: Optional[str] = None):
    choices = [(f"{d.doc_name} ({d.doc_id})", d.doc_id) for d in docs]
    return gr.update(choices=choices, value=value)


def doc_title(session: ExporterSession) -> str:
    if not session.doc_name:
        return "No document loaded."
    return f"### {session.doc_name}"


def preview_text(session: ExporterSession) -> str:
    if not session.loaded:
        return ""
    return dump_json(session.document_payload())


def table_views(session: ExporterSession):
    """Updates for the table checklist and the single-table picker."""
    choices = [(t.label, t.id) for t in session.tables]
    focused = session.tables[0].id if session.tables else None
    return (
        gr.update(choices=choices, value=list(session.selected_tables)),
        gr.update(choices=choices, value=focused),
    )


def column_filter_update(session: ExporterSession, table_id: Optional[str]):
    if not table_id:
        return gr.update(choices=[], value=[])
    columns = session.column_choices(table_id)
    choices = [(col.get("name") or col.get("id"), col.get("id")) for col in columns]
    return gr.update(choices=choices, value=session.selected_column_ids(table_id))


def initial_state_handler():
    session = ExporterSession()
    store = get_config_store()
    try:
        api_token, doc_id = store.last_credentials()
        docs = store.saved_documents()
    except StorageError as exc:
        return session, "", "", saved_docs_update([]), exc.message

    session.api_token, session.doc_id = api_token, doc_id
    status = f"Found {len(docs)} saved documents." if docs else ""
    return session, api_token, doc_id, saved_docs_update(docs), status


def load_tables_handler(session, api_token, doc_id):
    session = ensure_session(session)
    api_token = (api_token or "").strip()
    doc_id = (doc_id or "").strip()

    try:
        require_credentials(api_token, doc_id)
    except ExporterError as exc:
        tables_update, picker_update = table_views(session)
        return session, exc.message, doc_title(session), tables_update, picker_update, preview_text(session)

    session.switch_document(api_token, doc_id)
    settings = get_settings()
    try:
        with open_client(api_token) as client:
            tables = session.load_tables(
                client,
                retries=settings.table_list_retries,
                retry_delay=settings.retry_delay,
            )
    except ExporterError as exc:
        logger.warning("Loading tables for %s failed: %s", doc_id, exc.message)
        tables_update, picker_update = table_views(session)
        return session, f"Failed to fetch tables. {exc.message}", doc_title(session), tables_update, picker_update, ""

    status = f"Loaded {len(tables)} tables from \"{session.doc_name}\"."
    try:
        get_config_store().remember_credentials(api_token, doc_id)
    except StorageError as exc:
        status = f"{status} {exc.message}"

    tables_update, picker_update = table_views(session)
    return session, status, doc_title(session), tables_update, picker_update, preview_text(session)


def select_tables_handler(session, table_ids):
    session = ensure_session(session)
    session.set_selected_tables(table_ids or [])
    return session, preview_text(session)


def select_all_tables_handler(session, select_all):
    session = ensure_session(session)
    session.set_selected_tables([t.id for t in session.tables] if select_all else [])
    return session, gr.update(value=list(session.selected_tables)), preview_text(session)


def select_all_columns_handler(session, table_id, select_all):
    session = ensure_session(session)
    data = session.table_data.get(table_id) if table_id else None
    if data is None or not data.columns_loaded:
        return session, column_filter_update(session, table_id), "Fetch the table before choosing columns.", preview_text(session)

    if select_all:
        session.selection.seed_columns(table_id)
    else:
        session.selection.set_column_selection(table_id, [])
    return session, column_filter_update(session, table_id), "", preview_text(session)


def focus_table_handler(session, table_id):
    session = ensure_session(session)
    if not table_id:
        return (
            gr.update(value="1"),
            column_filter_update(session, None),
            False,
            gr.update(value=[]),
            False,
            gr.update(value=[]),
            "",
        )

    try:
        table = session.find_table(table_id)
    except LookupError as exc:
        return gr.update(), gr.update(), gr.update(), gr.update(), gr.update(), gr.update(), str(exc)

    selection = session.selection
    status = f"{table.name}: {session.table_status.get(table_id, 'pending')}"
    return (
        gr.update(value=session.row_counts.get(table_id, "1")),
        column_filter_update(session, table_id),
        selection.has_column_override(table_id),
        gr.update(value=list(selection.effective_column_attrs(table_id))),
        selection.has_row_override(table_id),
        gr.update(value=list(selection.effective_row_attrs(table_id))),
        status,
    )


def fetch_table_handler(session, table_id, row_count):
    session = ensure_session(session)
    if not table_id:
        return session, column_filter_update(session, None), "Select a table first.", preview_text(session)

    try:
        table = session.find_table(table_id)
        with open_client(session.api_token) as client:
            data = session.load_table(client, table_id, row_count)
    except (ExporterError, LookupError, ValueError) as exc:
        message = exc.message if isinstance(exc, ExporterError) else str(exc)
        return session, column_filter_update(session, table_id), f"Failed to load table. {message}", preview_text(session)

    status = f"{table.name}: loaded {len(data.columns or [])} columns and {len(data.rows or [])} rows."
    return session, column_filter_update(session, table_id), status, preview_text(session)


def column_filter_handler(session, table_id, column_ids):
    session = ensure_session(session)
    if table_id:
        session.selection.set_column_selection(table_id, column_ids or [])
    return session, preview_text(session)


def column_override_handler(session, table_id, enabled, attrs):
    session = ensure_session(session)
    if table_id:
        if enabled:
            session.selection.set_column_override(table_id, attrs or [])
        else:
            session.selection.reset_override(table_id, "columns")
    return session, preview_text(session)


def row_override_handler(session, table_id, enabled, attrs):
    session = ensure_session(session)
    if table_id:
        if enabled:
            session.selection.set_row_override(table_id, attrs or [])
        else:
            session.selection.reset_override(table_id, "rows")
    return session, preview_text(session)


def global_settings_handler(session, column_attrs, row_attrs, output_mode):
    session = ensure_session(session)
    selection = session.selection
    selection.set_global_column_attrs(column_attrs or [])
    selection.set_global_row_attrs(row_attrs or [])
    if output_mode:
        selection.set_mode(output_mode)
    return session, preview_text(session)


def export_table_handler(session, table_id):
    session = ensure_session(session)
    if not table_id:
        return None, "Select a table first."
    try:
        table = session.find_table(table_id)
    except LookupError as exc:
        return None, str(exc)
    if session.table_status.get(table_id) != "loaded":
        return None, f"Load \"{table.name}\" before exporting it."

    try:
        path = write_export({table.name: session.table_payload(table_id)}, table.name)
    except ExporterError as exc:
        return None, exc.message
    return path, f"Exported \"{table.name}\" to {path}"


def export_document_handler(session):
    session = ensure_session(session)
    if not session.selected_tables:
        return None, "No tables selected."

    payload = session.document_payload()
    if not payload:
        return None, "None of the selected tables has been loaded yet."

    try:
        path = write_export(payload, session.doc_name)
    except ExporterError as exc:
        return None, exc.message
    return path, f"Exported {len(payload)} tables to {path}"


def save_document_handler(session, api_token, doc_id):
    session = ensure_session(session)
    api_token = (api_token or "").strip()
    doc_id = (doc_id or "").strip()

    if not api_token or not doc_id or session.doc_id != doc_id or not session.doc_name:
        return gr.update(), "API Token, Document ID, and Document Name are required to save. Load the document first."

    doc = SavedDocument(api_token=api_token, doc_id=doc_id, doc_name=session.doc_name)
    try:
        docs = get_config_store().save_document(doc)
    except StorageError as exc:
        return gr.update(), exc.message
    return saved_docs_update(docs, doc.doc_id), f"Document \"{doc.doc_name}\" saved."


def load_saved_document_handler(session, doc_id):
    session = ensure_session(session)
    store = get_config_store()
    try:
        docs = store.saved_documents()
    except StorageError as exc:
        return (session, gr.update(), gr.update(), exc.message) + _document_views(session)

    doc = next((d for d in docs if d.doc_id == doc_id), None)
    if doc is None:
        return (session, gr.update(), gr.update(), "Select a saved document first.") + _document_views(session)

    session.switch_document(doc.api_token, doc.doc_id, doc.doc_name)
    status = f"Loaded document: {doc.doc_name}. Click \"Load Tables\" to fetch its tables."
    try:
        store.remember_credentials(doc.api_token, doc.doc_id)
    except StorageError as exc:
        status = f"{status} {exc.message}"
    return (session, doc.api_token, doc.doc_id, status) + _document_views(session)


def remove_saved_document_handler(session, doc_id, api_token, current_doc_id):
    session = ensure_session(session)
    if not doc_id:
        return (session, gr.update(), api_token, current_doc_id, "Select a saved document first.") + _document_views(session)

    try:
        docs = get_config_store().remove_document(doc_id)
    except StorageError as exc:
        return (session, gr.update(), api_token, current_doc_id, exc.message) + _document_views(session)

    if (current_doc_id or "").strip() == doc_id:
        session.reset()
        api_token, current_doc_id = "", ""
    return (
        session,
        saved_docs_update(docs),
        api_token,
        current_doc_id,
        "Document removed from saved list.",
    ) + _document_views(session)


def reset_handler(session):
    session = ensure_session(session)
    session.reset()
    status = "Reset successful."
    try:
        get_config_store().forget_credentials()
    except StorageError as exc:
        status = f"{status} {exc.message}"
    return (session, "", "", status) + _document_views(session) + (None,)


def _document_views(session: ExporterSession) -> tuple:
    tables_update, picker_update = table_views(session)
    return doc_title(session), tables_update, picker_update, preview_text(session)
