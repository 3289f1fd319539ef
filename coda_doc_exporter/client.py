"""HTTP client for the Coda REST API (v1)."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .errors import RemoteError
from .models import TableSummary

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://coda.io/apis/v1"
DEFAULT_TIMEOUT = 30.0
VALUE_FORMAT = "simpleWithArrays"


def parse_row_count(value: Any) -> Optional[int]:
    """Turn a row-count option into a row limit.

    ``"All"`` gives ``None`` (no limit); ``"0"`` means columns only.
    """
    text = str(value).strip()
    if text.lower() == "all":
        return None
    if not text.isdigit():
        raise ValueError(f"Invalid row count option: {value!r}")
    return int(text)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class CodaClient:
    """Thin synchronous wrapper over the endpoints the exporter needs.

    Pass ``client`` to reuse an existing ``httpx.Client`` (its lifetime stays
    with the caller).
    """

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Accept": "application/json",
        }
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CodaClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get(self, path: str, resource: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        params = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug("GET %s params=%s", path, params)
        try:
            response = self._client.get(url, headers=self._headers, params=params or None)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise RemoteError(f"Could not reach the Coda API: {exc}") from exc

        if response.status_code >= 400:
            logger.warning("GET %s returned HTTP %s", path, response.status_code)
            raise RemoteError.from_status(response.status_code, resource)

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteError(f"Unexpected response from the Coda API for {resource.lower()}.") from exc
        if not isinstance(payload, dict):
            raise RemoteError(f"Unexpected response from the Coda API for {resource.lower()}.")
        return payload

    def _get_all_items(self, path: str, resource: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page_params = dict(params or {})
        while True:
            page = self._get(path, resource, page_params)
            items.extend(page.get("items") or [])
            token = page.get("nextPageToken")
            if not token:
                return items
            page_params["pageToken"] = token

    def get_document(self, doc_id: str) -> Dict[str, Any]:
        return self._get(f"/docs/{_segment(doc_id)}", "Document")

    def list_tables(self, doc_id: str) -> List[Dict[str, Any]]:
        return self._get_all_items(f"/docs/{_segment(doc_id)}/tables", "Document")

    def get_table_details(self, doc_id: str, table_id: str) -> Dict[str, Any]:
        return self._get(f"/docs/{_segment(doc_id)}/tables/{_segment(table_id)}", "Table")

    def list_columns(self, doc_id: str, table_id: str) -> List[Dict[str, Any]]:
        path = f"/docs/{_segment(doc_id)}/tables/{_segment(table_id)}/columns"
        return self._get_all_items(path, "Table")

    def list_rows(
        self,
        doc_id: str,
        table_id: str,
        *,
        limit: Optional[int] = None,
        page_token: Optional[str] = None,
        value_format: str = VALUE_FORMAT,
    ) -> Dict[str, Any]:
        """Fetch one page of rows: ``{"items": [...], "nextPageToken": ...}``."""
        path = f"/docs/{_segment(doc_id)}/tables/{_segment(table_id)}/rows"
        params = {"limit": limit, "pageToken": page_token, "valueFormat": value_format}
        return self._get(path, "Table", params)

    def fetch_rows(self, doc_id: str, table_id: str, row_count: Any) -> List[Dict[str, Any]]:
        limit = parse_row_count(row_count)
        if limit == 0:
            return []

        if limit is not None:
            page = self.list_rows(doc_id, table_id, limit=limit)
            return list(page.get("items") or [])[:limit]

        rows: List[Dict[str, Any]] = []
        page_token = None
        while True:
            page = self.list_rows(doc_id, table_id, page_token=page_token)
            rows.extend(page.get("items") or [])
            page_token = page.get("nextPageToken")
            if not page_token:
                break
        logger.info("Fetched %d rows from table %s", len(rows), table_id)
        return rows

    def load_table_summaries(
        self,
        doc_id: str,
        *,
        retries: int = 0,
        retry_delay: float = 1.0,
    ) -> List[TableSummary]:
        attempt = 0
        while True:
            try:
                listing = self.list_tables(doc_id)
                break
            except RemoteError as exc:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.info("Listing tables failed (%s); retry %d of %d", exc.message, attempt, retries)
                time.sleep(retry_delay)

        summaries = []
        for table in listing:
            details = self.get_table_details(doc_id, table["id"])
            summaries.append(TableSummary.from_api(table, details))
        logger.info("Loaded %d tables from document %s", len(summaries), doc_id)
        return summaries
