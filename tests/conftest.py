from __future__ import annotations

from typing import Any, Dict, List

import httpx
import pytest

from coda_doc_exporter.client import CodaClient
from coda_doc_exporter.config_store import ConfigStore

API_TOKEN = "0123456789abcdef0123456789abcdef"
BASE_URL = "https://coda.test/apis/v1"
DOC_ID = "AbCdEf123"


class FakeCodaApi:
    """In-memory stand-in for the Coda endpoints, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.document = {"id": DOC_ID, "name": "Team Roadmap"}
        self.tables = [
            {"id": "grid-tasks", "name": "Tasks", "tableType": "table"},
            {"id": "view-open", "name": "Open Tasks", "tableType": "view"},
        ]
        self.details = {
            "grid-tasks": {"rowCount": 5, "updatedAt": "2024-05-01T10:00:00.000Z", "tableType": "table"},
            "view-open": {"rowCount": 2, "updatedAt": "2024-05-02T10:00:00.000Z", "tableType": "view"},
        }
        self.columns: Dict[str, List[Dict[str, Any]]] = {
            "grid-tasks": [
                {"id": "c-title", "name": "Title", "display": True, "format": {"type": "text"}, "type": "column"},
                {"id": "c-owner", "name": "Owner", "format": {"type": "person"}, "formula": "", "type": "column"},
                {"id": "c-tags", "name": "Tags", "calculated": True, "type": "column"},
            ],
            "view-open": [
                {"id": "c-title", "name": "Title", "type": "column"},
            ],
        }
        self.rows: Dict[str, List[Dict[str, Any]]] = {
            "grid-tasks": [
                {
                    "id": f"i-{n}",
                    "name": f"Task {n}",
                    "index": n,
                    "createdAt": f"2024-04-0{n}T00:00:00.000Z",
                    "values": {"c-title": f"Task {n}", "c-owner": "" if n == 2 else f"user{n}", "c-tags": ["a", "b"]},
                }
                for n in range(1, 6)
            ],
            "view-open": [
                {"id": "i-1", "values": {"c-title": "Task 1"}},
            ],
        }
        self.page_size = 2
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, List[int]] = {}

    def fail(self, path: str, status: int, times: int = 1) -> None:
        self.failures.setdefault(path, []).extend([status] * times)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {API_TOKEN}":
            return httpx.Response(401, json={"statusCode": 401, "message": "Unauthorized"})

        path = request.url.path
        pending = self.failures.get(path)
        if pending:
            return httpx.Response(pending.pop(0), json={"message": "failure"})

        parts = path.removeprefix("/apis/v1/").split("/")
        if len(parts) < 2 or parts[0] != "docs" or parts[1] != self.document["id"]:
            return httpx.Response(404, json={"message": "Not found"})

        if len(parts) == 2:
            return httpx.Response(200, json=self.document)
        if parts[2:] == ["tables"]:
            return httpx.Response(200, json={"items": self.tables})

        table_id = parts[3] if len(parts) > 3 else None
        if table_id not in self.details:
            return httpx.Response(404, json={"message": "Not found"})
        if len(parts) == 4:
            return httpx.Response(200, json=self.details[table_id])
        if parts[4] == "columns":
            return httpx.Response(200, json={"items": self.columns[table_id]})
        if parts[4] == "rows":
            return self._rows_page(request, self.rows[table_id])
        return httpx.Response(404, json={"message": "Not found"})

    def _rows_page(self, request: httpx.Request, rows: List[Dict[str, Any]]) -> httpx.Response:
        params = request.url.params
        start = int(params.get("pageToken") or 0)
        size = int(params["limit"]) if "limit" in params else self.page_size
        items = rows[start:start + size]
        payload: Dict[str, Any] = {"items": items}
        if start + size < len(rows):
            payload["nextPageToken"] = str(start + size)
        return httpx.Response(200, json=payload)


@pytest.fixture
def fake_api() -> FakeCodaApi:
    return FakeCodaApi()


@pytest.fixture
def http_client(fake_api: FakeCodaApi):
    client = httpx.Client(transport=httpx.MockTransport(fake_api))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def coda_client(http_client: httpx.Client) -> CodaClient:
    return CodaClient(API_TOKEN, base_url=BASE_URL, client=http_client)


@pytest.fixture
def config_store(tmp_path) -> ConfigStore:
    return ConfigStore(tmp_path / "settings.json")
