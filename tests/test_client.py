from __future__ import annotations

import httpx
import pytest

from coda_doc_exporter import client as client_module
from coda_doc_exporter.client import CodaClient, parse_row_count
from coda_doc_exporter.errors import RemoteError

from .conftest import API_TOKEN, BASE_URL, DOC_ID


@pytest.mark.parametrize(
    ("value", "expected"),
    [("0", 0), ("1", 1), ("10", 10), ("All", None), ("all", None), (25, 25)],
)
def test_parse_row_count(value, expected) -> None:
    assert parse_row_count(value) == expected


@pytest.mark.parametrize("value", ["", "-1", "ten", "1.5", None])
def test_parse_row_count_rejects_invalid(value) -> None:
    with pytest.raises(ValueError):
        parse_row_count(value)


def test_requests_carry_bearer_token(coda_client: CodaClient, fake_api) -> None:
    assert coda_client.get_document(DOC_ID)["name"] == "Team Roadmap"

    request = fake_api.requests[0]
    assert request.headers["Authorization"] == f"Bearer {API_TOKEN}"
    assert str(request.url) == f"{BASE_URL}/docs/{DOC_ID}"


def test_load_table_summaries(coda_client: CodaClient) -> None:
    tables = coda_client.load_table_summaries(DOC_ID)

    assert [(t.id, t.name, t.row_count, t.is_view) for t in tables] == [
        ("grid-tasks", "Tasks", 5, False),
        ("view-open", "Open Tasks", 2, True),
    ]
    assert tables[0].updated_at == "2024-05-01T10:00:00.000Z"


def test_missing_updated_at_falls_back_to_now(coda_client: CodaClient, fake_api) -> None:
    del fake_api.details["grid-tasks"]["updatedAt"]

    tables = coda_client.load_table_summaries(DOC_ID)

    assert tables[0].updated_at.endswith("Z")


def test_list_columns(coda_client: CodaClient) -> None:
    columns = coda_client.list_columns(DOC_ID, "grid-tasks")

    assert [c["id"] for c in columns] == ["c-title", "c-owner", "c-tags"]


def test_columns_only_makes_no_row_request(coda_client: CodaClient, fake_api) -> None:
    assert coda_client.fetch_rows(DOC_ID, "grid-tasks", "0") == []
    assert fake_api.requests == []


def test_limited_row_count_fetches_one_page(coda_client: CodaClient, fake_api) -> None:
    rows = coda_client.fetch_rows(DOC_ID, "grid-tasks", "1")

    assert [r["id"] for r in rows] == ["i-1"]
    assert len(fake_api.requests) == 1
    params = fake_api.requests[0].url.params
    assert params["limit"] == "1"
    assert params["valueFormat"] == "simpleWithArrays"


def test_all_rows_follows_page_tokens(coda_client: CodaClient, fake_api) -> None:
    rows = coda_client.fetch_rows(DOC_ID, "grid-tasks", "All")

    assert [r["id"] for r in rows] == ["i-1", "i-2", "i-3", "i-4", "i-5"]
    tokens = [request.url.params.get("pageToken") for request in fake_api.requests]
    assert tokens == [None, "2", "4"]
    assert all("limit" not in request.url.params for request in fake_api.requests)


def test_ids_are_url_encoded(coda_client: CodaClient, fake_api) -> None:
    with pytest.raises(RemoteError):
        coda_client.list_columns(DOC_ID, "grid/../x")

    assert b"/tables/grid%2F..%2Fx/columns" in fake_api.requests[0].url.raw_path


def test_invalid_token_maps_to_401_message(http_client: httpx.Client) -> None:
    client = CodaClient("wrong-token", base_url=BASE_URL, client=http_client)

    with pytest.raises(RemoteError) as exc_info:
        client.get_document(DOC_ID)

    assert exc_info.value.status_code == 401
    assert "Invalid API Token" in exc_info.value.message


def test_unknown_table_maps_to_404_message(coda_client: CodaClient) -> None:
    with pytest.raises(RemoteError) as exc_info:
        coda_client.get_table_details(DOC_ID, "grid-missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Table not found. Please check your Table ID."


def test_other_status_maps_to_generic_message(coda_client: CodaClient, fake_api) -> None:
    fake_api.fail(f"/apis/v1/docs/{DOC_ID}", 500)

    with pytest.raises(RemoteError) as exc_info:
        coda_client.get_document(DOC_ID)

    assert exc_info.value.status_code == 500
    assert "HTTP 500" in exc_info.value.message


def test_transport_error_becomes_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as http_client:
        client = CodaClient(API_TOKEN, base_url=BASE_URL, client=http_client)
        with pytest.raises(RemoteError) as exc_info:
            client.get_document(DOC_ID)

    assert exc_info.value.status_code is None
    assert "Could not reach" in exc_info.value.message


def test_non_json_body_becomes_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with httpx.Client(transport=httpx.MockTransport(handler)) as http_client:
        client = CodaClient(API_TOKEN, base_url=BASE_URL, client=http_client)
        with pytest.raises(RemoteError):
            client.get_document(DOC_ID)


def test_table_listing_is_retried_with_fixed_delay(coda_client: CodaClient, fake_api, monkeypatch) -> None:
    delays = []
    monkeypatch.setattr(client_module.time, "sleep", delays.append)
    fake_api.fail(f"/apis/v1/docs/{DOC_ID}/tables", 503, times=2)

    tables = coda_client.load_table_summaries(DOC_ID, retries=3, retry_delay=1.0)

    assert len(tables) == 2
    assert delays == [1.0, 1.0]


def test_table_listing_gives_up_after_retries(coda_client: CodaClient, fake_api, monkeypatch) -> None:
    monkeypatch.setattr(client_module.time, "sleep", lambda _: None)
    fake_api.fail(f"/apis/v1/docs/{DOC_ID}/tables", 503, times=3)

    with pytest.raises(RemoteError):
        coda_client.load_table_summaries(DOC_ID, retries=2)


def test_client_closes_only_its_own_http_client(http_client: httpx.Client) -> None:
    with CodaClient(API_TOKEN, base_url=BASE_URL, client=http_client):
        pass

    assert not http_client.is_closed
