# tests/test_backend_client.py
"""Tests for the PostgREST backend client, using httpx.MockTransport."""

import json

import httpx
import pytest

from bizledger.infrastructure.external.backend_client import BackendClient, BackendError


def _client(handler) -> BackendClient:
    return BackendClient(base_url="http://backend.test/", api_key="k-123", transport=httpx.MockTransport(handler))


def test_rpc_posts_params_with_auth_headers(event_loop):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["apikey"] = request.headers.get("apikey")
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"invoice_id": "inv-1"})

    result = event_loop.run_until_complete(_client(handler).rpc("submit_sales_invoice", {"p_company_id": "co-1"}))
    assert result == {"invoice_id": "inv-1"}
    assert seen["path"] == "/rest/v1/rpc/submit_sales_invoice"
    assert seen["body"] == {"p_company_id": "co-1"}
    assert seen["apikey"] == "k-123"
    assert seen["auth"] == "Bearer k-123"


def test_select_builds_postgrest_filters(event_loop):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"id": "r1"}])

    rows = event_loop.run_until_complete(
        _client(handler).select(
            "tax_rates",
            {"company_id": "co-1", "is_active": True, "name": ["IGST", "CGST"]},
            columns="id,name",
            order="name",
        )
    )
    assert rows == [{"id": "r1"}]
    assert seen["params"] == {
        "select": "id,name",
        "company_id": "eq.co-1",
        "is_active": "is.true",
        "name": "in.(IGST,CGST)",
        "order": "name",
    }


def test_insert_asks_for_representation(event_loop):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["prefer"] = request.headers.get("prefer")
        return httpx.Response(201, json=json.loads(request.content))

    rows = event_loop.run_until_complete(_client(handler).insert("tax_rates", [{"name": "IGST", "rate": 18.0}]))
    assert rows == [{"name": "IGST", "rate": 18.0}]
    assert seen["prefer"] == "return=representation"


def test_empty_body_is_none(event_loop):
    result = event_loop.run_until_complete(_client(lambda r: httpx.Response(204)).rpc("noop", {}))
    assert result is None


def test_http_error_carries_backend_message(event_loop):
    def handler(request):
        return httpx.Response(400, json={"message": "invoice number already used", "code": "23505"})

    with pytest.raises(BackendError) as exc_info:
        event_loop.run_until_complete(_client(handler).rpc("submit_sales_invoice", {}))
    assert exc_info.value.status_code == 400
    assert str(exc_info.value) == "invoice number already used"
    assert exc_info.value.response["code"] == "23505"


def test_connection_error(event_loop):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BackendError) as exc_info:
        event_loop.run_until_complete(_client(handler).rpc("generate_trial_balance", {}))
    assert exc_info.value.status_code == 0


def test_non_json_body(event_loop):
    with pytest.raises(BackendError):
        event_loop.run_until_complete(_client(lambda r: httpx.Response(200, text="<html>")).rpc("x", {}))
