"""HTTP-level tests through the FastAPI application."""

from __future__ import annotations

import httpx
import pytest
from conftest import DEFAULT_CHARGE

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "POST, OPTIONS",
    "access-control-allow-headers": "Content-Type",
}
VALID_BODY = {"amount": 25, "external_id": "order-7", "payer": {"name": "João"}}


def _assert_cors(response):
    for key, value in CORS.items():
        assert response.headers[key] == value
    assert response.headers["content-type"].startswith("application/json")


def test_options_preflight(client, fake_instapay):
    res = client.options("/")

    assert res.status_code == 200
    assert res.content == b""
    _assert_cors(res)
    assert fake_instapay.requests == []


@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
def test_non_post_methods_get_405(client, method):
    res = client.request(method, "/")

    assert res.status_code == 405
    assert "error" in res.json()
    _assert_cors(res)


def test_router_level_405_uses_same_body(client):
    res = client.request("TRACE", "/")

    assert res.status_code == 405
    assert res.json() == {"error": "Método não permitido. Use POST."}
    _assert_cors(res)


@pytest.mark.parametrize("path", ["/metrics", "/health"])
def test_405_on_other_routes_keeps_default_body(client, path):
    res = client.post(path)

    assert res.status_code == 405
    assert res.json() == {"detail": "Method Not Allowed"}
    assert "access-control-allow-origin" not in res.headers


def test_post_creates_charge(client, fake_instapay):
    res = client.post("/", json=VALID_BODY)

    assert res.status_code == 200
    assert res.json() == DEFAULT_CHARGE
    _assert_cors(res)
    deposit = fake_instapay.last_deposit_body()
    assert deposit["clientCallbackUrl"] == (
        "https://pay.testserver/.netlify/functions/pix-webhook"
    )
    assert deposit["payer"] == {"name": "João"}


def test_post_missing_fields(client, fake_instapay):
    res = client.post("/", json={"amount": 10})

    assert res.status_code == 400
    body = res.json()
    assert "error" in body
    assert body["missing"] == ["external_id", "payer"]
    _assert_cors(res)
    assert fake_instapay.requests == []


def test_post_invalid_json(client):
    res = client.post("/", content=b"amount=10", headers={"Content-Type": "text/plain"})

    assert res.status_code == 400
    _assert_cors(res)


def test_upstream_error_is_forwarded(client, fake_instapay):
    fake_instapay.on_deposit = lambda request: httpx.Response(
        402, json={"error": "insufficient_funds", "balance": 0}
    )

    res = client.post("/", json=VALID_BODY)

    assert res.status_code == 402
    assert res.json() == {
        "error": "insufficient_funds",
        "details": {"error": "insufficient_funds", "balance": 0},
    }
    _assert_cors(res)


def test_unexpected_failure_is_500_json(client, fake_instapay):
    def explode(request):
        raise httpx.ReadTimeout("timed out", request=request)

    fake_instapay.on_deposit = explode

    res = client.post("/", json=VALID_BODY)

    assert res.status_code == 500
    body = res.json()
    assert body["error"] == "Erro interno do servidor ao processar PIX."
    assert body["details"] == "timed out"
    _assert_cors(res)


def test_second_request_reuses_token(client, fake_instapay):
    assert client.post("/", json=VALID_BODY).status_code == 200
    assert client.post("/", json={**VALID_BODY, "external_id": "order-8"}).status_code == 200

    assert len(fake_instapay.logins) == 1
    assert len(fake_instapay.deposits) == 2
