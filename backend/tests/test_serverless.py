"""The Mangum adapter answers API Gateway proxy events."""

from __future__ import annotations

import asyncio

import pytest
from backend.pix_gateway.serverless import handler


@pytest.fixture(autouse=True)
def adapter_event_loop():
    # Mangum drives the app on the thread's current loop; asyncio.run in
    # earlier tests leaves none set
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()
        asyncio.set_event_loop(None)


def _event(method: str, body: str | None = None) -> dict:
    headers = {
        "Host": "abc123.execute-api.sa-east-1.amazonaws.com",
        "Content-Type": "application/json",
        "X-Forwarded-Proto": "https",
        "X-Forwarded-Port": "443",
    }
    return {
        "resource": "/",
        "path": "/",
        "httpMethod": method,
        "headers": headers,
        "multiValueHeaders": {key: [value] for key, value in headers.items()},
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "pathParameters": None,
        "stageVariables": None,
        "requestContext": {
            "resourcePath": "/",
            "httpMethod": method,
            "path": "/prod/",
            "stage": "prod",
            "requestId": "req-1",
            "identity": {"sourceIp": "203.0.113.10"},
        },
        "body": body,
        "isBase64Encoded": False,
    }


def _headers(result: dict) -> dict:
    merged = {key.lower(): value for key, value in (result.get("headers") or {}).items()}
    for key, values in (result.get("multiValueHeaders") or {}).items():
        merged.setdefault(key.lower(), values[0])
    return merged


def test_options_through_lambda_adapter():
    result = handler(_event("OPTIONS"), None)

    assert result["statusCode"] == 200
    assert result["body"] == ""
    assert _headers(result)["access-control-allow-origin"] == "*"


def test_get_through_lambda_adapter_is_405():
    result = handler(_event("GET"), None)

    assert result["statusCode"] == 405
    assert "error" in result["body"]
