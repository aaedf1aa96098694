"""Async HTTP client for the Instapay API.

Responses are returned raw; the authenticator and the deposit handler decide
what a non-2xx or non-JSON answer means.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from .metrics import instapay_request_duration_seconds
from .settings import settings

LOGIN_PATH = "/api/auth/login"
DEPOSIT_PATH = "/api/payments/deposit"


class InstapayClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        connect_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        base_url=self.base_url,
                        timeout=self.timeout,
                        transport=self._transport,
                        follow_redirects=True,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    async def _post(
        self, path: str, payload: dict[str, Any], headers: dict[str, str] | None = None
    ) -> httpx.Response:
        client = await self._get_client()
        started = time.perf_counter()
        try:
            return await client.post(path, json=payload, headers=headers)
        finally:
            instapay_request_duration_seconds.labels(endpoint=path).observe(
                time.perf_counter() - started
            )

    async def login(self, client_id: str, client_secret: str) -> httpx.Response:
        return await self._post(
            LOGIN_PATH, {"client_id": client_id, "client_secret": client_secret}
        )

    async def create_deposit(self, token: str, payload: dict[str, Any]) -> httpx.Response:
        return await self._post(
            DEPOSIT_PATH, payload, headers={"Authorization": f"Bearer {token}"}
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_instapay_client() -> InstapayClient:
    return InstapayClient(
        settings.instapay_base_url,
        timeout=settings.INSTAPAY_TIMEOUT_SECONDS,
        connect_timeout=settings.INSTAPAY_CONNECT_TIMEOUT_SECONDS,
    )


__all__ = ["DEPOSIT_PATH", "LOGIN_PATH", "InstapayClient", "build_instapay_client"]
