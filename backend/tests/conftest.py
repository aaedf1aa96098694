import json
import os
import sys
from pathlib import Path

import httpx
import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ["REDIS_ENABLED"] = "false"
os.environ["INSTAPAY_CLIENT_ID"] = "test-client-id"
os.environ["INSTAPAY_CLIENT_SECRET"] = "test-client-secret"
os.environ["INSTAPAY_API_BASE"] = "https://instapay.test"

from backend.pix_gateway.authenticator import Authenticator  # noqa: E402
from backend.pix_gateway.handler import DepositHandler, get_deposit_handler  # noqa: E402
from backend.pix_gateway.instapay import (  # noqa: E402
    DEPOSIT_PATH,
    LOGIN_PATH,
    InstapayClient,
)
from backend.pix_gateway.main import app  # noqa: E402
from backend.pix_gateway.token_store import MemoryTokenStore  # noqa: E402

DEFAULT_CHARGE = {
    "transaction_id": "tx-123",
    "qr_code_image": "data:image/png;base64,AAAA",
    "pix_code": "00020126580014br.gov.bcb.pix",
    "status": "pending",
}


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeInstapay:
    """Stands in for the Instapay API behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.on_login = lambda request: httpx.Response(200, json={"token": "tok-1"})
        self.on_deposit = lambda request: httpx.Response(200, json=DEFAULT_CHARGE)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == LOGIN_PATH:
            return self.on_login(request)
        if request.url.path == DEPOSIT_PATH:
            return self.on_deposit(request)
        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    @property
    def logins(self) -> list[httpx.Request]:
        return self.calls(LOGIN_PATH)

    @property
    def deposits(self) -> list[httpx.Request]:
        return self.calls(DEPOSIT_PATH)

    def last_deposit_body(self) -> dict:
        return json.loads(self.deposits[-1].content)


def build_handler(
    fake: FakeInstapay,
    *,
    store: MemoryTokenStore | None = None,
    clock: FakeClock | None = None,
    client_id: str | None = "test-client-id",
    client_secret: str | None = "test-client-secret",
    callback_base_url: str | None = None,
) -> DepositHandler:
    client = InstapayClient("https://instapay.test", transport=fake.transport)
    if store is None:
        store = MemoryTokenStore(clock=clock or FakeClock())
    authenticator = Authenticator(
        client,
        store,
        client_id=client_id,
        client_secret=client_secret,
    )
    return DepositHandler(client, authenticator, callback_base_url=callback_base_url)


@pytest.fixture
def fake_instapay() -> FakeInstapay:
    return FakeInstapay()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def deposit_handler(fake_instapay, clock) -> DepositHandler:
    return build_handler(fake_instapay, clock=clock)


@pytest.fixture
def client(deposit_handler):
    app.dependency_overrides[get_deposit_handler] = lambda: deposit_handler
    try:
        yield TestClient(app, base_url="http://pay.testserver")
    finally:
        app.dependency_overrides.pop(get_deposit_handler, None)
