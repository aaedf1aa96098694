"""PIX deposit request handler.

Framework-independent: takes the HTTP method, headers and raw body, and
always returns a complete ``HandlerResponse`` carrying the CORS headers.
The FastAPI app and the serverless adapter are thin shells around it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from .authenticator import Authenticator
from .errors import ProtocolError, UpstreamError, ValidationError
from .instapay import InstapayClient, build_instapay_client
from .logging_config import get_logger
from .metrics import pix_deposits_total
from .schemas import (
    REQUIRED_DEPOSIT_FIELDS,
    DepositRequest,
    InstapayDepositPayload,
    PixCharge,
)
from .settings import settings
from .token_store import get_token_store

logger = get_logger(__name__)

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

DEFAULT_WEBHOOK_PATH = "/.netlify/functions/pix-webhook"

METHOD_NOT_ALLOWED_MESSAGE = "Método não permitido. Use POST."
INCOMPLETE_REQUEST_MESSAGE = "Dados incompletos. Requer: amount, external_id e payer."
INVALID_REQUEST_MESSAGE = "Dados inválidos."
INTERNAL_ERROR_MESSAGE = "Erro interno do servidor ao processar PIX."


@dataclass(slots=True)
class HandlerResponse:
    status_code: int
    body: Any | None = None
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def rendered_body(self) -> str:
        if self.body is None:
            return ""
        return json.dumps(self.body, ensure_ascii=False)


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)):
        return value == 0
    return False


def parse_deposit_request(body: str | bytes | None) -> DepositRequest:
    """Parse and validate the browser's JSON body.

    Raises ``ValidationError`` for anything that should become a 400.
    """
    if body is None or not body.strip():
        payload: Any = {}
    else:
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise ValidationError("Corpo da requisição não é um JSON válido.") from exc

    if not isinstance(payload, dict):
        raise ValidationError("Corpo da requisição deve ser um objeto JSON.")

    missing = [name for name in REQUIRED_DEPOSIT_FIELDS if _is_blank(payload.get(name))]
    if missing:
        raise ValidationError(INCOMPLETE_REQUEST_MESSAGE, missing=missing)

    try:
        return DepositRequest.model_validate(payload)
    except PydanticValidationError as exc:
        # union members report one error each; keep the first per field
        details: list[dict[str, Any]] = []
        seen: set[str] = set()
        for err in exc.errors():
            name = str(err["loc"][0]) if err["loc"] else "body"
            if name not in seen:
                seen.add(name)
                details.append({"field": name, "message": err["msg"]})
        raise ValidationError(INVALID_REQUEST_MESSAGE, details=details) from exc


def build_callback_url(
    host: str | None, webhook_path: str, base_url: str | None = None
) -> str:
    path = webhook_path if webhook_path.startswith("/") else f"/{webhook_path}"
    if base_url:
        return f"{base_url.rstrip('/')}{path}"
    if not host or not host.strip():
        raise ValidationError("Cabeçalho Host ausente; não é possível montar clientCallbackUrl.")
    return f"https://{host.strip()}{path}"


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(
            "Resposta da API de Depósito não é JSON. "
            f"Status: {response.status_code}. Resposta: {response.text}",
            upstream_status=response.status_code,
            body=response.text,
        ) from exc


class DepositHandler:
    def __init__(
        self,
        client: InstapayClient,
        authenticator: Authenticator,
        *,
        webhook_path: str = DEFAULT_WEBHOOK_PATH,
        callback_base_url: str | None = None,
    ) -> None:
        self.client = client
        self.authenticator = authenticator
        self.webhook_path = webhook_path
        self.callback_base_url = callback_base_url

    async def handle(
        self, method: str, headers: Mapping[str, str], body: str | bytes | None
    ) -> HandlerResponse:
        method = (method or "").upper()
        if method == "OPTIONS":
            return HandlerResponse(200)
        if method != "POST":
            return HandlerResponse(405, {"error": METHOD_NOT_ALLOWED_MESSAGE})

        try:
            return await self._create_deposit(headers, body)
        except Exception as exc:
            pix_deposits_total.labels(outcome="failed").inc()
            kind = getattr(exc, "kind", None)
            logger.exception(
                "pix_request_failed",
                error_type=type(exc).__name__,
                error_kind=kind.value if kind else None,
            )
            return HandlerResponse(500, {"error": INTERNAL_ERROR_MESSAGE, "details": str(exc)})

    async def _create_deposit(
        self, headers: Mapping[str, str], body: str | bytes | None
    ) -> HandlerResponse:
        try:
            request = parse_deposit_request(body)
            callback_url = build_callback_url(
                _header(headers, "host"), self.webhook_path, self.callback_base_url
            )
        except ValidationError as exc:
            pix_deposits_total.labels(outcome="invalid_request").inc()
            logger.info("pix_request_invalid", reason=str(exc), missing=exc.missing)
            return HandlerResponse(exc.status_code, exc.to_body())

        token = await self.authenticator.authenticate()

        payload = InstapayDepositPayload(
            amount=request.amount,
            external_id=request.external_id,
            client_callback_url=callback_url,
            payer=request.payer,
        )
        response = await self.client.create_deposit(token, payload.to_wire())
        data = _decode_json(response)

        if not response.is_success:
            exc = UpstreamError(response.status_code, data)
            pix_deposits_total.labels(outcome="upstream_error").inc()
            logger.warning(
                "pix_deposit_rejected",
                status=response.status_code,
                external_id=request.external_id,
                error=str(exc),
            )
            return HandlerResponse(exc.status_code, exc.to_body())

        if not isinstance(data, dict):
            raise ProtocolError(
                "Resposta da API de Depósito não é um objeto JSON.",
                upstream_status=response.status_code,
                body=response.text,
            )

        charge = PixCharge.model_validate(data)
        pix_deposits_total.labels(outcome="created").inc()
        logger.info(
            "pix_deposit_created",
            external_id=request.external_id,
            transaction_id=charge.transaction_id,
            status=charge.status,
        )
        return HandlerResponse(200, charge.model_dump())

    async def aclose(self) -> None:
        await self.client.aclose()


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


@lru_cache(maxsize=1)
def get_deposit_handler() -> DepositHandler:
    client = build_instapay_client()
    authenticator = Authenticator(
        client,
        get_token_store(),
        client_id=settings.INSTAPAY_CLIENT_ID,
        client_secret=settings.INSTAPAY_CLIENT_SECRET,
        token_ttl_seconds=settings.INSTAPAY_TOKEN_TTL_SECONDS,
        cache_key=settings.TOKEN_CACHE_KEY,
    )
    return DepositHandler(
        client,
        authenticator,
        webhook_path=settings.PIX_WEBHOOK_PATH,
        callback_base_url=settings.PIX_CALLBACK_BASE_URL,
    )


__all__ = [
    "CORS_HEADERS",
    "DepositHandler",
    "HandlerResponse",
    "build_callback_url",
    "get_deposit_handler",
    "parse_deposit_request",
]
