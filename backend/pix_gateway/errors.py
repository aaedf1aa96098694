"""Error taxonomy for the PIX gateway.

Every error carries an :class:`ErrorKind` so callers branch on the kind
instead of parsing messages. ``ValidationError`` and ``UpstreamError`` are
answered where they are raised; the other kinds reach the top-level handler
and become a 500.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    PROTOCOL = "protocol"
    VALIDATION = "validation"
    UPSTREAM = "upstream"


class PixGatewayError(RuntimeError):
    kind: ClassVar[ErrorKind]


class ConfigurationError(PixGatewayError):
    """Instapay credentials are not configured."""

    kind = ErrorKind.CONFIGURATION


class AuthenticationError(PixGatewayError):
    """Instapay rejected the login request."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, upstream_status: int, body: str) -> None:
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(f"Falha na autenticação (Status {upstream_status}): {body}")


class ProtocolError(PixGatewayError):
    """Instapay answered with an unexpected shape (non-JSON, no token, ...)."""

    kind = ErrorKind.PROTOCOL

    def __init__(
        self, message: str, *, upstream_status: int | None = None, body: str | None = None
    ) -> None:
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(message)


class ValidationError(PixGatewayError):
    """The inbound deposit request is incomplete or malformed."""

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.missing = missing or []
        self.details = details or []
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": str(self)}
        if self.missing:
            body["missing"] = self.missing
        if self.details:
            body["details"] = self.details
        return body


class UpstreamError(PixGatewayError):
    """Instapay refused the deposit; its status and body are forwarded as-is."""

    kind = ErrorKind.UPSTREAM
    default_message = "Erro desconhecido ao criar depósito na Instapay."

    def __init__(self, upstream_status: int, payload: Any) -> None:
        self.upstream_status = upstream_status
        self.payload = payload
        self.provider_error = self._provider_error(payload)
        super().__init__(str(self.provider_error))

    @classmethod
    def _provider_error(cls, payload: Any) -> Any:
        # "error" wins over "message"; either may be a non-string structure
        if isinstance(payload, dict):
            for key in ("error", "message"):
                value = payload.get(key)
                if value:
                    return value
        return cls.default_message

    @property
    def status_code(self) -> int:
        return self.upstream_status

    def to_body(self) -> dict[str, Any]:
        return {"error": self.provider_error, "details": self.payload}


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ErrorKind",
    "PixGatewayError",
    "ProtocolError",
    "UpstreamError",
    "ValidationError",
]
