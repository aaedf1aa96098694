from __future__ import annotations

from typing import Any

from .errors import AuthenticationError, ConfigurationError, ProtocolError
from .instapay import InstapayClient
from .logging_config import get_logger
from .metrics import instapay_logins_total, token_cache_lookups_total
from .token_store import TokenStore

logger = get_logger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 55 * 60
DEFAULT_TOKEN_CACHE_KEY = "instapay:token"

# Instapay has answered with either field name; checked in this order.
# Revisit if the provider documents a single field.
TOKEN_FIELDS = ("token", "access_token")


def extract_token(payload: Any) -> str:
    """Return the bearer token from a login response body.

    Fields are tried in ``TOKEN_FIELDS`` order and the first non-empty string
    wins. Raises ``ProtocolError`` when none is usable.
    """
    if isinstance(payload, dict):
        for field in TOKEN_FIELDS:
            value = payload.get(field)
            if isinstance(value, str) and value.strip():
                return value
    raise ProtocolError("Resposta de autenticação não contém token JWT.")


class Authenticator:
    """Obtains the Instapay bearer token, reusing it from the token store."""

    def __init__(
        self,
        client: InstapayClient,
        store: TokenStore,
        *,
        client_id: str | None,
        client_secret: str | None,
        token_ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        cache_key: str = DEFAULT_TOKEN_CACHE_KEY,
    ) -> None:
        self.client = client
        self.store = store
        self._client_id = (client_id or "").strip()
        self._client_secret = (client_secret or "").strip()
        self.token_ttl_seconds = token_ttl_seconds
        self.cache_key = cache_key

    async def authenticate(self) -> str:
        cached = await self.store.get(self.cache_key)
        if cached:
            token_cache_lookups_total.labels(result="hit").inc()
            logger.debug("instapay_token_cache_hit", backend=self.store.backend)
            return cached
        token_cache_lookups_total.labels(result="miss").inc()

        if not self._client_id or not self._client_secret:
            raise ConfigurationError(
                "Credenciais da Instapay (INSTAPAY_CLIENT_ID ou INSTAPAY_CLIENT_SECRET) "
                "não configuradas."
            )

        response = await self.client.login(self._client_id, self._client_secret)
        if not response.is_success:
            instapay_logins_total.labels(result="rejected").inc()
            logger.warning("instapay_login_rejected", status=response.status_code)
            raise AuthenticationError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            instapay_logins_total.labels(result="invalid").inc()
            raise ProtocolError(
                "Resposta de autenticação não é JSON.",
                upstream_status=response.status_code,
                body=response.text,
            ) from exc

        try:
            token = extract_token(payload)
        except ProtocolError:
            instapay_logins_total.labels(result="invalid").inc()
            raise

        await self.store.set(self.cache_key, token, self.token_ttl_seconds)
        instapay_logins_total.labels(result="ok").inc()
        logger.info(
            "instapay_login",
            status=response.status_code,
            ttl_seconds=self.token_ttl_seconds,
            backend=self.store.backend,
        )
        return token


__all__ = ["Authenticator", "TOKEN_FIELDS", "extract_token"]
