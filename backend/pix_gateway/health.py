"""Health check module with dependency verification."""

from __future__ import annotations

import time
from typing import Any

from .settings import settings
from .token_store import MemoryTokenStore, TokenStore, get_token_store


def _is_configured(value: str | None) -> bool:
    """Return True when a config string is non-empty after trimming."""
    if value is None:
        return False
    return bool(value.strip())


class HealthChecker:
    """Reports local readiness. Never calls Instapay."""

    def __init__(self, store: TokenStore | None = None) -> None:
        self._store = store

    @property
    def store(self) -> TokenStore:
        return self._store or get_token_store()

    async def check_all(self) -> dict[str, Any]:
        checks = {
            "credentials": self._check_credentials(),
            "token_store": await self._check_token_store(),
            "sentry": (
                {"status": "ok", "environment": settings.SENTRY_ENVIRONMENT}
                if _is_configured(settings.SENTRY_DSN)
                else {"status": "disabled"}
            ),
        }
        all_ok = all(check.get("status") in {"ok", "disabled"} for check in checks.values())
        return {
            "status": "healthy" if all_ok else "degraded",
            "timestamp": time.time(),
            "checks": checks,
        }

    def _check_credentials(self) -> dict[str, Any]:
        if settings.credentials_configured:
            return {"status": "ok"}
        return {
            "status": "error",
            "error": "INSTAPAY_CLIENT_ID or INSTAPAY_CLIENT_SECRET not configured",
        }

    async def _check_token_store(self) -> dict[str, Any]:
        store = self.store
        try:
            reachable = await store.ping()
        except Exception as exc:
            return {
                "status": "error",
                "backend": store.backend,
                "error": str(exc),
                "error_type": type(exc).__name__,
            }
        if not reachable:
            return {"status": "error", "backend": store.backend, "error": "ping failed"}
        result: dict[str, Any] = {"status": "ok", "backend": store.backend}
        if isinstance(store, MemoryTokenStore):
            result["cache"] = store.cache.get_stats()
        return result


health_checker = HealthChecker()
