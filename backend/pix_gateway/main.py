from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from sentry_sdk.integrations.fastapi import FastApiIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from .handler import (
    CORS_HEADERS,
    METHOD_NOT_ALLOWED_MESSAGE,
    DepositHandler,
    HandlerResponse,
    get_deposit_handler,
)
from .health import health_checker
from .logging_config import configure_structlog, get_logger
from .metrics import get_metrics
from .redis_store import close_async_redis
from .settings import APP_VERSION, SERVICE_NAME, settings
from .utils import add_request_id_tracing

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"{SERVICE_NAME}@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)

# Method dispatch (OPTIONS / POST / 405) belongs to DepositHandler, so the
# route accepts every standard method.
PIX_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "pix_gateway_started",
        credentials_configured=settings.credentials_configured,
        redis_token_store=settings.redis_configured,
    )
    yield
    await get_deposit_handler().aclose()
    await close_async_redis()


app = FastAPI(
    title="PIX Gateway",
    version=APP_VERSION,
    description="Creates Instapay PIX charges on behalf of browser clients",
    lifespan=lifespan,
)
add_request_id_tracing(app)


def to_response(result: HandlerResponse) -> Response:
    return Response(
        content=result.rendered_body(),
        status_code=result.status_code,
        headers=result.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    # Methods the router rejects on the PIX route get the same JSON 405 as the handler
    if exc.status_code == 405 and request.url.path == settings.PIX_ROUTE_PATH:
        return JSONResponse(
            status_code=405,
            content={"error": METHOD_NOT_ALLOWED_MESSAGE},
            headers=CORS_HEADERS,
        )
    return await http_exception_handler(request, exc)


@app.api_route(settings.PIX_ROUTE_PATH, methods=PIX_METHODS)
async def pix_deposit(
    request: Request, handler: DepositHandler = Depends(get_deposit_handler)
) -> Response:
    """Create a PIX charge at Instapay (POST) or answer the CORS pre-flight (OPTIONS)."""
    body = await request.body()
    result = await handler.handle(request.method, request.headers, body)
    return to_response(result)


@app.get("/health")
async def health():
    """Return service health; Instapay itself is not contacted."""
    health_status = await health_checker.check_all()
    status_code = 200 if health_status["status"] == "healthy" else 503
    body = {
        "status": health_status["status"],
        "timestamp": health_status.get("timestamp"),
        "checks": health_status.get("checks", {}),
        "service": SERVICE_NAME,
        "version": APP_VERSION,
    }
    return JSONResponse(content=body, status_code=status_code)


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    return get_metrics()
