"""YUTHUB API application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from yuthub import config
from yuthub.middleware.csrf_cookie import CsrfCookieMiddleware
from yuthub.middleware.csrf_protection import CsrfProtectionMiddleware
from yuthub.middleware.security_headers import SecurityHeadersMiddleware
from yuthub.routers import csrf, health, webhooks
from yuthub.services.csrf import CSRF_HEADER_NAME, CsrfTokenGenerator
from yuthub.services.webhook_signature import WebhookError

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info(
        f"YUTHUB API starting (environment={config.app_env()}, "
        f"secure cookies={config.is_production()})"
    )
    yield
    logger.info("YUTHUB API shutting down")


async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    logger.warning(f"Webhook rejected on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": "Webhook Error", "message": str(exc)})


def build_api_router() -> APIRouter:
    api_router = APIRouter(prefix="/api")
    api_router.include_router(csrf.router)
    api_router.include_router(health.router)
    api_router.include_router(webhooks.router)
    return api_router


def create_app(token_generator: CsrfTokenGenerator | None = None) -> FastAPI:
    """
    Build the ASGI app.

    token_generator overrides the CSRF random source; tests pass a
    deterministic one, production leaves it as secrets.token_bytes.
    """
    app = FastAPI(
        title="YUTHUB Housing Platform API",
        description=(
            "API for youth housing organizations. State-changing /api requests "
            "are protected by a double-submit CSRF cookie; /api/webhooks/ callers "
            "authenticate by signature instead."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(WebhookError, webhook_error_handler)

    # Added innermost first: security headers wrap CORS, which wraps cookie
    # issuance, which runs before CSRF validation of every /api request
    app.add_middleware(CsrfProtectionMiddleware, path_prefix="/api")
    app.add_middleware(CsrfCookieMiddleware, generator=token_generator)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["content-type", "authorization", CSRF_HEADER_NAME],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(build_api_router())

    @app.get("/")
    async def root() -> dict:
        return {
            "service": "yuthub-api",
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


app = create_app()
