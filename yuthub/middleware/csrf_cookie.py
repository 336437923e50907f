"""Issues the csrf-token cookie and exposes the token on request.state."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from yuthub import config
from yuthub.models.csrf_error import EntropyUnavailableError
from yuthub.services.csrf import (
    CSRF_COOKIE_MAX_AGE,
    CSRF_COOKIE_NAME,
    CsrfTokenGenerator,
)

logger = logging.getLogger(__name__)


class CsrfCookieMiddleware(BaseHTTPMiddleware):
    """
    Runs before routing on every HTTP request.

    An existing csrf-token cookie is reused as-is; only a request without one
    gets a freshly generated token and a Set-Cookie on its response. The cookie
    is readable by client JS (httponly=False) because the client has to echo
    it back in the x-csrf-token header.
    """

    def __init__(self, app: ASGIApp, generator: CsrfTokenGenerator | None = None) -> None:
        super().__init__(app)
        self.generator = generator or CsrfTokenGenerator()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        token = request.cookies.get(CSRF_COOKIE_NAME)
        issued = False

        if not token:
            try:
                token = self.generator.generate()
            except EntropyUnavailableError as e:
                logger.error(f"CSRF token generation failed for {request.method} {request.url.path}: {e}")
                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "CSRF token generation failed",
                        "message": "The server could not issue a security token. Please try again later.",
                    },
                )
            issued = True

        request.state.csrf_token = token
        response = await call_next(request)

        if issued:
            response.set_cookie(
                key=CSRF_COOKIE_NAME,
                value=token,
                max_age=CSRF_COOKIE_MAX_AGE,
                path="/",
                secure=config.is_production(),
                httponly=False,
                samesite="strict",
            )
        return response


def get_csrf_token(request: Request) -> str:
    """Request-scoped accessor for the token resolved by CsrfCookieMiddleware."""
    token = getattr(request.state, "csrf_token", None)
    if token is None:
        raise RuntimeError("CsrfCookieMiddleware is not installed on this app")
    return token
