"""
Double-submit CSRF validation for everything under /api (pure ASGI).

Runs before routing, so unknown paths and wrong-method requests are judged
like any other state-changing request. When the x-csrf-token header is
missing or empty, the body is buffered to look for a `_csrf` field and then
replayed to the downstream app unchanged.
"""
import logging
from typing import Optional

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from yuthub.models.csrf_error import CsrfError
from yuthub.services.csrf import CSRF_BODY_FIELD, header_token, is_exempt, validate_request

logger = logging.getLogger(__name__)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _body_token(request: Request) -> Optional[str]:
    """Read the _csrf field from a JSON object or form body, if there is one."""
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            return None
        value = payload.get(CSRF_BODY_FIELD) if isinstance(payload, dict) else None
    elif content_type.startswith(_FORM_TYPES):
        form = await request.form()
        value = form.get(CSRF_BODY_FIELD)
    else:
        return None

    return value if isinstance(value, str) else None


def _replay(body: bytes, receive: Receive) -> Receive:
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class CsrfProtectionMiddleware:
    def __init__(self, app: ASGIApp, path_prefix: str = "/api") -> None:
        self.app = app
        self.path_prefix = path_prefix

    def _guarded(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._guarded(scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        path = scope["path"]
        if is_exempt(method, path):
            await self.app(scope, receive, send)
            return

        body_token = None
        if not header_token(request.headers):
            body = await request.body()
            try:
                body_token = await _body_token(request)
            finally:
                await request.close()
            receive = _replay(body, receive)

        try:
            validate_request(method, path, request.cookies, request.headers, body_token)
        except CsrfError as e:
            logger.warning(f"CSRF rejected {method} {path}: {e.code.value}")
            response = JSONResponse(status_code=e.status_code, content=e.to_dict())
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
