"""CSRF rejection taxonomy.

Each rejection carries a short machine-readable ``code`` and a remediation
``message``. Clients act on the code: a missing cookie means "reload or call
GET /api/csrf-token", a missing request token means "resend with the
x-csrf-token header", a mismatch means the echoed value is stale or forged.
"""
from enum import Enum


class CsrfErrorCode(str, Enum):
    COOKIE_MISSING = "csrf_cookie_missing"
    TOKEN_MISSING = "csrf_token_missing"
    TOKEN_INVALID = "csrf_token_invalid"


class CsrfError(Exception):
    """Base class for client-correctable CSRF rejections (HTTP 403)."""
    status_code: int = 403
    code: CsrfErrorCode
    message: str

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code.value, "message": self.message}


class MissingCookieTokenError(CsrfError):
    code = CsrfErrorCode.COOKIE_MISSING
    message = "CSRF cookie not found. Please refresh the page."


class MissingRequestTokenError(CsrfError):
    code = CsrfErrorCode.TOKEN_MISSING
    message = "CSRF token not provided in request. Send it in the x-csrf-token header."


class InvalidCsrfTokenError(CsrfError):
    code = CsrfErrorCode.TOKEN_INVALID
    message = "Invalid CSRF token. This request has been blocked."


class EntropyUnavailableError(RuntimeError):
    """The secure random source failed; no token may be issued."""
