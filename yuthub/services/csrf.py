"""
CSRF protection using the double-submit cookie pattern.

The token lives only in the client's `csrf-token` cookie; the server keeps no
token store. A state-changing request is authorized when the same value is
echoed back in the `x-csrf-token` header (or the `_csrf` body field).

No rotation on login/logout and no server-side revocation: a token stays
valid for the cookie's lifetime.
"""
import hashlib
import hmac
import secrets
from typing import Callable, Mapping, Optional

from yuthub.models.csrf_error import (
    EntropyUnavailableError,
    InvalidCsrfTokenError,
    MissingCookieTokenError,
    MissingRequestTokenError,
)

CSRF_TOKEN_BYTES = 32
CSRF_COOKIE_NAME = "csrf-token"
CSRF_HEADER_NAME = "x-csrf-token"
CSRF_BODY_FIELD = "_csrf"
CSRF_COOKIE_MAX_AGE = 24 * 60 * 60  # seconds

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
WEBHOOK_PATH_PREFIX = "/api/webhooks/"

RandomSource = Callable[[int], bytes]


class CsrfTokenGenerator:
    """
    Produces 64-char lowercase hex tokens from 32 random bytes.

    The random source is injected so tests can swap in a deterministic one.
    The default, secrets.token_bytes, reads the OS CSPRNG and is safe to call
    from concurrent requests.
    """

    def __init__(self, random_bytes: RandomSource = secrets.token_bytes) -> None:
        self._random_bytes = random_bytes

    def generate(self) -> str:
        try:
            raw = self._random_bytes(CSRF_TOKEN_BYTES)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailableError(f"secure random source unavailable: {e}") from e
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != CSRF_TOKEN_BYTES:
            raise EntropyUnavailableError(
                f"random source did not return {CSRF_TOKEN_BYTES} bytes"
            )
        return bytes(raw).hex()


_default_generator = CsrfTokenGenerator()


def generate_token() -> str:
    """Generate a token from the process-wide secure random source."""
    return _default_generator.generate()


def tokens_match(cookie_token: str, request_token: str) -> bool:
    """
    Constant-time equality check.

    Both sides are hashed to fixed-length SHA-256 digests first, so a length
    mismatch goes through the same compare_digest path as a content mismatch.
    """
    cookie_digest = hashlib.sha256(cookie_token.encode("utf-8")).digest()
    request_digest = hashlib.sha256(request_token.encode("utf-8")).digest()
    return hmac.compare_digest(cookie_digest, request_digest)


def is_exempt(method: str, path: str) -> bool:
    """Safe methods and the webhook namespace skip validation entirely."""
    if method.upper() in SAFE_METHODS:
        return True
    return path.startswith(WEBHOOK_PATH_PREFIX)


def header_token(headers: Mapping[str, str]) -> Optional[str]:
    """The x-csrf-token header value, or None when it is absent or empty."""
    # Starlette's Headers is already case-insensitive; plain dicts are not
    value = headers.get(CSRF_HEADER_NAME)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == CSRF_HEADER_NAME:
                value = candidate
                break
    return value or None


def validate_request(
    method: str,
    path: str,
    cookies: Mapping[str, str],
    headers: Mapping[str, str],
    body_token: Optional[str] = None,
) -> None:
    """
    Authorize a request under the double-submit rule.

    Returns None when the request may proceed. Raises
    MissingCookieTokenError, MissingRequestTokenError or
    InvalidCsrfTokenError otherwise; the cookie check comes first, so a
    client without a cookie is told to reload regardless of its header.
    """
    if is_exempt(method, path):
        return

    cookie_token = cookies.get(CSRF_COOKIE_NAME)
    if not cookie_token:
        raise MissingCookieTokenError()

    request_token = header_token(headers) or body_token
    if not request_token:
        raise MissingRequestTokenError()

    if not tokens_match(cookie_token, request_token):
        raise InvalidCsrfTokenError()
