"""CSRF token retrieval for clients that prime a header-based fetch wrapper."""
from fastapi import APIRouter, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from yuthub import config
from yuthub.middleware.csrf_cookie import get_csrf_token

router = APIRouter(tags=["csrf"])
limiter = Limiter(key_func=get_remote_address)


class CsrfTokenResponse(BaseModel):
    csrfToken: str


@router.get("/csrf-token", response_model=CsrfTokenResponse)
@limiter.limit(config.API_RATE_LIMIT)
async def get_csrf_token_endpoint(request: Request) -> CsrfTokenResponse:
    """Return the token bound to this client's csrf-token cookie."""
    return CsrfTokenResponse(csrfToken=get_csrf_token(request))
