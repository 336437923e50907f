"""Tests that rate limiting is wired correctly on GET /api/csrf-token."""
import pytest


def test_rate_limiter_wired_to_app_state():
    """Confirms slowapi limiter is registered on app.state (required for 429 handler)."""
    from yuthub.main import app, limiter
    assert app.state.limiter is limiter


@pytest.mark.asyncio
async def test_csrf_token_returns_200_under_limit(client):
    """Single request succeeds (limiter doesn't block normal flow)."""
    response = await client.get("/api/csrf-token")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_csrf_token_returns_429_over_limit(client):
    """Default limit is 100 per 15 minutes per client address."""
    statuses = [(await client.get("/api/csrf-token")).status_code for _ in range(101)]
    assert statuses[:100] == [200] * 100
    assert statuses[100] == 429
