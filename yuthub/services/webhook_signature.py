"""
Stripe webhook verification.

Webhook callers cannot hold a browser cookie, so the Stripe-Signature header
replaces CSRF for /api/webhooks/. Verification and event parsing are done by
the stripe SDK; its failures are mapped onto WebhookError so the app renders
them as 400.
"""
from typing import Optional

import stripe


class WebhookError(ValueError):
    """A webhook request that must be rejected with 400."""


class WebhookSignatureError(WebhookError):
    """Signature header missing, malformed, stale or not matching."""


def construct_event(
    payload: bytes,
    sig_header: Optional[str],
    secret: str,
    tolerance: int = 300,
) -> stripe.Event:
    """Verify sig_header against the raw payload and return the parsed event."""
    if not sig_header:
        raise WebhookSignatureError("Missing signature header")
    try:
        return stripe.Webhook.construct_event(payload, sig_header, secret, tolerance=tolerance)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(str(e)) from e
    except ValueError as e:
        raise WebhookError("Webhook payload is not valid JSON") from e
