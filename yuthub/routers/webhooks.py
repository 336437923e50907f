"""
Webhook receivers under /api/webhooks/.

These routes are exempt from CSRF checks; each authenticates its caller with
a signature over the raw body instead.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from yuthub import config
from yuthub.services.webhook_signature import construct_event

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


def _handle_checkout_completed(obj: dict) -> None:
    organization_id = (obj.get("metadata") or {}).get("organization_id")
    if not organization_id:
        logger.error(f"No organization_id in checkout session {obj.get('id')} metadata")
        return
    logger.info(f"Checkout completed for organization {organization_id}")


def _handle_invoice_paid(obj: dict) -> None:
    logger.info(f"Invoice {obj.get('id')} paid for customer {obj.get('customer')}")


def _handle_payment_failed(obj: dict) -> None:
    logger.warning(f"Invoice {obj.get('id')} payment failed for customer {obj.get('customer')}")


def _handle_subscription_updated(obj: dict) -> None:
    logger.info(f"Subscription {obj.get('id')} updated: status={obj.get('status')}")


def _handle_subscription_deleted(obj: dict) -> None:
    logger.info(f"Subscription {obj.get('id')} cancelled")


STRIPE_EVENT_HANDLERS = {
    "checkout.session.completed": _handle_checkout_completed,
    "invoice.paid": _handle_invoice_paid,
    "invoice.payment_failed": _handle_payment_failed,
    "customer.subscription.updated": _handle_subscription_updated,
    "customer.subscription.deleted": _handle_subscription_deleted,
}


@router.post("/stripe")
async def stripe_webhook(request: Request):
    """Verify the Stripe-Signature header, then dispatch on event type."""
    secret = config.stripe_webhook_secret()
    if not secret:
        logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
        return JSONResponse(status_code=503, content={"error": "Stripe not configured"})

    payload = await request.body()
    event = construct_event(
        payload,
        request.headers.get("stripe-signature"),
        secret,
        tolerance=config.WEBHOOK_TOLERANCE_SECONDS,
    )

    event_type = event["type"]
    handler = STRIPE_EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Stripe event type: {event_type}")
    else:
        handler(event["data"]["object"].to_dict())

    return {"received": True}
