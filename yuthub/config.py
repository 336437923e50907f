"""Environment-driven settings for the YUTHUB API."""
import os

CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "http://localhost:5173")
API_RATE_LIMIT = os.environ.get("API_RATE_LIMIT", "100/15 minutes")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

WEBHOOK_TOLERANCE_SECONDS = int(os.environ.get("WEBHOOK_TOLERANCE_SECONDS", "300"))


def app_env() -> str:
    """Deployment environment name. APP_ENV wins over NODE_ENV."""
    return os.environ.get("APP_ENV") or os.environ.get("NODE_ENV") or "development"


def is_production() -> bool:
    return app_env().lower() == "production"


def stripe_webhook_secret() -> str | None:
    return os.environ.get("STRIPE_WEBHOOK_SECRET") or None
