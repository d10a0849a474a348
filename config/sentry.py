# coding: utf-8
"""
Sentry configuration for error monitoring and tracking
"""
import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from loguru import logger

from config.config import SENTRY_DSN, ENVIRONMENT
from astra.core.exceptions import AstraError

# Request fields that must never leave the server
SENSITIVE_HEADERS = ("Authorization", "Cookie")
SENSITIVE_BODY_FIELDS = ("password", "proof", "publicSignals", "userContextData")


def init_sentry() -> None:
    """
    Initialize Sentry SDK for error monitoring
    """
    if not SENTRY_DSN:
        logger.warning("SENTRY_DSN not configured - error monitoring disabled")
        return

    try:
        sentry_sdk.init(
            dsn=SENTRY_DSN,
            environment=ENVIRONMENT,
            integrations=[
                AsyncioIntegration(),
                SqlalchemyIntegration(),
                AioHttpIntegration(),
            ],
            traces_sample_rate=0.1 if ENVIRONMENT == "production" else 1.0,
            sample_rate=1.0,
            attach_stacktrace=True,
            send_default_pii=False,  # health data: never send PII
            max_breadcrumbs=50,
            before_send=before_send_hook,
        )

        logger.info(f"Sentry initialized successfully (Environment: {ENVIRONMENT})")

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def before_send_hook(event, hint):
    """
    Strip credentials and proof material from events before sending to Sentry
    """
    if 'exc_info' in hint:
        exc_type, exc_value, tb = hint['exc_info']

        # Expected domain errors are answered with 4xx, not reported
        if isinstance(exc_value, (KeyboardInterrupt, AstraError)):
            return None

    request = event.get('request')
    if request:
        headers = request.get('headers', {})
        for header in SENSITIVE_HEADERS:
            if header in headers:
                headers[header] = '[Filtered]'

        data = request.get('data')
        if isinstance(data, dict):
            for field in SENSITIVE_BODY_FIELDS:
                if field in data:
                    data[field] = '[Filtered]'

    return event


def set_user_context(user_hash: str):
    """
    Set user context for Sentry events (public hash only, never email)
    """
    sentry_sdk.set_user({"id": user_hash})
