"""
Observability module for GymTrack API.

Provides error tracking and performance monitoring using GlitchTip
(open-source, Sentry-compatible).
"""

import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from src.config.settings import settings
from src.core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def init_observability() -> None:
    """Initialize GlitchTip/Sentry observability."""
    if not settings.GLITCHTIP_DSN:
        logger.info("observability_disabled", reason="no DSN configured")
        return

    traces_sample_rate = settings.GLITCHTIP_TRACES_SAMPLE_RATE
    if settings.is_development:
        traces_sample_rate = 1.0

    sentry_sdk.init(
        dsn=settings.GLITCHTIP_DSN,
        environment=settings.APP_ENV,
        release=f"gymtrack-api@{settings.APP_VERSION}",
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        before_send=_before_send,
    )

    logger.info("observability_initialized", environment=settings.APP_ENV)


def _before_send(event: dict, hint: dict) -> dict | None:
    """Filter events before sending to GlitchTip."""
    if "exc_info" in hint:
        exc_type, exc_value, _ = hint["exc_info"]

        # NotFound/Validation are expected outcomes, not incidents
        if isinstance(exc_value, DomainError) and exc_value.status_code != 409:
            return None

        exc_message = str(exc_value).lower()
        if any(
            msg in exc_message
            for msg in ["connection refused", "connection reset", "broken pipe"]
        ):
            return None

    return event


def capture_exception(
    exception: Exception,
    extra: dict | None = None,
    tags: dict[str, str] | None = None,
) -> str | None:
    """Capture an exception with optional context."""
    with sentry_sdk.new_scope() as scope:
        if extra:
            for key, value in extra.items():
                scope.set_extra(key, value)
        if tags:
            for key, value in tags.items():
                scope.set_tag(key, value)

        return sentry_sdk.capture_exception(exception)
