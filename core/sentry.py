"""Sentry error reporting for the catalog proxy."""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from core.exceptions import failure_kind

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: str | None,
    environment: str = "production",
    release: str | None = None,
) -> None:
    """Initialize the Sentry SDK with the FastAPI integration.

    Does nothing when ``dsn`` is empty, so local runs and tests never report.
    """
    if not dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        integrations=[FastApiIntegration()],
        traces_sample_rate=1.0,
        sample_rate=1.0,
    )
    logger.info(f"Sentry initialized (environment: {environment}, release: {release})")


def add_itunes_breadcrumb(
    operation: str,
    data: dict[str, Any] | None = None,
    level: str = "info",
) -> None:
    """Leave a breadcrumb for an outbound iTunes call ("search" or "lookup")."""
    sentry_sdk.add_breadcrumb(category="itunes", message=operation, data=data or {}, level=level)


def capture_exception(
    error: BaseException,
    context: dict[str, Any] | None = None,
    context_name: str = "catalog",
) -> None:
    """Report an exception to Sentry, tagged with its failure kind.

    Args:
        error: The exception to report
        context: Optional data attached under the ``context_name`` block
        context_name: Sentry context block name ("catalog", "persistence")
    """
    if context:
        sentry_sdk.set_context(context_name, context)
    sentry_sdk.set_tag("failure_kind", failure_kind(error).value)
    sentry_sdk.capture_exception(error)
