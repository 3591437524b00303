"""Sentry integration.

Provides:
- init_sentry(): initialize the SDK once at startup when a DSN is configured
- capture_exception(): forward an exception to Sentry (no-op when the SDK is not initialized)
"""
from __future__ import annotations

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from mentorhub.logging import structlog_context

logger = logging.getLogger(__name__)


def init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK with request-aware event tagging.

    Args:
        dsn: Sentry DSN string.
        environment: Deployment environment (development, staging, production).
    """
    traces_sample_rate = 0.1 if environment == "production" else 1.0

    def before_send(event: dict, hint: dict) -> dict:
        """Add request and user context to Sentry events."""
        rid = structlog_context["request_id"].get()
        uid = structlog_context["user_id"].get()
        tags = event.setdefault("tags", {})
        if rid:
            tags["request_id"] = rid
        if uid:
            tags["user_id"] = uid
        return event

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        before_send=before_send,
    )
    logger.info("Sentry initialized for environment=%s", environment)


def capture_exception(error: BaseException) -> None:
    sentry_sdk.capture_exception(error)


__all__ = ["init_sentry", "capture_exception"]
