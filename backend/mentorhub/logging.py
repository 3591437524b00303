"""Centralized logging utilities wrapping structlog configuration and reusable event helpers.

Kept free of imports from models, clients or the FastAPI `app` so that any module can
log through `slog` without creating import cycles.
"""
from __future__ import annotations

import logging
import contextvars
import structlog
from typing import Any

# -------------------------
# ContextVars for request-scoped data
# -------------------------
_request_id_var = contextvars.ContextVar("request_id", default=None)
_user_id_var = contextvars.ContextVar("user_id", default=None)

structlog_context = {
    "request_id": _request_id_var,
    "user_id": _user_id_var,
}


def _add_context(logger, method_name: str, event_dict: dict[str, Any]):  # noqa: D401
    rid = _request_id_var.get()
    if rid:
        event_dict["request_id"] = rid
    uid = _user_id_var.get()
    if uid is not None:
        event_dict["user_id"] = uid
    return event_dict

# -------------------------
# One-time structlog configuration (idempotent)
# -------------------------
if not getattr(structlog, "_MENTORHUB_CONFIGURED", False):
    logging_logger = logging.getLogger("mentorhub")
    logging_logger.setLevel(logging.INFO)
    if not logging_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        cache_logger_on_first_use=True,
    )
    structlog._MENTORHUB_CONFIGURED = True  # type: ignore[attr-defined]

slog = structlog.get_logger()

# -------------------------
# Public helper functions
# -------------------------

def set_log_request(request_id: str | None):
    _request_id_var.set(request_id)

def set_log_user(user_id: str | None):
    _user_id_var.set(user_id)

# Event helpers reused across modules

def log_meeting_request(method: str, path: str, status: int | None, outcome: str, **extra):
    slog.info("meeting_api_request", method=method, path=path, status=status, outcome=outcome, **extra)

def log_group_destroyed(group_id: str, group_users: int, transcripts: int, force: bool, **extra):
    slog.info("group_destroyed", group_id=group_id, group_users=group_users, transcripts=transcripts, force=force, **extra)

def log_verification_sent(email: str, expires_in_minutes: int, **extra):
    slog.info("verification_sent", email=email, expires_in_minutes=expires_in_minutes, **extra)

def log_session_created(user_id: str, new_user: bool, **extra):
    slog.info("session_created", user_id=user_id, new_user=new_user, **extra)
