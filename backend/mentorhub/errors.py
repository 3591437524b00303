"""Typed application errors.

Provider-facing failures are reduced to a small fixed taxonomy so routers can turn
them into HTTP responses without knowing which integration raised them.
"""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    code: str = "INTERNAL_SERVER_ERROR"
    status_code: int = 500

    def __init__(self, message: str, cause: Any | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} code={self.code} message={self.message!r}>"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class BadRequestError(AppError):
    code = "BAD_REQUEST"
    status_code = 400


class NotSupportedError(AppError):
    code = "METHOD_NOT_SUPPORTED"
    status_code = 405


__all__ = ["AppError", "NotFoundError", "BadRequestError", "NotSupportedError"]
