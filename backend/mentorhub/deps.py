from __future__ import annotations
"""Common FastAPI dependency helpers.

Provides a request-scoped database session and the current authenticated user,
resolved from the `session-token` cookie (or a Bearer header for API clients).
"""
from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.logging import set_log_user
from mentorhub.models import AsyncSessionLocal, User
from mentorhub.services.auth import get_session_user

SESSION_COOKIE = "session-token"


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


def session_token_from_request(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split("Bearer ", 1)[1].strip() or None
    return None


async def get_current_user(request: Request, session: AsyncSession = Depends(get_session)) -> User:
    """Return the current authenticated user or raise 401."""
    token = session_token_from_request(request)
    user = await get_session_user(session, token) if token else None
    if user is None:
        await session.commit()  # persist removal of an expired session
        raise HTTPException(status_code=401, detail="Not authenticated")
    set_log_user(str(user.id))
    return user


__all__ = ["get_session", "get_current_user", "session_token_from_request", "SESSION_COOKIE"]
