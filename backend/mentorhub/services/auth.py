"""Passwordless e-mail sign-in.

Flow:
 - request_sign_in(email): store a hashed 6-digit code (5 minute lifetime) and e-mail it
 - sign_in_with_code(email, code): consume the code, get-or-create the user, open a 90 day session
 - get_session_user(token) / sign_out(token)

Codes are stored as HMACs bound to the e-mail; the plain code only exists in the message.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Tuple
from urllib.parse import urlencode

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.settings import get_settings
from mentorhub.errors import BadRequestError
from mentorhub.logging import log_session_created, log_verification_sent
from mentorhub.models import Session, User, VerificationToken, get_user_by_email, utcnow
from mentorhub.services.email_service import EmailService, email_role_ignore_error
from mentorhub.services.factory import get_email_service
from mentorhub.utils.crypto import hash_verification_token, new_session_token, random_code

logger = logging.getLogger("auth")

TOKEN_MAX_AGE_IN_MINS = 5
SESSION_MAX_AGE = timedelta(days=90)
VERIFICATION_TEMPLATE_ALIAS = "verification-code"
SIGN_IN_PAGE = "/auth/login"
USER_MANAGER_ROLE = "UserManager"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_verification_token() -> str:
    return random_code()


def build_verification_url(email: str, token: str) -> str:
    base = get_settings().APP_URL.rstrip("/")
    return f"{base}/auth/callback/email?{urlencode({'email': email, 'token': token})}"


def send_verification_request(email: str, url: str, token: str, email_service: EmailService | None = None) -> None:
    service = email_service or get_email_service()
    service.send_template(
        email,
        VERIFICATION_TEMPLATE_ALIAS,
        {"url": url, "token": token, "tokenMaxAgeInMins": TOKEN_MAX_AGE_IN_MINS},
        meta={"kind": "verification"},
    )


async def request_sign_in(session: AsyncSession, email: str, email_service: EmailService | None = None) -> None:
    identifier = normalize_email(email)
    code = generate_verification_token()
    session.add(VerificationToken(
        identifier=identifier,
        token=hash_verification_token(identifier, code),
        expires=utcnow() + timedelta(minutes=TOKEN_MAX_AGE_IN_MINS),
    ))
    await session.flush()
    send_verification_request(identifier, build_verification_url(identifier, code), code, email_service)
    log_verification_sent(identifier, TOKEN_MAX_AGE_IN_MINS)


async def use_verification_token(session: AsyncSession, email: str, code: str) -> bool:
    """Consume a code. Returns False when it is unknown or expired; a code works once."""
    identifier = normalize_email(email)
    hashed = hash_verification_token(identifier, code)
    stmt = select(VerificationToken).where(
        VerificationToken.identifier == identifier,
        VerificationToken.token == hashed,
    )
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        return False
    await session.delete(row)
    await session.flush()
    return row.expires > utcnow()


async def notify_user_managers(session: AsyncSession, user: User, email_service: EmailService | None = None) -> int:
    # roles is a JSON list, filtered in Python
    users = (await session.execute(select(User).where(User.id != user.id))).scalars().all()
    managers = [u.email for u in users if USER_MANAGER_ROLE in (u.roles or [])]
    if not managers:
        return 0
    return email_role_ignore_error(
        email_service or get_email_service(),
        managers,
        "新用户注册",
        f"{user.email} 注册新用户 。",
    )


async def sign_in_with_code(
    session: AsyncSession, email: str, code: str, email_service: EmailService | None = None,
) -> Tuple[User, Session]:
    if not await use_verification_token(session, email, code):
        raise BadRequestError("Verification code is invalid or expired", cause={"signInPage": SIGN_IN_PAGE})

    identifier = normalize_email(email)
    user = await get_user_by_email(session, identifier)
    created = user is None
    if user is None:
        user = User(email=identifier, email_verified=utcnow(), roles=[])
        session.add(user)
        await session.flush()
        await notify_user_managers(session, user, email_service)
    elif user.email_verified is None:
        user.email_verified = utcnow()

    db_session = Session(session_token=new_session_token(), user_id=user.id, expires=utcnow() + SESSION_MAX_AGE)
    session.add(db_session)
    await session.flush()
    log_session_created(str(user.id), created)
    return user, db_session


async def get_session_user(session: AsyncSession, session_token: str) -> User | None:
    stmt = select(Session, User).join(User, User.id == Session.user_id).where(Session.session_token == session_token)
    row = (await session.execute(stmt)).first()
    if row is None:
        return None
    db_session, user = row
    if db_session.expires <= utcnow():
        await session.delete(db_session)
        await session.flush()
        return None
    return user


async def sign_out(session: AsyncSession, session_token: str) -> None:
    await session.execute(delete(Session).where(Session.session_token == session_token))
    await session.flush()


__all__ = [
    "TOKEN_MAX_AGE_IN_MINS", "SESSION_MAX_AGE", "VERIFICATION_TEMPLATE_ALIAS", "SIGN_IN_PAGE",
    "generate_verification_token", "send_verification_request", "request_sign_in",
    "use_verification_token", "sign_in_with_code", "get_session_user", "sign_out",
    "notify_user_managers", "normalize_email",
]
