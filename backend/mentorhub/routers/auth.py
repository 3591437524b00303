from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.settings import get_settings
from mentorhub.deps import SESSION_COOKIE, get_session, session_token_from_request
from mentorhub.models import User
from mentorhub.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


class SignInIn(BaseModel):
    email: EmailStr


class CallbackIn(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class UserOut(BaseModel):
    id: str
    email: str
    name: str | None = None


def _user_out(user: User) -> UserOut:
    return UserOut(id=str(user.id), email=user.email, name=user.name)


@router.post("/signin/email")
async def signin_email(payload: SignInIn, session: AsyncSession = Depends(get_session)):
    await auth_service.request_sign_in(session, payload.email)
    await session.commit()
    return {"ok": True, "tokenMaxAgeInMins": auth_service.TOKEN_MAX_AGE_IN_MINS}


@router.post("/callback/email")
async def callback_email(payload: CallbackIn, session: AsyncSession = Depends(get_session)):
    user, db_session = await auth_service.sign_in_with_code(session, payload.email, payload.token)
    await session.commit()
    response = JSONResponse({"user": _user_out(user).model_dump(), "expires": db_session.expires.isoformat()})
    response.set_cookie(
        key=SESSION_COOKIE,
        value=db_session.session_token,
        max_age=int(auth_service.SESSION_MAX_AGE.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=get_settings().is_production,
        path="/",
    )
    return response


@router.get("/session")
async def read_session(request: Request, session: AsyncSession = Depends(get_session)):
    token = session_token_from_request(request)
    user = await auth_service.get_session_user(session, token) if token else None
    await session.commit()
    if user is None:
        raise HTTPException(status_code=401, detail={"error": "SessionRequired", "signInPage": auth_service.SIGN_IN_PAGE})
    return {"user": _user_out(user).model_dump()}


@router.post("/signout")
async def signout(request: Request, session: AsyncSession = Depends(get_session)):
    token = session_token_from_request(request)
    if token:
        await auth_service.sign_out(session, token)
        await session.commit()
    response = JSONResponse({"ok": True})
    response.set_cookie(key=SESSION_COOKIE, value="", max_age=0, httponly=True, samesite="lax", path="/")
    return response
