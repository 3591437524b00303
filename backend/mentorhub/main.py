from __future__ import annotations

import logging
import uuid as _uuid_mod
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mentorhub.core.monitoring import init_sentry
from mentorhub.core.settings import get_settings
from mentorhub.errors import AppError
from mentorhub.logging import set_log_request, set_log_user, slog
from mentorhub.routers.auth import router as auth_router
from mentorhub.routers.config import router as config_router
from mentorhub.routers.groups import router as groups_router

logger = logging.getLogger("mentorhub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger("mentorhub").setLevel(settings.LOG_LEVEL.upper())
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT)
    slog.info("startup", environment=settings.ENVIRONMENT)
    yield


app = FastAPI(title="MentorHub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request id + context binding middleware
@app.middleware("http")
async def request_id_and_context(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(_uuid_mod.uuid4())
    set_log_request(rid)
    try:
        response = await call_next(request)
        response.headers.setdefault("X-Request-Id", rid)
        return response
    finally:
        set_log_user(None)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    slog.warning("app_error", code=exc.code, message=exc.message, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(config_router)
app.include_router(auth_router)
app.include_router(groups_router)
