"""Global pytest fixtures backed by a throwaway SQLite database (aiosqlite).

This file will:
  * Point DATABASE_URL at a temp SQLite file BEFORE any mentorhub import, so the
    module-level engine and cached settings pick it up
  * Create all tables per test (`schema`) and drop them afterwards
  * Provide `db_session` for direct DB access and `api` for HTTP-level tests
  * Provide a recording e-mail service and a Sentry capture recorder
"""
from __future__ import annotations

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="mentorhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("AUTH_SECRET", "test-auth-secret")
os.environ.setdefault("TM_SECRET_ID", "test-secret-id")
os.environ.setdefault("TM_SECRET_KEY", "test-secret-key")
os.environ.setdefault("TM_ENTERPRISE_ID", "200000001")
os.environ.setdefault("TM_APP_ID", "211153201")
os.environ.setdefault("TM_USER_ID", "host-user")
os.environ.pop("POSTMARK_API_KEY", None)
os.environ.pop("SENTRY_DSN", None)

from typing import Any, AsyncIterator, Dict, List

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.models import AsyncSessionLocal, Base, engine
from mentorhub.services.email_service import EmailService


class RecordingEmailService(EmailService):
    def __init__(self, fail_for: set[str] | None = None):
        self.sent: List[Dict[str, Any]] = []
        self.templates: List[Dict[str, Any]] = []
        self.fail_for = fail_for or set()

    def send(self, to, subject, text, meta=None):
        if to in self.fail_for:
            raise RuntimeError(f"provider rejected {to}")
        self.sent.append({"to": to, "subject": subject, "text": text, "meta": meta})
        return f"msg-{len(self.sent)}"

    def send_template(self, to, template_alias, template_model, meta=None):
        self.templates.append({"to": to, "template": template_alias, "model": template_model, "meta": meta})
        return f"tpl-{len(self.templates)}"


@pytest.fixture
async def schema() -> AsyncIterator[None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(schema) -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def email_recorder(monkeypatch) -> RecordingEmailService:
    recorder = RecordingEmailService()
    import mentorhub.services.auth as auth_service
    monkeypatch.setattr(auth_service, "get_email_service", lambda: recorder)
    return recorder


@pytest.fixture
def captured(monkeypatch) -> List[BaseException]:
    """Exceptions the meeting client reports to Sentry."""
    errors: List[BaseException] = []
    import mentorhub.clients.tencent_meeting as tm
    monkeypatch.setattr(tm, "capture_exception", errors.append)
    return errors


@pytest.fixture
async def api(schema) -> AsyncIterator[httpx.AsyncClient]:
    from mentorhub.main import app
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
