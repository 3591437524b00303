"""Relational models (SQLAlchemy 2.x style) and the async engine/session factory.

Groups, their members, transcripts and partnerships are soft-deletable ("paranoid"):
`destroy()` stamps `deleted_at` and every read goes through `active()` which filters
those rows out. Destroying a Group first destroys its GroupUser and Transcript rows.
"""
from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON, DateTime, ForeignKey, Index, MetaData, PrimaryKeyConstraint, Select, String, TypeDecorator, Uuid, event,
    func, select,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from mentorhub.core.settings import get_settings
from mentorhub.logging import log_group_destroyed

# ---------------------------------------------------------------------------
# Naming conventions (important for Alembic autogenerate stability)
# ---------------------------------------------------------------------------
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class Base(DeclarativeBase):
    metadata = metadata


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite drops tzinfo on the way back; naive values read from it are UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


class ParanoidMixin(TimestampMixin):
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True, index=True)

    @classmethod
    def active(cls) -> Select:
        return select(cls).where(cls.deleted_at.is_(None))

    async def before_destroy(self, session: AsyncSession, force: bool) -> None:
        """Hook run before the row itself is destroyed."""

    async def destroy(self, session: AsyncSession, *, force: bool = False) -> None:
        await self.before_destroy(session, force)
        if force:
            await session.delete(self)
        else:
            self.deleted_at = utcnow()


# ---------------------------------------------------------------------------
# Auth models
# ---------------------------------------------------------------------------
class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    email_verified: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    # Role names, e.g. "UserManager"
    roles: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    sessions: Mapped[List["Session"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    group_users: Mapped[List["GroupUser"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class Session(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_token: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    expires: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    user: Mapped[User] = relationship(back_populates="sessions")


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    identifier: Mapped[str] = mapped_column(String, nullable=False)
    token: Mapped[str] = mapped_column(String, nullable=False)  # HMAC of the code, never the code itself
    expires: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("identifier", "token"),
    )


# ---------------------------------------------------------------------------
# Group models
# ---------------------------------------------------------------------------
class Partnership(ParanoidMixin, Base):
    __tablename__ = "partnerships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mentor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    mentee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    mentor: Mapped[User] = relationship(foreign_keys=[mentor_id])
    mentee: Mapped[User] = relationship(foreign_keys=[mentee_id])
    group: Mapped[Optional["Group"]] = relationship(back_populates="partnership", uselist=False)


class Group(ParanoidMixin, Base):
    __tablename__ = "groups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    meeting_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    partnership_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("partnerships.id"), index=True, nullable=True)

    group_users: Mapped[List["GroupUser"]] = relationship(back_populates="group", passive_deletes=True)
    transcripts: Mapped[List["Transcript"]] = relationship(back_populates="group", passive_deletes=True)
    partnership: Mapped[Optional[Partnership]] = relationship(back_populates="group")

    async def before_destroy(self, session: AsyncSession, force: bool) -> None:
        """Destroy all member and transcript rows, then flush them ahead of the group row."""
        # a hard delete must also remove rows soft-deleted earlier
        gu_stmt = select(GroupUser) if force else GroupUser.active()
        tr_stmt = select(Transcript) if force else Transcript.active()
        group_users = (await session.execute(gu_stmt.where(GroupUser.group_id == self.id))).scalars().all()
        transcripts = (await session.execute(tr_stmt.where(Transcript.group_id == self.id))).scalars().all()
        await asyncio.gather(*[row.destroy(session, force=force) for row in [*group_users, *transcripts]])
        await session.flush()
        log_group_destroyed(str(self.id), len(group_users), len(transcripts), force)

    def __repr__(self) -> str:
        return f"<Group id={self.id} name={self.name!r}>"


class GroupUser(ParanoidMixin, Base):
    __tablename__ = "group_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("groups.id"), index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    group: Mapped[Group] = relationship(back_populates="group_users")
    user: Mapped[User] = relationship(back_populates="group_users")

    __table_args__ = (
        Index("ix_group_users_group_user", "group_id", "user_id"),
    )


class Transcript(ParanoidMixin, Base):
    __tablename__ = "transcripts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("groups.id"), index=True, nullable=False)
    # Tencent Meeting `meeting_record_id`
    transcript_id: Mapped[str] = mapped_column(String, nullable=False)
    started_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    group: Mapped[Group] = relationship(back_populates="transcripts")


# ---------------------------------------------------------------------------
# Engine / session factory
# ---------------------------------------------------------------------------
DATABASE_URL = get_settings().DATABASE_URL

engine = create_async_engine(DATABASE_URL, poolclass=NullPool, future=True)

if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(User.email == email.strip().lower())
    return (await session.execute(stmt)).scalar_one_or_none()


__all__ = [
    "Base", "User", "Session", "VerificationToken", "Partnership", "Group", "GroupUser", "Transcript",
    "engine", "AsyncSessionLocal", "get_user_by_email", "utcnow",
]
