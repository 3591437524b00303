"""Async repository functions for groups.

All functions assume an external AsyncSession is passed (no implicit session creation) to
allow transaction scoping by the caller. Nothing here commits.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.errors import NotFoundError
from mentorhub.models import Group, GroupUser, Partnership


async def get_group(session: AsyncSession, group_id: UUID) -> Group | None:
    stmt = Group.active().where(Group.id == group_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def is_member(session: AsyncSession, group_id: UUID, user_id: UUID) -> bool:
    stmt = GroupUser.active().where(GroupUser.group_id == group_id, GroupUser.user_id == user_id)
    return (await session.execute(stmt)).first() is not None


async def member_counts(session: AsyncSession, group_ids: Iterable[UUID]) -> Dict[UUID, int]:
    ids = list(group_ids)
    if not ids:
        return {}
    stmt = (
        select(GroupUser.group_id, func.count(GroupUser.id))
        .where(GroupUser.group_id.in_(ids), GroupUser.deleted_at.is_(None))
        .group_by(GroupUser.group_id)
    )
    return {gid: cnt for gid, cnt in (await session.execute(stmt)).all()}


async def list_user_groups(session: AsyncSession, user_id: UUID) -> List[Tuple[Group, int]]:
    """Active groups the user belongs to, each with its active member count."""
    member_of = select(GroupUser.group_id).where(GroupUser.user_id == user_id, GroupUser.deleted_at.is_(None))
    stmt = Group.active().where(Group.id.in_(member_of)).order_by(Group.created_at)
    groups = (await session.execute(stmt)).scalars().all()
    counts = await member_counts(session, [g.id for g in groups])
    return [(g, counts.get(g.id, 0)) for g in groups]


async def create_group(
    session: AsyncSession,
    user_ids: Iterable[UUID],
    name: Optional[str] = None,
    partnership_id: Optional[UUID] = None,
) -> Group:
    if partnership_id is not None:
        partnership = (await session.execute(
            Partnership.active().where(Partnership.id == partnership_id)
        )).scalar_one_or_none()
        if partnership is None:
            raise NotFoundError(f"Partnership {partnership_id} not found")
    group = Group(name=name, partnership_id=partnership_id)
    session.add(group)
    await session.flush()
    for uid in dict.fromkeys(user_ids):
        session.add(GroupUser(group_id=group.id, user_id=uid))
    await session.flush()
    return group


async def destroy_group(session: AsyncSession, group_id: UUID, *, force: bool = False) -> Group:
    group = await get_group(session, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    await group.destroy(session, force=force)
    await session.flush()
    return group


__all__ = ["get_group", "is_member", "member_counts", "list_user_groups", "create_group", "destroy_group"]
