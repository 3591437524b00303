from __future__ import annotations

from typing import List, Optional
from uuid import UUID as UUID_t

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AwareDatetime, BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.clients.tencent_meeting import TencentMeetingClient
from mentorhub.core.settings import get_settings
from mentorhub.deps import get_current_user, get_session
from mentorhub.models import User
from mentorhub.repositories import groups as groups_repo
from mentorhub.services.meetings import list_record_summaries, schedule_group_meeting
from mentorhub.utils.group_name import format_group_name

router = APIRouter(tags=["groups"])


def get_meeting_client() -> TencentMeetingClient:
    return TencentMeetingClient(get_settings())


class GroupOut(BaseModel):
    id: UUID_t
    name: Optional[str] = None
    display_name: str
    meeting_link: Optional[str] = None
    partnership_id: Optional[UUID_t] = None
    user_count: int

class GroupCreateIn(BaseModel):
    name: Optional[str] = None
    user_ids: List[UUID_t] = []
    partnership_id: Optional[UUID_t] = None

class ScheduleMeetingIn(BaseModel):
    subject: Optional[str] = None
    start_time: AwareDatetime
    end_time: AwareDatetime

class ScheduledMeetingOut(BaseModel):
    meeting_id: str
    meeting_code: str
    subject: str
    join_url: str
    start_time: str
    end_time: str


def _group_out(group, user_count: int) -> GroupOut:
    return GroupOut(
        id=group.id,
        name=group.name,
        display_name=format_group_name(group.name, user_count),
        meeting_link=group.meeting_link,
        partnership_id=group.partnership_id,
        user_count=user_count,
    )


async def _member_group(session: AsyncSession, group_id: UUID_t, user: User):
    group = await groups_repo.get_group(session, group_id)
    if group is None or not await groups_repo.is_member(session, group_id, user.id):
        raise HTTPException(status_code=404, detail="Group not found")
    return group


@router.get("/groups", response_model=List[GroupOut])
async def list_groups(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    rows = await groups_repo.list_user_groups(session, user.id)
    return [_group_out(g, count) for g, count in rows]


@router.post("/groups", response_model=GroupOut, status_code=201)
async def create_group(
    payload: GroupCreateIn,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    user_ids = [user.id, *payload.user_ids]
    group = await groups_repo.create_group(session, user_ids, name=payload.name, partnership_id=payload.partnership_id)
    await session.commit()
    counts = await groups_repo.member_counts(session, [group.id])
    return _group_out(group, counts.get(group.id, 0))


@router.delete("/groups/{group_id}", status_code=204)
async def delete_group(
    group_id: UUID_t,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await _member_group(session, group_id, user)
    await groups_repo.destroy_group(session, group_id)
    await session.commit()


@router.post("/groups/{group_id}/meeting", response_model=ScheduledMeetingOut)
async def schedule_meeting(
    group_id: UUID_t,
    payload: ScheduleMeetingIn,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    client: TencentMeetingClient = Depends(get_meeting_client),
):
    if payload.end_time <= payload.start_time:
        raise HTTPException(status_code=422, detail="end_time must be after start_time")
    group = await _member_group(session, group_id, user)
    counts = await groups_repo.member_counts(session, [group.id])
    subject = payload.subject or format_group_name(group.name, counts.get(group.id, 0))
    meeting = await schedule_group_meeting(
        session, group, client, client.settings.TM_USER_ID, subject,
        int(payload.start_time.timestamp()), int(payload.end_time.timestamp()),
    )
    await session.commit()
    return ScheduledMeetingOut(
        meeting_id=meeting.meeting_id,
        meeting_code=meeting.meeting_code,
        subject=meeting.subject,
        join_url=str(meeting.join_url),
        start_time=meeting.start_time,
        end_time=meeting.end_time,
    )


@router.get("/meetings/records")
async def meeting_records(
    user: User = Depends(get_current_user),
    client: TencentMeetingClient = Depends(get_meeting_client),
):
    return {"items": await list_record_summaries(client, client.settings.TM_USER_ID)}
