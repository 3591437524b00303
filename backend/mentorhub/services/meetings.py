"""Group meeting scheduling and recording lookup on top of the Tencent Meeting client."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.clients.tencent_meeting import CreatedMeeting, TencentMeetingClient
from mentorhub.core.monitoring import capture_exception
from mentorhub.errors import NotFoundError
from mentorhub.models import Group

logger = logging.getLogger("meetings")

RECORD_STATE_READY = 3


async def schedule_group_meeting(
    session: AsyncSession,
    group: Group,
    client: TencentMeetingClient,
    tm_user_id: str,
    subject: str,
    start_time: int,
    end_time: int,
) -> CreatedMeeting:
    """Create a meeting for `group` and store its join URL as the group's meeting link."""
    if end_time <= start_time:
        raise ValueError("end_time must be after start_time")
    created = await client.create_meeting(tm_user_id, subject, start_time, end_time)
    if not created.meeting_info_list:
        err = NotFoundError("Created meeting missing from response", cause=created.model_dump())
        capture_exception(err)
        raise err
    meeting = created.meeting_info_list[0]
    group.meeting_link = str(meeting.join_url)
    await session.flush()
    logger.info("Scheduled meeting %s for group %s", meeting.meeting_id, group.id)
    return meeting


async def list_record_summaries(client: TencentMeetingClient, tm_user_id: str) -> List[Dict[str, Any]]:
    """Summary download addresses for every recording that is ready for download."""
    out: List[Dict[str, Any]] = []
    for record in await client.list_records(tm_user_id):
        if record.state != RECORD_STATE_READY:
            continue
        addresses = await client.get_record_urls(record.meeting_record_id, tm_user_id)
        out.append({
            "meeting_record_id": record.meeting_record_id,
            "subject": record.subject,
            "files": [
                {
                    "record_file_id": f.record_file_id,
                    "summaries": [
                        {"download_address": str(s.download_address), "file_type": s.file_type}
                        for s in (f.meeting_summary or [])
                    ],
                }
                for f in addresses.record_files
            ],
        })
    return out


__all__ = ["schedule_group_meeting", "list_record_summaries", "RECORD_STATE_READY"]
