from types import SimpleNamespace

import pytest

from mentorhub.clients.tencent_meeting import CreatedMeetings
from mentorhub.errors import NotFoundError
from mentorhub.services import meetings as meetings_service
from factories import group_factory


class EmptyCreateClient:
    settings = SimpleNamespace(TM_USER_ID="host-user")

    async def create_meeting(self, tm_user_id, subject, start_time, end_time):
        return CreatedMeetings.model_validate({"meeting_number": 0, "meeting_info_list": []})


@pytest.mark.asyncio
async def test_schedule_without_created_meeting_is_not_found(db_session, monkeypatch):
    reported = []
    monkeypatch.setattr(meetings_service, "capture_exception", reported.append)
    group = group_factory(name="Study")
    db_session.add(group)
    await db_session.flush()

    with pytest.raises(NotFoundError) as exc:
        await meetings_service.schedule_group_meeting(
            db_session, group, EmptyCreateClient(), "host-user", "Weekly", 100, 200,
        )
    assert reported == [exc.value]
    assert group.meeting_link is None


@pytest.mark.asyncio
async def test_schedule_rejects_inverted_window(db_session):
    group = group_factory()
    with pytest.raises(ValueError):
        await meetings_service.schedule_group_meeting(
            db_session, group, EmptyCreateClient(), "host-user", "Weekly", 200, 200,
        )
