import base64
import hashlib
import hmac
import json

import httpx
import pytest
import respx
from pydantic import ValidationError

from mentorhub.clients.tencent_meeting import TencentMeetingClient, sign
from mentorhub.core.settings import Settings
from mentorhub.errors import BadRequestError, NotFoundError, NotSupportedError

BASE = "https://api.meeting.qq.com"


def _client(**overrides) -> TencentMeetingClient:
    values = dict(
        TM_SECRET_ID="sid", TM_SECRET_KEY="skey", TM_ENTERPRISE_ID="ent", TM_APP_ID="app",
        TM_API_BASE=BASE,
    )
    values.update(overrides)
    return TencentMeetingClient(Settings(**values))


CREATED = {
    "meeting_number": 1,
    "meeting_info_list": [{
        "subject": "test meeting ts4",
        "meeting_id": "8920608318088532478",
        "meeting_code": "123371270",
        "type": 1,
        "join_url": "https://meeting.tencent.com/dm/49fYCUGV0YHe",
        "hosts": [{"userid": "1764d9d81a924fdf9269b7a54e519f30"}],
        "start_time": "1683093659",
        "end_time": "1683136859",
        "settings": {
            "mute_enable_join": True,
            "allow_unmute_self": True,
            "mute_all": True,
            "mute_enable_type_join": 1,
        },
        "meeting_type": 0,
        "enable_live": False,
        "media_set_type": 0,
        "location": "",
        "host_key": "123456",
    }],
}


def _records_page(total_page: int, ids: list[str]) -> dict:
    return {
        "total_count": total_page * len(ids),
        "total_page": total_page,
        "record_meetings": [
            {"meeting_record_id": rid, "subject": f"s-{rid}", "state": 3,
             "record_files": [{"record_file_id": f"f-{rid}", "record_start_time": 1, "record_end_time": 2}]}
            for rid in ids
        ],
    }


# ---------------------------------------------------------------------------
# sign()
# ---------------------------------------------------------------------------
ARGS = ("sid", "skey", "GET", 12345, 1700000000, "/v1/meetings/1?userid=u&instanceid=1", "")


def test_sign_is_deterministic_and_base64_of_hex():
    s1 = sign(*ARGS)
    s2 = sign(*ARGS)
    assert s1 == s2
    expected_hex = hmac.new(
        b"skey",
        b"GET\nX-TC-Key=sid&X-TC-Nonce=12345&X-TC-Timestamp=1700000000\n/v1/meetings/1?userid=u&instanceid=1\n",
        hashlib.sha256,
    ).hexdigest()
    assert base64.b64decode(s1).decode() == expected_hex


@pytest.mark.parametrize("index,replacement", [
    (2, "POST"),
    (3, 54321),
    (4, 1700000001),
    (5, "/v1/meetings/2?userid=u&instanceid=1"),
    (6, '{"subject":"x"}'),
])
def test_sign_changes_with_any_input(index, replacement):
    args = list(ARGS)
    args[index] = replacement
    assert sign(*args) != sign(*ARGS)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
@respx.mock
async def test_create_meeting_signs_and_validates(captured):
    route = respx.post(f"{BASE}/v1/meetings").mock(return_value=httpx.Response(200, json=CREATED))
    res = await _client().create_meeting("host", "Weekly", 1683093659, 1683136859)

    assert route.call_count == 1
    req = route.calls[0].request
    body = json.loads(req.content)
    assert body == {
        "userid": "host", "instanceid": "1", "subject": "Weekly",
        "start_time": "1683093659", "end_time": "1683136859", "type": "0",
    }
    assert req.headers["X-TC-Key"] == "sid"
    assert req.headers["AppId"] == "ent"
    assert req.headers["SdkId"] == "app"
    assert req.headers["X-TC-Registered"] == "1"
    expected = sign("sid", "skey", "POST", int(req.headers["X-TC-Nonce"]), int(req.headers["X-TC-Timestamp"]),
                    "/v1/meetings", req.content.decode())
    assert req.headers["X-TC-Signature"] == expected

    assert res.meeting_number == 1
    assert str(res.meeting_info_list[0].join_url).startswith("https://meeting.tencent.com/dm/")
    assert captured == []


@pytest.mark.asyncio
@respx.mock
async def test_get_meeting_returns_first_entry_and_signs_query():
    route = respx.get(f"{BASE}/v1/meetings/m1").mock(return_value=httpx.Response(200, json={
        "meeting_number": 1,
        "meeting_info_list": [{
            "subject": "s", "meeting_id": "m1", "meeting_code": "c", "status": "MEETING_STATE_ENDED",
            "join_url": "https://meeting.tencent.com/dm/x", "start_time": "1", "end_time": "2", "type": 0,
        }],
    }))
    info = await _client().get_meeting("m1", "host")

    req = route.calls[0].request
    assert req.url.params["userid"] == "host"
    assert req.url.params["instanceid"] == "1"
    expected = sign("sid", "skey", "GET", int(req.headers["X-TC-Nonce"]), int(req.headers["X-TC-Timestamp"]),
                    req.url.raw_path.decode(), "")
    assert req.headers["X-TC-Signature"] == expected
    assert info.meeting_id == "m1"
    assert info.status == "MEETING_STATE_ENDED"


@pytest.mark.asyncio
@respx.mock
async def test_list_records_fetches_every_page_in_order():
    route = respx.get(f"{BASE}/v1/records").mock(side_effect=[
        httpx.Response(200, json=_records_page(3, ["a", "b"])),
        httpx.Response(200, json=_records_page(3, ["c"])),
        httpx.Response(200, json={"total_count": 3, "total_page": 3}),
    ])
    records = await _client().list_records("host")

    assert route.call_count == 3
    pages = [int(c.request.url.params["page"]) for c in route.calls]
    assert pages == [1, 2, 3]
    first = route.calls[0].request.url.params
    assert first["page_size"] == "20"
    assert int(first["end_time"]) - int(first["start_time"]) == 31 * 24 * 3600
    assert [r.meeting_record_id for r in records] == ["a", "b", "c"]


@pytest.mark.asyncio
@respx.mock
async def test_list_records_single_page():
    route = respx.get(f"{BASE}/v1/records").mock(return_value=httpx.Response(200, json=_records_page(1, ["only"])))
    records = await _client().list_records("host")
    assert route.call_count == 1
    assert [r.meeting_record_id for r in records] == ["only"]


@pytest.mark.asyncio
@respx.mock
async def test_list_records_stops_at_page_cap(captured):
    route = respx.get(f"{BASE}/v1/records").mock(return_value=httpx.Response(200, json=_records_page(1000, ["x"])))
    with pytest.raises(NotSupportedError):
        await _client(TM_MAX_RECORD_PAGES=2).list_records("host")
    assert route.call_count == 2
    assert len(captured) == 1


@pytest.mark.asyncio
@respx.mock
async def test_get_record_urls():
    route = respx.get(f"{BASE}/v1/addresses").mock(return_value=httpx.Response(200, json={
        "total_page": 1,
        "record_files": [{
            "record_file_id": "f1",
            "meeting_summary": [{"download_address": "https://example.com/summary.txt", "file_type": "txt"}],
        }],
    }))
    res = await _client().get_record_urls("rec-1", "host")
    assert route.calls[0].request.url.params["meeting_record_id"] == "rec-1"
    assert res.record_files[0].meeting_summary[0].file_type == "txt"


@pytest.mark.asyncio
@respx.mock
async def test_get_record_urls_rejects_multiple_pages(captured):
    respx.get(f"{BASE}/v1/addresses").mock(return_value=httpx.Response(200, json={
        "total_page": 2,
        "record_files": [{"record_file_id": "f1"}],
    }))
    with pytest.raises(NotSupportedError) as exc:
        await _client().get_record_urls("rec-1", "host")
    assert captured == [exc.value]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
@respx.mock
async def test_empty_object_is_not_found_and_reported_once(captured):
    respx.get(f"{BASE}/v1/addresses").mock(return_value=httpx.Response(200, json={}))
    with pytest.raises(NotFoundError) as exc:
        await _client().get_record_urls("expired", "host")
    assert exc.value.code == "NOT_FOUND"
    assert captured == [exc.value]


@pytest.mark.asyncio
@respx.mock
async def test_error_status_is_bad_request_with_payload(captured):
    payload = {"error_info": {"error_code": 190300, "message": "invalid signature"}}
    respx.post(f"{BASE}/v1/meetings").mock(return_value=httpx.Response(400, json=payload))
    with pytest.raises(BadRequestError) as exc:
        await _client().create_meeting("host", "s", 1, 2)
    assert "status Code:400" in exc.value.message
    assert exc.value.cause == payload
    assert captured == [exc.value]


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_passes_through(captured):
    respx.get(f"{BASE}/v1/meetings/m1").mock(side_effect=httpx.ConnectError("boom"))
    with pytest.raises(httpx.ConnectError):
        await _client().get_meeting("m1", "host")
    assert len(captured) == 1
    assert isinstance(captured[0], httpx.ConnectError)


@pytest.mark.asyncio
@respx.mock
async def test_schema_mismatch_is_a_hard_failure():
    respx.get(f"{BASE}/v1/meetings/m1").mock(return_value=httpx.Response(200, json={
        "meeting_number": 1,
        "meeting_info_list": [{"subject": "s", "meeting_id": 123}],
    }))
    with pytest.raises(ValidationError):
        await _client().get_meeting("m1", "host")


@pytest.mark.asyncio
@respx.mock
async def test_non_json_body_is_bad_request_and_reported(captured):
    respx.get(f"{BASE}/v1/meetings/m1").mock(
        return_value=httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})
    )
    with pytest.raises(BadRequestError) as exc:
        await _client().get_meeting("m1", "host")
    assert exc.value.cause == "<html>gateway</html>"
    assert captured == [exc.value]


@pytest.mark.asyncio
@respx.mock
async def test_get_meeting_with_empty_list_is_not_found(captured):
    respx.get(f"{BASE}/v1/meetings/m1").mock(
        return_value=httpx.Response(200, json={"meeting_number": 0, "meeting_info_list": []})
    )
    with pytest.raises(NotFoundError) as exc:
        await _client().get_meeting("m1", "host")
    assert captured == [exc.value]
