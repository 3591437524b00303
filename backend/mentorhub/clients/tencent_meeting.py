"""Tencent Meeting REST API client.

Requests are signed per https://cloud.tencent.com/document/product/1095/42413 and every
response is validated against a strict schema before it is handed back to callers.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import random
import time
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, HttpUrl, StrictBool, StrictInt, StrictStr

from mentorhub.core.monitoring import capture_exception
from mentorhub.core.settings import Settings, get_settings
from mentorhub.errors import AppError, BadRequestError, NotFoundError, NotSupportedError
from mentorhub.logging import log_meeting_request

logger = logging.getLogger("tencent_meeting_client")

RECORD_PAGE_SIZE = 20  # max allowed by /v1/records
RECORD_LOOKBACK_SECONDS = 31 * 24 * 3600  # earliest start_time /v1/records accepts

HttpMethod = Literal["GET", "POST"]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class MeetingHost(BaseModel):
    userid: StrictStr


class MeetingSettings(BaseModel):
    mute_enable_join: StrictBool
    allow_unmute_self: StrictBool
    mute_all: StrictBool
    mute_enable_type_join: StrictInt


class CreatedMeeting(BaseModel):
    subject: StrictStr
    meeting_id: StrictStr
    meeting_code: StrictStr
    type: StrictInt
    join_url: HttpUrl
    hosts: List[MeetingHost]
    start_time: StrictStr
    end_time: StrictStr
    settings: MeetingSettings
    meeting_type: StrictInt
    enable_live: StrictBool
    media_set_type: StrictInt
    location: StrictStr
    host_key: Optional[StrictStr] = None


class CreatedMeetings(BaseModel):
    meeting_number: StrictInt
    meeting_info_list: List[CreatedMeeting]


class MeetingInfo(BaseModel):
    subject: StrictStr
    meeting_id: StrictStr
    meeting_code: StrictStr
    status: StrictStr
    join_url: StrictStr
    start_time: StrictStr
    end_time: StrictStr


class MeetingInfoList(BaseModel):
    meeting_number: StrictInt
    meeting_info_list: List[MeetingInfo]


class RecordFile(BaseModel):
    record_file_id: StrictStr
    record_start_time: StrictInt
    record_end_time: StrictInt


class RecordMeeting(BaseModel):
    meeting_record_id: StrictStr  # needed for address lookup
    subject: StrictStr
    state: StrictInt  # 3 - ready for download
    record_files: Optional[List[RecordFile]] = None


class RecordMeetingsPage(BaseModel):
    total_count: StrictInt
    total_page: StrictInt
    record_meetings: Optional[List[RecordMeeting]] = None


class SummaryAddress(BaseModel):
    download_address: HttpUrl
    file_type: StrictStr


class RecordFileAddresses(BaseModel):
    record_file_id: StrictStr
    meeting_summary: Optional[List[SummaryAddress]] = None


class RecordAddresses(BaseModel):
    total_page: StrictInt
    record_files: List[RecordFileAddresses]


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------
def sign(secret_id: str, secret_key: str, http_method: str, nonce: int, timestamp: int,
         request_uri: str, request_body: str) -> str:
    to_sign = (
        f"{http_method}\nX-TC-Key={secret_id}&X-TC-Nonce={nonce}&X-TC-Timestamp={timestamp}"
        f"\n{request_uri}\n{request_body}"
    )
    digest = hmac.new(secret_key.encode("utf-8"), to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
    # the provider expects base64 of the hex text, not of the raw digest
    return base64.b64encode(digest.encode("utf-8")).decode("ascii")


def _error_payload(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500]


def _reported(err: AppError) -> AppError:
    """Forward a client-raised error to Sentry before it is raised."""
    capture_exception(err)
    return err


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class TencentMeetingClient:
    def __init__(self, settings: Settings | None = None, timeout: float = 20.0):
        self.settings = settings or get_settings()
        self.timeout = timeout

    def _now(self) -> int:
        return int(time.time())

    def _nonce(self) -> int:
        return random.randint(0, 99999)

    def _headers(self, method: str, path_with_query: str, body_text: str) -> Dict[str, str]:
        s = self.settings
        now = self._now()
        nonce = self._nonce()
        signature = sign(s.TM_SECRET_ID, s.TM_SECRET_KEY, method, nonce, now, path_with_query, body_text)
        return {
            "Content-Type": "application/json",
            "X-TC-Key": s.TM_SECRET_ID,
            "AppId": s.TM_ENTERPRISE_ID,
            "SdkId": s.TM_APP_ID,
            "X-TC-Timestamp": str(now),
            "X-TC-Nonce": str(nonce),
            "X-TC-Signature": signature,
            "X-TC-Registered": "1",
        }

    async def request(
        self,
        method: HttpMethod,
        path: str,
        query: Dict[str, Any] | None = None,
        body: Dict[str, Any] | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> Any:
        """Issue a signed request and return the decoded JSON body.

        Raises NotFoundError on an empty `{}` success body, BadRequestError on an
        HTTP error status or a body that is not JSON, and re-raises transport errors
        unchanged. Every one of them is reported to Sentry.
        """
        path_with_query = path + (f"?{urlencode(query)}" if query else "")
        body_text = "" if method == "GET" else json.dumps(body or {}, separators=(",", ":"), ensure_ascii=False)
        headers = self._headers(method, path_with_query, body_text)
        url = self.settings.TM_API_BASE.rstrip("/") + path_with_query

        try:
            if client is None:
                async with httpx.AsyncClient(timeout=self.timeout) as own_client:
                    resp = await own_client.request(method, url, headers=headers, content=body_text or None)
            else:
                resp = await client.request(method, url, headers=headers, content=body_text or None)
        except httpx.HTTPError as e:
            log_meeting_request(method, path, None, "transport_error", error=str(e))
            capture_exception(e)
            raise

        if resp.status_code >= 400:
            # Invalid requests come back as 400 or 500 with an error payload
            # https://cloud.tencent.com/document/product/1095/42700
            err = BadRequestError(
                f"Tencent Meeting Rest API request failed, status Code:{resp.status_code}",
                cause=_error_payload(resp),
            )
            logger.warning("Tencent Meeting %s %s failed %s: %s", method, path, resp.status_code, resp.text[:200])
            log_meeting_request(method, path, resp.status_code, "bad_request")
            capture_exception(err)
            raise err

        try:
            data = resp.json()
        except ValueError as e:
            err = BadRequestError(
                f"Tencent Meeting Rest API returned a non-JSON body, status Code:{resp.status_code}",
                cause=resp.text[:500],
            )
            log_meeting_request(method, path, resp.status_code, "invalid_body")
            capture_exception(err)
            raise err from e
        # The API answers 200 with `{}` for well-formed but invalid inputs, e.g. expired record ids
        if data == {}:
            err = NotFoundError(
                "Response data is undefined",
                cause="check validities of Tencent Meeting API inputs",
            )
            log_meeting_request(method, path, resp.status_code, "empty")
            capture_exception(err)
            raise err

        log_meeting_request(method, path, resp.status_code, "ok")
        return data

    async def create_meeting(self, tm_user_id: str, subject: str, start_time: int, end_time: int) -> CreatedMeetings:
        """Create a scheduled meeting.

        https://cloud.tencent.com/document/product/1095/42417
        """
        logger.info("create_meeting(%r, %s, %s)", subject, start_time, end_time)
        res = await self.request("POST", "/v1/meetings", body={
            "userid": tm_user_id,
            "instanceid": "1",
            "subject": subject,
            "start_time": str(start_time),
            "end_time": str(end_time),
            "type": "0",  # 0: scheduled, 1: fast
        })
        return CreatedMeetings.model_validate(res)

    async def get_meeting(self, meeting_id: str, tm_user_id: str) -> MeetingInfo:
        """https://cloud.tencent.com/document/product/1095/93432"""
        logger.info("get_meeting(%r)", meeting_id)
        res = await self.request("GET", f"/v1/meetings/{meeting_id}", {
            "userid": tm_user_id,
            "instanceid": "1",
        })
        infos = MeetingInfoList.model_validate(res).meeting_info_list
        if not infos:
            raise _reported(NotFoundError(f"Meeting {meeting_id} not found", cause=res))
        return infos[0]

    async def list_records(self, tm_user_id: str) -> List[RecordMeeting]:
        """List meeting recordings of the last 31 days (the maximum range allowed).

        Pages are fetched sequentially until `total_page` is reached. The page count
        reported by the provider is trusted up to `TM_MAX_RECORD_PAGES`.

        https://cloud.tencent.com/document/product/1095/51189
        """
        logger.info("list_records()")
        max_pages = self.settings.TM_MAX_RECORD_PAGES
        records: List[RecordMeeting] = []
        page = 1
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                now = self._now()
                res = RecordMeetingsPage.model_validate(await self.request("GET", "/v1/records", {
                    "userid": tm_user_id,
                    "start_time": str(now - RECORD_LOOKBACK_SECONDS),
                    "end_time": str(now),
                    "page_size": RECORD_PAGE_SIZE,
                    "page": page,
                }, client=client))
                records.extend(res.record_meetings or [])
                if page >= res.total_page:
                    break
                if page >= max_pages:
                    raise _reported(NotSupportedError(
                        f"Record listing exceeds {max_pages} pages",
                        cause={"total_page": res.total_page},
                    ))
                page += 1
        return records

    async def get_record_urls(self, meeting_record_id: str, tm_user_id: str) -> RecordAddresses:
        """Get record file download addresses for a record id from `list_records()`.

        https://cloud.tencent.com/document/product/1095/51174
        """
        logger.info("get_record_urls(%r)", meeting_record_id)
        res = RecordAddresses.model_validate(await self.request("GET", "/v1/addresses", {
            "meeting_record_id": meeting_record_id,
            "userid": tm_user_id,
        }))
        if res.total_page != 1:
            raise _reported(NotSupportedError("Pagination isn't supported", cause={"total_page": res.total_page}))
        return res


__all__ = [
    "TencentMeetingClient", "sign",
    "CreatedMeetings", "CreatedMeeting", "MeetingInfo",
    "RecordMeeting", "RecordFile", "RecordAddresses", "RecordFileAddresses", "SummaryAddress",
]
