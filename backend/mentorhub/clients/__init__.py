from .tencent_meeting import TencentMeetingClient, CreatedMeetings, MeetingInfo, RecordMeeting, RecordAddresses

__all__ = [
    'TencentMeetingClient',
    'CreatedMeetings', 'MeetingInfo', 'RecordMeeting', 'RecordAddresses',
]
