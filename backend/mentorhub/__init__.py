"""MentorHub backend: groups, passwordless auth and Tencent Meeting integration."""
