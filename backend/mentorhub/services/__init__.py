"""Service layer.

Modules:
- auth: passwordless e-mail sign-in and database sessions
- meetings: group meeting scheduling and recording lookup
- email_service / factory / providers: outbound e-mail
"""
