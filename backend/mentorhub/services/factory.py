import logging
from typing import Any, Dict

from mentorhub.core.settings import get_settings
from mentorhub.services.email_service import EmailService
from mentorhub.services.providers.postmark_provider import PostmarkProvider


class NoopEmailProvider(EmailService):
    def __init__(self):
        self.logger = logging.getLogger("NoopEmailProvider")

    def send(self, to: str, subject: str, text: str, meta: dict | None = None) -> str | None:
        self.logger.info(f"NOOP email to={to} subject={subject} meta={meta}")
        return None

    def send_template(self, to: str, template_alias: str, template_model: Dict[str, Any], meta: dict | None = None) -> str | None:
        self.logger.info(f"NOOP template email to={to} template={template_alias}")
        return None


def get_email_service() -> EmailService:
    """
    Factory for EmailService.
    Uses Postmark when POSTMARK_API_KEY is configured, otherwise a logging no-op provider.
    """
    settings = get_settings()
    if settings.POSTMARK_API_KEY:
        return PostmarkProvider(settings.POSTMARK_API_KEY, settings.MAIL_FROM)
    return NoopEmailProvider()
