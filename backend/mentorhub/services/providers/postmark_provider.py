from typing import Any, Dict

from mentorhub.services.email_service import EmailService
from postmarker.core import PostmarkClient
import logging


class PostmarkProvider(EmailService):
    """
    EmailService implementation using Postmark via the postmarker package.
    """
    def __init__(self, api_key: str, from_email: str):
        """
        Initialize the PostmarkProvider with the given API key.

        Args:
            api_key (str): Postmark server API token.
            from_email (str): Sender address for every message.
        """
        self.client = PostmarkClient(server_token=api_key)
        self.logger = logging.getLogger("PostmarkProvider")
        self.from_email = from_email

    @staticmethod
    def _message_id(resp: Any) -> str | None:
        return resp.get('MessageID') if isinstance(resp, dict) else None

    def send(self, to: str, subject: str, text: str, meta: dict | None = None) -> str | None:
        try:
            resp = self.client.emails.send(
                From=self.from_email,
                To=to,
                Subject=subject,
                TextBody=text,
            )
            message_id = self._message_id(resp)
            self.logger.info(f"Email sent to {to} via Postmark. message_id={message_id}")
            return message_id
        except Exception as e:
            self.logger.error(f"Failed to send email to {to} via Postmark: {e}")
            raise

    def send_template(self, to: str, template_alias: str, template_model: Dict[str, Any], meta: dict | None = None) -> str | None:
        try:
            resp = self.client.emails.send_with_template(
                TemplateAlias=template_alias,
                TemplateModel=template_model,
                From=self.from_email,
                To=to,
            )
            message_id = self._message_id(resp)
            self.logger.info(f"Template {template_alias} sent to {to} via Postmark. message_id={message_id}")
            return message_id
        except Exception as e:
            self.logger.error(f"Failed to send template {template_alias} to {to} via Postmark: {e}")
            raise
