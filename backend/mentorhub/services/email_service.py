import logging
from typing import Any, Dict

logger = logging.getLogger("email_service")


class EmailService:
    """
    Provider-agnostic email sender interface.
    Subclasses should implement the send methods for specific email providers.
    """

    def send(self, to: str, subject: str, text: str, meta: dict | None = None) -> str | None:
        """
        Send a plain-text email message.

        Args:
            to (str): Recipient email address.
            subject (str): Subject line.
            text (str): Text body.
            meta (dict | None): Optional metadata (e.g., event name, user id).
        Returns:
            Optional[str]: Provider-specific message id if available.
        """
        raise NotImplementedError("EmailService.send() must be implemented by a provider-specific subclass.")

    def send_template(self, to: str, template_alias: str, template_model: Dict[str, Any], meta: dict | None = None) -> str | None:
        """
        Send an email rendered by the provider from a stored template.

        Args:
            to (str): Recipient email address.
            template_alias (str): Provider-side template identifier.
            template_model (dict): Variables substituted into the template.
            meta (dict | None): Optional metadata.
        Returns:
            Optional[str]: Provider-specific message id if available.
        """
        raise NotImplementedError("EmailService.send_template() must be implemented by a provider-specific subclass.")


def email_role_ignore_error(service: EmailService, recipients: list[str], subject: str, text: str) -> int:
    """Send `text` to every address in `recipients`, logging and skipping failures.

    Returns the number of messages handed to the provider.
    """
    sent = 0
    for to in recipients:
        try:
            service.send(to, subject, text, meta={"kind": "role_notification"})
            sent += 1
        except Exception as e:  # noqa: BLE001
            logger.warning("Role notification to %s failed: %s", to, e)
    return sent
