"""Email notification adapters.

``SmtpEmailNotifier`` delivers over SMTP-over-SSL; ``LogNotifier`` satisfies
the same port in development mode by writing the would-be mail to the log.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Sequence

from slotscope.adapters.notification_formatting import format_body, format_preview
from slotscope.core.ports import NotificationError

LOGGER = logging.getLogger(__name__)


class SmtpEmailNotifier:
    """Notifier adapter that sends a plain + HTML mail via SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender_name: str,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender_name = sender_name
        self._timeout = timeout

    def build_message(
        self,
        recipients: Sequence[str],
        subject: str,
        body_url: str,
        body_label: str,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._sender_name, self._username))
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(format_body(subject, body_label, body_url, mode="text"))
        message.add_alternative(
            format_body(subject, body_label, body_url, mode="html"),
            subtype="html",
        )
        return message

    def _deliver(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout, context=context) as server:
            server.login(self._username, self._password)
            server.send_message(message)

    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        body_url: str,
        body_label: str,
    ) -> None:
        """Send the mail; raises NotificationError on delivery failure."""

        if not recipients:
            raise NotificationError("No recipients configured")

        message = self.build_message(recipients, subject, body_url, body_label)
        # smtplib blocks, so delivery runs in a worker thread to keep the
        # other probes of the chunk moving.
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP error sending to {', '.join(recipients)}: {e}") from e
        LOGGER.info("Mail sent to %s: %s", ", ".join(recipients), subject)


class LogNotifier:
    """Development notifier: same contract, writes to the log instead."""

    def __init__(self) -> None:
        self.sent_count = 0

    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        body_url: str,
        body_label: str,
    ) -> None:
        self.sent_count += 1
        LOGGER.info(format_preview(recipients, subject, body_url))
