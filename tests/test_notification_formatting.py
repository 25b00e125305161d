from __future__ import annotations

import asyncio
import logging

import pytest

from slotscope.adapters.email_notifier import LogNotifier, SmtpEmailNotifier
from slotscope.adapters.notification_formatting import format_body, format_preview
from slotscope.core.ports import NotificationError

URL = "https://www.dpsnnn.com/reserve_g?idx=5&day=20250314&endDay=20250314"
SUBJECT = "단편선 2025-03-14 / Room 예약가능!!"


def test_html_body_escapes_label_and_link() -> None:
    label = "2025-03-14 / <Room & Co>"
    body = format_body(f"단편선 {label} 예약가능!!", label, URL, mode="html")

    assert "단편선 <b>2025-03-14 / &lt;Room &amp; Co&gt;</b> 예약가능!!" in body
    assert 'href="https://www.dpsnnn.com/reserve_g?idx=5&amp;day=20250314' in body


def test_text_body_headline_is_the_subject() -> None:
    body = format_body(SUBJECT, "2025-03-14 / Room", URL, mode="text")

    assert body.splitlines()[0] == SUBJECT
    assert URL in body


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        format_body("p", "l", URL, mode="markdown")


def test_email_message_has_plain_and_html_parts() -> None:
    notifier = SmtpEmailNotifier(
        host="smtp.example.com",
        port=465,
        username="bot@example.com",
        password="secret",
        sender_name="slotscope",
    )

    message = notifier.build_message(["a@example.com", "b@example.com"], SUBJECT, URL, "2025-03-14 / Room")

    assert message["To"] == "a@example.com, b@example.com"
    assert message["From"] == "slotscope <bot@example.com>"
    assert message.is_multipart()
    assert [part.get_content_type() for part in message.iter_parts()] == ["text/plain", "text/html"]
    plain, rich = message.iter_parts()
    assert plain.get_content().startswith(SUBJECT)
    assert "<b>2025-03-14 / Room</b>" in rich.get_content()


def test_smtp_notifier_requires_recipients() -> None:
    notifier = SmtpEmailNotifier("h", 465, "u", "p", "n")

    with pytest.raises(NotificationError):
        asyncio.run(notifier.send([], "s", URL, "l"))


def test_log_notifier_writes_preview(caplog) -> None:
    notifier = LogNotifier()

    with caplog.at_level(logging.INFO):
        asyncio.run(notifier.send(["a@example.com"], "단편선 x 예약가능!!", URL, "x"))

    assert notifier.sent_count == 1
    assert "Subject: 단편선 x 예약가능!!" in caplog.text
    assert format_preview([], "s", URL).count("(no recipients)") == 1
