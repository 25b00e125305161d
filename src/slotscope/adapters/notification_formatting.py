"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Sequence

DIVIDER = "─" * 64


def _format_text(subject: str, label: str, url: str) -> str:
    """Create the plain-text body used by the mail fallback part and logs."""

    lines = [
        subject,
        "",
        url,
    ]
    return "\n".join(lines)


def _format_html(subject: str, label: str, url: str) -> str:
    """Create the HTML body used by the SMTP adapter.

    The subject is repeated as the headline with the label set in bold.
    """

    safe_subject = html.escape(subject)
    safe_label = html.escape(label)
    headline = safe_subject.replace(safe_label, f"<b>{safe_label}</b>", 1) if safe_label else safe_subject
    safe_link = html.escape(url, quote=True)
    parts = [
        "<p>",
        f"    {headline}<br>",
        "    <br>",
        f"    <a href=\"{safe_link}\">{safe_link}</a>",
        "</p>",
    ]
    return "\n".join(parts)


def format_body(subject: str, label: str, url: str, mode: str) -> str:
    """Return the notification body formatted for the requested mode."""

    if mode == "text":
        return _format_text(subject, label, url)
    if mode == "html":
        return _format_html(subject, label, url)
    raise ValueError(f"Unsupported notification format: {mode}")


def format_preview(recipients: Sequence[str], subject: str, url: str) -> str:
    """Return the multi-line preview written by the development notifier."""

    lines = [
        "",
        "=" * 10 + " mail (development mode, not sent) " + "=" * 10,
        f"To:      {', '.join(recipients) or '(no recipients)'}",
        f"Subject: {subject}",
        "Body:",
        f"  - {url}",
        DIVIDER,
    ]
    return "\n".join(lines)
