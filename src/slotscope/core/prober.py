"""Reservation prober: one browser page, one task, one outcome.

The booking widget exposes no structured success signal, so the prober drives
it the way a visitor would and reads the only observable side effects:

1) Navigate to the task URL and remember where we landed
2) Find the "reserve" anchor, reloading while the widget is still rendering
3) Click it and read the booking name from the detail panel
4) Find and click the non-member reservation control
5) A native dialog means the slot was rejected; a URL change means the
   booking flow accepted us; anything else is inconclusive
6) Notify (deduplicated per URL) when a slot is available

The page is closed on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from slotscope.core.config import NotificationConfig, ProbeConfig
from slotscope.core.dedup import NotificationDedupCache
from slotscope.core.models import (
    Available,
    DialogAppeared,
    Inconclusive,
    PageError,
    ProbeOutcome,
    SearchTask,
    Unavailable,
)
from slotscope.core.ports import BrowserSessionPort, DialogPort, ElementPort, NotifierPort, PagePort
from slotscope.core.retry import retry

LOGGER = logging.getLogger(__name__)

LABEL_DATE_FORMAT = "%Y-%m-%d"


def format_label(task: SearchTask, booking_name: str) -> str:
    """Return the human-readable label used in subjects and bodies."""

    return f"{task.date.strftime(LABEL_DATE_FORMAT)} / {booking_name}"


def format_subject(prefix: str, label: str) -> str:
    return f"{prefix} {label} 예약가능!!"


class ReservationProber:
    """Runs the interaction protocol for one task and classifies the result."""

    def __init__(
        self,
        notifier: NotifierPort,
        dedup: NotificationDedupCache,
        notification: NotificationConfig,
        config: Optional[ProbeConfig] = None,
    ) -> None:
        self._notifier = notifier
        self._dedup = dedup
        self._notification = notification
        self._config = config or ProbeConfig()

    async def check(self, session: BrowserSessionPort, task: SearchTask) -> ProbeOutcome:
        """Probe one task, notify on availability and return the outcome.

        Never raises for per-task failures; they are reported as outcomes.
        """

        LOGGER.info(
            "Probing idx=%s date=%s url=%s",
            task.identifier,
            task.date.strftime(LABEL_DATE_FORMAT),
            task.url,
        )
        try:
            outcome = await asyncio.wait_for(
                self._probe(session, task),
                timeout=self._config.task_timeout,
            )
        except asyncio.TimeoutError:
            LOGGER.warning("Probe timed out after %ss: %s", self._config.task_timeout, task.url)
            outcome = PageError(f"timed out after {self._config.task_timeout}s")
        except Exception as exc:
            LOGGER.exception("Error while probing %s", task.url)
            outcome = PageError(f"unexpected error: {exc}")

        self._log_outcome(task, outcome)
        if isinstance(outcome, Available):
            await self._notify(task, outcome.booking_name)

        # Spacing between tasks keeps the target site from rate limiting us.
        await asyncio.sleep(self._config.task_delay)
        return outcome

    async def _probe(self, session: BrowserSessionPort, task: SearchTask) -> ProbeOutcome:
        page = await session.new_page()
        dialogs: list[DialogAppeared] = []

        async def on_dialog(dialog: DialogPort) -> None:
            message = dialog.message
            dialogs.append(DialogAppeared(message=message))
            LOGGER.info("Dialog on %s: %s", task.url, message)
            await dialog.dismiss()

        # Subscribe before navigating so no dialog can block the page.
        page.on_dialog(on_dialog)
        try:
            return await self._interact(page, task, dialogs)
        finally:
            await self._close_page(page, task)

    async def _interact(
        self,
        page: PagePort,
        task: SearchTask,
        dialogs: list[DialogAppeared],
    ) -> ProbeOutcome:
        cfg = self._config

        try:
            await page.goto(task.url, cfg.wait_until, cfg.navigation_timeout)
        except Exception as exc:
            LOGGER.warning("Navigation failed for %s: %s", task.url, exc)
            return PageError(f"navigation failed: {exc}")
        origin_url = page.current_url()
        # Any dialog from here on, including one raised by the reserve click,
        # rejects the slot.
        dialogs_seen = len(dialogs)

        async def find_entry(attempt: int) -> Optional[ElementPort]:
            element = await self._find_element(page, cfg.entry_selector, (cfg.reserve_marker,))
            if element is not None:
                LOGGER.debug("Found %r on attempt %s/%s", cfg.reserve_marker, attempt, cfg.max_attempts)
            return element

        async def reload_page(attempt: int) -> None:
            LOGGER.info(
                "%r not found, reloading (%s/%s): %s",
                cfg.reserve_marker,
                attempt,
                cfg.max_attempts,
                task.url,
            )
            await page.reload(cfg.wait_until, cfg.navigation_timeout)

        entry = await retry(cfg.max_attempts, cfg.retry_delay, find_entry, between=reload_page)
        if entry is None:
            markup = await page.content()
            LOGGER.warning(
                "%r not found after %s attempts: %s\n%s\n%s\n%s",
                cfg.reserve_marker,
                cfg.max_attempts,
                task.url,
                "=" * 78,
                markup,
                "=" * 78,
            )
            return PageError("reservation entry point not found")

        await entry.click()
        booking_name = await self._read_booking_name(page)
        await asyncio.sleep(cfg.panel_settle_delay)

        async def engage_non_member(attempt: int) -> Optional[bool]:
            element = await self._find_element(
                page,
                cfg.non_member_selector,
                (cfg.non_member_marker, cfg.booking_marker),
            )
            if element is None:
                LOGGER.debug("Non-member control missing (%s/%s): %s", attempt, cfg.max_attempts, task.url)
                return None
            await element.click()
            LOGGER.debug("Clicked non-member control on attempt %s/%s", attempt, cfg.max_attempts)
            return True

        engaged = await retry(cfg.max_attempts, cfg.retry_delay, engage_non_member)
        if not engaged:
            return Inconclusive("non-member reservation control not found")

        # A dialog always wins over a redirect: the widget alerts on rejection.
        for settle in (cfg.observe_delay, cfg.confirm_delay):
            await asyncio.sleep(settle)
            if len(dialogs) > dialogs_seen:
                return Unavailable(dialogs[dialogs_seen].message)

        if page.current_url() != origin_url:
            return Available(booking_name)
        return Inconclusive("no redirect after non-member reservation")

    async def _find_element(
        self,
        page: PagePort,
        selector: str,
        markers: Sequence[str],
    ) -> Optional[ElementPort]:
        """Return the first element whose text contains every marker."""

        for element in await page.query_selector_all(selector):
            text = (await element.text_content() or "").strip()
            if all(marker in text for marker in markers):
                return element
        return None

    async def _read_booking_name(self, page: PagePort) -> str:
        # Best effort: a missing detail panel must not fail the probe.
        try:
            elements = await page.query_selector_all(self._config.detail_selector)
            if not elements:
                return ""
            return (await elements[0].text_content() or "").strip()
        except Exception:
            LOGGER.debug("Could not read booking name", exc_info=True)
            return ""

    async def _close_page(self, page: PagePort, task: SearchTask) -> None:
        try:
            await page.close()
        except Exception:
            LOGGER.warning("Failed to close page for %s", task.url, exc_info=True)

    async def _notify(self, task: SearchTask, booking_name: str) -> bool:
        """Send one notification for ``task`` unless the cooldown forbids it."""

        key = task.url
        if not self._dedup.can_send(key):
            age = self._dedup.age(key) or 0.0
            LOGGER.info(
                "Notification skipped, sent %s min ago (cooldown %s min): %s",
                int(age // 60),
                int(self._dedup.cooldown_seconds // 60),
                key,
            )
            return False

        # Claim the key before the first await so concurrent probes of the same
        # URL cannot both pass the cooldown check.
        self._dedup.record_sent(key)
        label = format_label(task, booking_name)
        try:
            await self._notifier.send(
                self._notification.recipients,
                format_subject(self._notification.subject_prefix, label),
                task.url,
                label,
            )
        except Exception:
            self._dedup.forget(key)
            LOGGER.exception("Failed to send notification for %s", key)
            return False

        LOGGER.info("Notification sent for %s", label)
        return True

    def _log_outcome(self, task: SearchTask, outcome: ProbeOutcome) -> None:
        if isinstance(outcome, Available):
            LOGGER.info("Slot available (redirect detected): %s [%s]", task.url, outcome.booking_name or "no name")
        elif isinstance(outcome, Unavailable):
            LOGGER.info("Slot unavailable (dialog): %s", task.url)
        elif isinstance(outcome, Inconclusive):
            LOGGER.info("Outcome unclear (%s): %s", outcome.reason, task.url)
        else:
            LOGGER.warning("Page error (%s): %s", outcome.reason, task.url)
