"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProbeConfig:
    """Interaction protocol settings for the reservation prober.

    Delays and timeouts are in seconds. The markers match the visible text of
    the booking widget's controls.
    """

    reserve_marker: str = "예약하기"
    non_member_marker: str = "비회원"
    booking_marker: str = "예약"
    entry_selector: str = "a"
    non_member_selector: str = "a, button"
    detail_selector: str = ".booking_content_detail > div"
    max_attempts: int = 5
    retry_delay: float = 0.5
    panel_settle_delay: float = 0.5
    observe_delay: float = 1.0
    confirm_delay: float = 1.0
    task_delay: float = 1.0
    wait_until: str = "networkidle"
    navigation_timeout: float = 30.0
    task_timeout: float = 120.0


@dataclass(frozen=True)
class DedupConfig:
    """Deduplication settings for outgoing notifications."""

    cooldown_seconds: float = 30 * 60


@dataclass(frozen=True)
class ScheduleConfig:
    """Search space and scheduling settings for each cycle."""

    base_url: str = "https://www.dpsnnn.com/reserve_g"
    window_days: int = 7
    timezone: str = "Asia/Seoul"
    concurrency: int = 7
    idle_backoff: float = 5.0


@dataclass(frozen=True)
class NotificationConfig:
    """Recipient and subject settings consumed by the notification path."""

    recipients: tuple[str, ...]
    subject_prefix: str = "단편선"
