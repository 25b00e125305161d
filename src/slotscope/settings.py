"""Environment configuration for slotscope.

Everything is read from environment variables; python-dotenv loads a local
``.env`` first so secrets stay out of the repo. Development mode supplies
defaults and routes notifications to the log instead of SMTP.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from slotscope.core.config import DedupConfig, NotificationConfig, ProbeConfig, ScheduleConfig
from slotscope.core.models import SearchTarget
from slotscope.core.tasks import parse_csv, parse_targets

# Targets watched when running in development mode without G_SEARCH_LIST.
DEV_SEARCH_LIST = "25,5,6,7,8,9,10,11,12,36,35,34,33,32,31,30,29,28"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    console: bool = True
    file_path: Optional[str] = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    redact: tuple[str, ...] = ()


@dataclass(frozen=True)
class SmtpConfig:
    host: str = "smtp.gmail.com"
    port: int = 465
    username: str = ""
    password: str = ""
    sender_name: str = "slotscope"


@dataclass(frozen=True)
class Settings:
    """Validated process configuration."""

    development: bool
    targets: List[SearchTarget]
    smtp: SmtpConfig
    notification: NotificationConfig
    headless: bool = True
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _get(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _get(env, name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Passing ``environ`` skips ``.env`` loading, which keeps tests hermetic.
    Raises RuntimeError when production mode lacks mail credentials.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ
    env = environ

    development = (_get(env, "APP_ENV", "production") or "").lower() == "development"

    username = _get(env, "SENDER_GMAIL_USER", "") or ""
    password = _get(env, "SENDER_GMAIL_PASSWORD", "") or ""
    recipients = parse_csv(_get(env, "TARGET_GMAIL_USER"))

    # Fail fast on missing credentials outside development mode.
    if not development and (not username or not password or not recipients):
        raise RuntimeError("SENDER_GMAIL_USER, SENDER_GMAIL_PASSWORD, TARGET_GMAIL_USER must be set")

    search_list = _get(env, "G_SEARCH_LIST", DEV_SEARCH_LIST if development else None)
    targets = parse_targets(search_list)

    defaults = ScheduleConfig()
    schedule = ScheduleConfig(
        base_url=_get(env, "BASE_URL", defaults.base_url) or defaults.base_url,
        window_days=_get_int(env, "WINDOW_DAYS", defaults.window_days),
        timezone=_get(env, "TIMEZONE", defaults.timezone) or defaults.timezone,
        concurrency=_get_int(env, "CONCURRENT_LIMIT", defaults.concurrency),
    )
    if schedule.concurrency < 1:
        raise ValueError("CONCURRENT_LIMIT must be at least 1")
    if schedule.window_days < 1:
        raise ValueError("WINDOW_DAYS must be at least 1")

    dedup = DedupConfig(cooldown_seconds=_get_int(env, "EMAIL_COOLDOWN_MINUTES", 30) * 60)
    probe = ProbeConfig(task_timeout=float(_get_int(env, "TASK_TIMEOUT_SECONDS", 120)))

    smtp = SmtpConfig(
        host=_get(env, "SMTP_HOST", "smtp.gmail.com") or "smtp.gmail.com",
        port=_get_int(env, "SMTP_PORT", 465),
        username=username,
        password=password,
        sender_name=_get(env, "SENDER_NAME", "slotscope") or "slotscope",
    )
    notification = NotificationConfig(
        recipients=tuple(recipients),
        subject_prefix=_get(env, "SUBJECT_PREFIX", "단편선") or "단편선",
    )

    logging_config = LoggingConfig(
        level=(_get(env, "LOG_LEVEL", "INFO") or "INFO").upper(),
        file_path=_get(env, "LOG_FILE"),
        max_bytes=_get_int(env, "LOG_MAX_BYTES", 5 * 1024 * 1024),
        backup_count=_get_int(env, "LOG_BACKUP_COUNT", 5),
        redact=tuple(secret for secret in (password,) if secret),
    )

    return Settings(
        development=development,
        targets=targets,
        smtp=smtp,
        notification=notification,
        headless=_get_bool(env, "HEADLESS", True),
        probe=probe,
        dedup=dedup,
        schedule=schedule,
        logging=logging_config,
    )
