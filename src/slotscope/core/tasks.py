"""Search space generation: targets x rolling date window."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from slotscope.core.models import SearchTarget, SearchTask

DEFAULT_WINDOW_DAYS = 7
DATE_PARAM_FORMAT = "%Y%m%d"


def parse_csv(raw: Optional[str]) -> List[str]:
    """Split a comma-separated value, trimming items and dropping blanks."""

    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_targets(raw: Optional[str]) -> List[SearchTarget]:
    return [SearchTarget(identifier=item) for item in parse_csv(raw)]


def today_in(timezone_name: str) -> dt.date:
    """Return the current calendar date in the given IANA zone."""

    return dt.datetime.now(ZoneInfo(timezone_name)).date()


def rolling_window(start: dt.date, days: int = DEFAULT_WINDOW_DAYS) -> List[dt.date]:
    """Return ``days`` consecutive dates beginning with ``start``."""

    return [start + dt.timedelta(days=offset) for offset in range(days)]


def build_search_url(base_url: str, identifier: str, day: dt.date) -> str:
    """Return the booking page URL for one resource on one day."""

    stamp = day.strftime(DATE_PARAM_FORMAT)
    return f"{base_url}?idx={identifier}&day={stamp}&endDay={stamp}"


def generate_tasks(
    targets: Iterable[SearchTarget],
    today: dt.date,
    base_url: str,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> List[SearchTask]:
    """Expand targets over the rolling window, ordered by target then date."""

    window = rolling_window(today, window_days)
    return [
        SearchTask(
            identifier=target.identifier,
            date=day,
            url=build_search_url(base_url, target.identifier, day),
        )
        for target in targets
        for day in window
    ]
