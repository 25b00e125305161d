"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any browser- or mail-specific types.
"""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class SearchTarget:
    """One bookable resource, identified by the page's ``idx`` parameter."""

    identifier: str


@dataclass(frozen=True)
class SearchTask:
    """A single (target, date) pair to probe during one cycle."""

    identifier: str
    date: dt.date
    url: str


class ProbeStatus(enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    INCONCLUSIVE = "inconclusive"
    PAGE_ERROR = "page_error"


@dataclass(frozen=True)
class Available:
    """The non-member path redirected away from the page: a slot is open."""

    booking_name: str

    status = ProbeStatus.AVAILABLE


@dataclass(frozen=True)
class Unavailable:
    """A native dialog rejected the reservation attempt."""

    message: str = ""

    status = ProbeStatus.UNAVAILABLE


@dataclass(frozen=True)
class Inconclusive:
    """The interaction partially succeeded but no outcome was observable."""

    reason: str

    status = ProbeStatus.INCONCLUSIVE


@dataclass(frozen=True)
class PageError:
    """The page or its booking widget could not be reached."""

    reason: str

    status = ProbeStatus.PAGE_ERROR


ProbeOutcome = Union[Available, Unavailable, Inconclusive, PageError]


@dataclass(frozen=True)
class DialogAppeared:
    """A native alert/confirm observed on a probed page."""

    message: str


@dataclass(frozen=True)
class CycleReport:
    """Summary of one completed cycle."""

    cycle_number: int
    task_count: int
    outcome_counts: dict[ProbeStatus, int]

    def count(self, status: ProbeStatus) -> int:
        return self.outcome_counts.get(status, 0)
