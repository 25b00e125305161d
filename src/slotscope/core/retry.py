"""Bounded retry combinator shared by the prober's lookup steps."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


async def retry(
    attempts: int,
    delay: float,
    action: Callable[[int], Awaitable[Optional[T]]],
    between: Optional[Callable[[int], Awaitable[None]]] = None,
) -> Optional[T]:
    """Run ``action`` until it yields a value, at most ``attempts`` times.

    ``action`` receives the 1-based attempt number and returns ``None`` to ask
    for another try. Between two attempts ``between`` (if given) is awaited,
    followed by a fixed ``delay``. Returns ``None`` once attempts run out.
    """

    for attempt in range(1, attempts + 1):
        result = await action(attempt)
        if result is not None:
            return result
        if attempt < attempts:
            if between is not None:
                await between(attempt)
            await asyncio.sleep(delay)
    return None
