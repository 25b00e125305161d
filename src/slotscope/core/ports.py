"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for browser and notification adapters so
that the core can be reused with different backends and driven by scripted
fakes in tests.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol, Sequence


class NotificationError(RuntimeError):
    """Raised by notifier adapters when a message could not be delivered."""


class DialogPort(Protocol):
    """A native browser dialog (alert, confirm, prompt)."""

    @property
    def message(self) -> str:
        ...

    async def dismiss(self) -> None:
        ...


DialogHandler = Callable[[DialogPort], Awaitable[None]]


class ElementPort(Protocol):
    async def text_content(self) -> Optional[str]:
        ...

    async def click(self) -> None:
        ...


class PagePort(Protocol):
    """Browser page operations required by the prober."""

    async def goto(self, url: str, wait_until: str, timeout: float) -> None:
        ...

    async def reload(self, wait_until: str, timeout: float) -> None:
        ...

    def current_url(self) -> str:
        ...

    async def query_selector_all(self, selector: str) -> Sequence[ElementPort]:
        ...

    def on_dialog(self, handler: DialogHandler) -> None:
        ...

    async def content(self) -> str:
        ...

    async def close(self) -> None:
        ...


class BrowserSessionPort(Protocol):
    """One running browser engine, shared by every task of a cycle."""

    async def new_page(self) -> PagePort:
        ...

    async def close(self) -> None:
        ...


class BrowserLauncherPort(Protocol):
    async def launch(self) -> BrowserSessionPort:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def send(
        self,
        recipients: Sequence[str],
        subject: str,
        body_url: str,
        body_label: str,
    ) -> None:
        ...
