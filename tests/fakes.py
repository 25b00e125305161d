"""Scripted browser and notifier fakes shared by the tests."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from slotscope.core.config import ProbeConfig

FAST_PROBE = ProbeConfig(
    retry_delay=0,
    panel_settle_delay=0,
    observe_delay=0,
    confirm_delay=0,
    task_delay=0,
)

REDIRECT_URL = "https://www.dpsnnn.com/shop_payment/?order_code=1"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDialog:
    def __init__(self, message: str) -> None:
        self._message = message
        self.dismissed = False

    @property
    def message(self) -> str:
        return self._message

    async def dismiss(self) -> None:
        self.dismissed = True


class FakeElement:
    def __init__(self, text: Optional[str], on_click: Optional[Callable] = None) -> None:
        self.text = text
        self.clicks = 0
        self._on_click = on_click

    async def text_content(self) -> Optional[str]:
        return self.text

    async def click(self) -> None:
        self.clicks += 1
        if self._on_click is not None:
            await self._on_click()


class FakePage:
    """A booking page whose widget behaviour is scripted per test.

    ``entry_ready_on_load``: the reserve anchor exists once the page has been
    loaded this many times (goto counts as the first load).
    ``non_member_ready_on_query``: the non-member button shows up on this
    lookup of the ``a, button`` selector.
    ``result``: what clicking the non-member button does, one of
    ``"redirect"``, ``"dialog"``, ``"dialog_then_redirect"``,
    ``"late_dialog"`` (redirect now, dialog after ``late_dialog_after``
    seconds) or ``"nothing"``.
    ``entry_dialog``: message of a dialog raised by the reserve click.
    """

    def __init__(
        self,
        *,
        result: str = "redirect",
        entry_ready_on_load: Optional[int] = 1,
        non_member_ready_on_query: Optional[int] = 1,
        detail_text: Optional[str] = "  Room A  ",
        goto_error: Optional[Exception] = None,
        goto_hang: float = 0.0,
        dialog_message: str = "예약이 마감되었습니다.",
        entry_dialog: Optional[str] = None,
        late_dialog_after: float = 0.0,
    ) -> None:
        self.result = result
        self.entry_ready_on_load = entry_ready_on_load
        self.non_member_ready_on_query = non_member_ready_on_query
        self.detail_text = detail_text
        self.goto_error = goto_error
        self.goto_hang = goto_hang
        self.dialog_message = dialog_message
        self.entry_dialog = entry_dialog
        self.late_dialog_after = late_dialog_after

        self.url = "about:blank"
        self.loads = 0
        self.reloads = 0
        self.closed = False
        self.entry_clicked = False
        self.dialogs: list[FakeDialog] = []
        self.queries: list[str] = []
        self._non_member_queries = 0
        self._dialog_handler = None
        self._late: list[asyncio.Task] = []

    async def goto(self, url: str, wait_until: str, timeout: float) -> None:
        if self.goto_hang:
            await asyncio.sleep(self.goto_hang)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        self.loads = 1

    async def reload(self, wait_until: str, timeout: float) -> None:
        self.loads += 1
        self.reloads += 1

    def current_url(self) -> str:
        return self.url

    async def query_selector_all(self, selector: str) -> list[FakeElement]:
        self.queries.append(selector)
        if selector == "a":
            anchors = [FakeElement("홈"), FakeElement(None)]
            if self.entry_ready_on_load is not None and self.loads >= self.entry_ready_on_load:
                anchors.append(FakeElement(" 예약하기 ", on_click=self._click_entry))
            return anchors
        if selector == "a, button":
            self._non_member_queries += 1
            controls = [FakeElement("회원 예약"), FakeElement("비회원 조회")]
            ready = self.non_member_ready_on_query
            if ready is not None and self._non_member_queries >= ready:
                controls.append(FakeElement("비회원 예약", on_click=self._click_non_member))
            return controls
        if selector == ".booking_content_detail > div":
            if self.entry_clicked and self.detail_text is not None:
                return [FakeElement(self.detail_text)]
            return []
        return []

    def on_dialog(self, handler) -> None:
        self._dialog_handler = handler

    async def content(self) -> str:
        return "<html><body>loading...</body></html>"

    async def close(self) -> None:
        self.closed = True

    async def _raise_dialog(self, message: str) -> None:
        dialog = FakeDialog(message)
        self.dialogs.append(dialog)
        await self._dialog_handler(dialog)

    async def _late_dialog(self) -> None:
        await asyncio.sleep(self.late_dialog_after)
        await self._raise_dialog(self.dialog_message)

    async def _click_entry(self) -> None:
        self.entry_clicked = True
        if self.entry_dialog is not None:
            await self._raise_dialog(self.entry_dialog)

    async def _click_non_member(self) -> None:
        if self.result in ("dialog", "dialog_then_redirect"):
            await self._raise_dialog(self.dialog_message)
        if self.result in ("redirect", "dialog_then_redirect", "late_dialog"):
            self.url = REDIRECT_URL
        if self.result == "late_dialog":
            self._late.append(asyncio.ensure_future(self._late_dialog()))


class FakeSession:
    def __init__(self, page_factory: Optional[Callable[[], FakePage]] = None) -> None:
        self._page_factory = page_factory or FakePage
        self.pages: list[FakePage] = []
        self.closed = False
        self.new_page_error: Optional[Exception] = None

    async def new_page(self) -> FakePage:
        if self.new_page_error is not None:
            raise self.new_page_error
        page = self._page_factory()
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeLauncher:
    """Launches FakeSessions; fails for the first ``failures`` launches."""

    def __init__(self, page_factory: Optional[Callable[[], FakePage]] = None, failures: int = 0) -> None:
        self._page_factory = page_factory
        self._failures = failures
        self.launches = 0
        self.sessions: list[FakeSession] = []

    async def launch(self) -> FakeSession:
        self.launches += 1
        if self.launches <= self._failures:
            raise RuntimeError("browser failed to start")
        session = FakeSession(self._page_factory)
        self.sessions.append(session)
        return session


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[tuple[str, ...], str, str, str]] = []
        self.fail = False

    async def send(self, recipients, subject: str, body_url: str, body_label: str) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((tuple(recipients), subject, body_url, body_label))
