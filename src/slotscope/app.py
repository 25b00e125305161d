"""Application entry point for the slotscope watcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

from slotscope.adapters.email_notifier import LogNotifier, SmtpEmailNotifier
from slotscope.adapters.playwright_browser import PlaywrightLauncher
from slotscope.core.cycle import CycleDriver
from slotscope.core.dedup import NotificationDedupCache
from slotscope.core.ports import NotifierPort
from slotscope.core.prober import ReservationProber
from slotscope.core.scheduler import BatchScheduler
from slotscope.settings import LoggingConfig, Settings, load_settings

NAME = "SLOTSCOPE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = sorted((secret for secret in secrets if secret), key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(config: LoggingConfig) -> None:
    level = getattr(logging, config.level, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(list(config.redact), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if config.file_path:
        path = config.file_path
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)


def build_notifier(settings: Settings) -> NotifierPort:
    """Select the notification adapter for the current mode."""

    if settings.development:
        return LogNotifier()
    return SmtpEmailNotifier(
        host=settings.smtp.host,
        port=settings.smtp.port,
        username=settings.smtp.username,
        password=settings.smtp.password,
        sender_name=settings.smtp.sender_name,
    )


def build_driver(settings: Settings) -> CycleDriver:
    """Wire the core components with their production adapters."""

    dedup = NotificationDedupCache(cooldown_seconds=settings.dedup.cooldown_seconds)
    prober = ReservationProber(
        notifier=build_notifier(settings),
        dedup=dedup,
        notification=settings.notification,
        config=settings.probe,
    )
    return CycleDriver(
        targets=settings.targets,
        launcher=PlaywrightLauncher(headless=settings.headless),
        prober=prober,
        scheduler=BatchScheduler(settings.schedule.concurrency),
        dedup=dedup,
        schedule=settings.schedule,
    )


async def _serve(driver: CycleDriver, max_cycles: Optional[int]) -> None:
    logger = logging.getLogger(__name__)
    stop_event = asyncio.Event()

    def _request_stop() -> None:
        logger.info("Received shutdown signal. Finishing the current batch...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _request_stop)
        except NotImplementedError:
            # Windows event loops lack signal handlers; Ctrl+C still interrupts.
            pass

    await driver.run_forever(stop_event, max_cycles=max_cycles)


def _run(max_cycles: Optional[int] = None) -> None:
    _print_banner()
    settings = load_settings()
    _configure_logging(settings.logging)
    logger = logging.getLogger(__name__)

    logger.info("Starting slotscope in %s mode", "development" if settings.development else "production")
    if settings.development:
        logger.info("Development mode uses default targets and only logs mails instead of sending them")
    logger.info(
        "%s targets loaded, %s recipients configured",
        len(settings.targets),
        len(settings.notification.recipients),
    )
    if max_cycles is None:
        logger.info("Polling forever. Press Ctrl+C to stop.")

    driver = build_driver(settings)
    asyncio.run(_serve(driver, max_cycles))
    logger.info("slotscope stopped")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="slotscope")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Poll the reservation pages until stopped")
    subparsers.add_parser("check", help="Run a single cycle and exit")

    args = parser.parse_args(argv)
    if args.command == "check":
        _run(max_cycles=1)
        return
    _run()


if __name__ == "__main__":
    main()
