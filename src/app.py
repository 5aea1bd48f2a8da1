"""Application entry point for the anime-herald notifier."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import aiohttp
from art import tprint
from dotenv import load_dotenv

import settings
from adapters.anilist_source import AniListAnnouncementSource
from adapters.cycle_lock import FileCycleLock
from adapters.discord_notifier import DiscordNotifier
from adapters.http_transport import AiohttpTransport
from adapters.reddit_source import discussion_source, dub_source
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.context import BotContext
from core.dedup import DedupLedger
from core.dispatcher import Dispatcher
from core.errors import CycleAlreadyRunning
from core.models import CycleReport
from core.ports import NotifierPort, SourcePort
from core.processor import CycleProcessor
from core.rules_engine import Classifier
from core.scheduler import Scheduler
from core.watchlist import CATEGORIES, Watchlist

NAME = "HERALD"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", ["DISCORD_TOKEN", "BOT_API"]):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: dict) -> None:
    config = config or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/herald.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_context(config: settings.Settings, storage: SQLiteStorage) -> BotContext:
    stored = storage.load_ledger() if config.ledger.persist else []
    return BotContext(
        target=config.target,
        ledger=DedupLedger(config.ledger.capacity, stored),
        watchlist=Watchlist(storage.load_watchlist()),
    )


def _build_notifier(config: settings.Settings, session: aiohttp.ClientSession) -> NotifierPort:
    # Select the notification adapter based on configuration to keep the core
    # dispatcher independent from delivery details.
    if config.notification_method == "telegram_bot":
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notifications.method=telegram_bot")
        return TelegramBotNotifier(session, bot_token)

    bot_token = os.getenv("DISCORD_TOKEN")
    if not bot_token:
        raise RuntimeError("DISCORD_TOKEN is required when notifications.method=discord")
    return DiscordNotifier(session, bot_token)


def _build_sources(config: settings.Settings, transport: AiohttpTransport) -> List[SourcePort]:
    """Sources in the order their candidates are processed."""

    sources_cfg = config.sources
    sources: List[SourcePort] = []
    if sources_cfg.announcements_enabled:
        sources.append(
            AniListAnnouncementSource(
                transport,
                per_page=sources_cfg.announcements_per_page,
                media_type=sources_cfg.announcements_media_type,
            )
        )
    if sources_cfg.discussion_enabled:
        sources.append(discussion_source(transport, sources_cfg.discussion_subreddit, sources_cfg.discussion_limit))
    if sources_cfg.dubs_enabled:
        sources.append(dub_source(transport, sources_cfg.dub_subreddits, sources_cfg.dub_limit))
    return sources


def _build_scheduler(
    config: settings.Settings,
    context: BotContext,
    session: aiohttp.ClientSession,
    storage: SQLiteStorage,
) -> Scheduler:
    transport = AiohttpTransport(session, timeout=config.polling.fetch_timeout_seconds)
    processor = CycleProcessor(
        context=context,
        sources=_build_sources(config, transport),
        classifier=Classifier.from_config(config.classifier),
        dispatcher=Dispatcher(_build_notifier(config, session), context.watchlist),
        fetch_timeout=config.polling.fetch_timeout_seconds,
        ledger_store=storage if config.ledger.persist else None,
        watchlist_store=storage,
        cycle_lock=FileCycleLock(f"{config.db_path}.lock"),
    )
    return Scheduler(processor, interval_seconds=config.polling.interval_seconds)


def _startup() -> tuple[settings.Settings, SQLiteStorage]:
    load_dotenv()
    config = settings.load_settings()
    _configure_logging(config.logging)

    storage = SQLiteStorage(config.db_path)
    storage.init_db()
    return config, storage


def _run() -> None:
    _print_banner()
    config, storage = _startup()
    logger = logging.getLogger(__name__)
    logger.info("Starting anime-herald")

    context = _build_context(config, storage)
    logger.info("Ledger loaded with %s identities", len(context.ledger))
    if not context.target.channel_id:
        logger.warning("No news channel configured; cycles will be skipped until notifications.channel_id is set")

    async def _serve() -> None:
        async with aiohttp.ClientSession() as session:
            scheduler = _build_scheduler(config, context, session, storage)
            logger.info("Selected notification method - %s", config.notification_method)
            await scheduler.run_forever()

    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Stopped")


def _format_report(report: CycleReport) -> str:
    if report.skipped_reason == "channel_not_configured":
        return "News channel is not configured. Set notifications.channel_id in config.json."
    if report.skipped_reason == "cycle_failed":
        return "Verification failed; see the log for details."
    lines = [f"Verification complete. New notifications posted: {report.sent}"]
    if report.failed:
        lines.append(f"Failed deliveries (retried next cycle): {report.failed}")
    if report.failed_sources:
        lines.append(f"Unavailable sources: {', '.join(report.failed_sources)}")
    return "\n".join(lines)


def _check() -> None:
    """Forced verification: one cycle, then exit."""

    config, storage = _startup()
    context = _build_context(config, storage)

    async def _run_once() -> CycleReport:
        async with aiohttp.ClientSession() as session:
            scheduler = _build_scheduler(config, context, session, storage)
            return await scheduler.force_verification()

    try:
        report = asyncio.run(_run_once())
    except CycleAlreadyRunning:
        print("A verification cycle is already running. Try again once it finishes.")
        return
    print(_format_report(report))


def _status() -> None:
    config, storage = _startup()
    context = _build_context(config, storage)
    target = context.target
    counts = context.watchlist.counts()
    print(f"Channel: {target.channel_id or 'not configured'}")
    print(f"Mention role: {target.mention_role_id or 'not configured'}")
    print(f"Opted-in users: {len(target.opted_in_user_ids)}")
    print(f"Notification method: {config.notification_method}")
    print(f"Ledger: {len(context.ledger)}/{context.ledger.capacity}")
    for category in CATEGORIES:
        print(f"Followed {category}: {counts.get(category, 0)}")


def _watch_add(category: str, name: str) -> None:
    _, storage = _startup()
    watchlist = Watchlist(storage.load_watchlist())
    if not watchlist.add(category, name):
        print(f'"{name}" is already in the {category} list.')
        return
    storage.add_watchlist_entry(category, name.strip())
    print(f'Added "{name.strip()}" to {category}. Total: {len(watchlist.series(category))}')


def _watch_list() -> None:
    _, storage = _startup()
    watchlist = Watchlist(storage.load_watchlist())
    for category in CATEGORIES:
        names = watchlist.series(category)
        print(f"{category} ({len(names)}):")
        for name in names[:20]:
            print(f"  {name}")
        if not names:
            print("  none")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="herald")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start polling and posting news")
    subparsers.add_parser("check", help="Run one verification cycle now and exit")
    subparsers.add_parser("status", help="Show the destination, ledger and watchlist state")

    watch = subparsers.add_parser("watch", help="Manage followed series")
    watch_sub = watch.add_subparsers(dest="watch_command", required=True)
    watch_add = watch_sub.add_parser("add", help="Follow a series")
    watch_add.add_argument("category", choices=CATEGORIES)
    watch_add.add_argument("name")
    watch_sub.add_parser("list", help="List followed series")

    args = parser.parse_args(argv)
    if args.command == "check":
        _check()
        return
    if args.command == "status":
        _status()
        return
    if args.command == "watch":
        if args.watch_command == "add":
            _watch_add(args.category, args.name)
        else:
            _watch_list()
        return
    _run()


if __name__ == "__main__":
    main()
