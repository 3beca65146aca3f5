from __future__ import annotations

import asyncio
from typing import Dict

from telegram import BotCommand
from telegram.ext import Application, CommandHandler
from telegram.request import HTTPXRequest

from .api import MatchSource, resolve_identities
from .commands import board_cmd, pb_cmd, start_cmd, store
from .config import (
    BASE,
    BOARD_MAX_CHARS,
    CHAT_ID,
    FINISH_POLL_SECS,
    PB_POLL_SECS,
    PLAYERS,
    TRACK_TYPES,
    Config,
    logger,
)
from .notify import TelegramSink
from .reconcile import ReconciliationEngine
from .resolver import BestTimeResolver
from .watchers import MatchWatcher, start_loop

TASKS: Dict[str, asyncio.Task] = {}
STOP_EVENT = asyncio.Event()

PB_LOOP = "pb"
MATCH_LOOP = "matches"


async def start_tracking(application: Application, source: MatchSource) -> None:
    """Resolve identities once and start the PB and new-match loops."""
    identities = await resolve_identities(source, PLAYERS)
    sink = TelegramSink(application.bot, CHAT_ID)

    engine = ReconciliationEngine(
        BestTimeResolver(source, identities),
        store,
        sink,
        PLAYERS,
        TRACK_TYPES,
        board_max_chars=BOARD_MAX_CHARS,
    )
    watcher = MatchWatcher(source, store, sink, PLAYERS, identities)

    start_loop(TASKS, PB_LOOP, PB_POLL_SECS, engine.tick, STOP_EVENT)
    start_loop(TASKS, MATCH_LOOP, FINISH_POLL_SECS, watcher.tick, STOP_EVENT)
    logger.info(f"Tracking {len(PLAYERS)} players across types {TRACK_TYPES} in chat {CHAT_ID}")


def main():
    try:
        Config.validate_config()
    except ValueError as e:
        raise SystemExit(f"❌ {e}. Check your .env file.")

    Config.get_api_base_url()
    source = MatchSource(BASE)

    request = HTTPXRequest(
        connection_pool_size=8,
        connect_timeout=30.0,
        read_timeout=30.0,
        write_timeout=30.0,
        pool_timeout=30.0,
    )

    app = Application.builder().token(Config.BOT_TOKEN).request(request).build()

    commands = [
        BotCommand("start", "Show help and available commands"),
        BotCommand("board", "Show the current PB board"),
        BotCommand("pb", "Show a player's PBs"),
    ]

    async def post_init(application: Application) -> None:
        try:
            logger.info("🔧 Setting up bot commands...")
            await application.bot.set_my_commands(commands)
            logger.info("✅ Bot commands configured successfully")
        except Exception as e:
            logger.error(f"❌ Failed to set bot commands: {e}")
            logger.warning("⚠️ Bot will continue but commands may not be visible in Telegram")

        await start_tracking(application, source)

    async def post_shutdown(application: Application) -> None:
        STOP_EVENT.set()
        # State is only written between awaits, so cancelling mid-tick loses nothing committed
        for task in TASKS.values():
            task.cancel()
        if TASKS:
            await asyncio.gather(*TASKS.values(), return_exceptions=True)
        TASKS.clear()
        await source.close()

    app.post_init = post_init
    app.post_shutdown = post_shutdown

    app.add_handler(CommandHandler("start", start_cmd))
    app.add_handler(CommandHandler("board", board_cmd))
    app.add_handler(CommandHandler("pb", pb_cmd))

    app.run_polling(drop_pending_updates=True)
