from __future__ import annotations

from typing import List, Optional, Tuple

from telegram import Update
from telegram.ext import ContextTypes

from .config import BOARD_MAX_CHARS, PLAYERS, STATE_FILE, TRACK_TYPES
from .formatting import _escape_html, fmt_board, fmt_player_pbs
from .state import placement_of
from .storage import StateStore

# Also used by the poll loops in app.py
store = StateStore(STATE_FILE)


async def start_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        "🤖 <b>MCSR PB Bot</b>\n\n"
        "Tracks personal bests and finished matches for the roster.\n\n"
        "/board - Show the current PB board\n"
        "/pb &lt;player&gt; - Show a player's PBs",
        parse_mode="HTML",
    )


async def board_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    state = store.load()
    pb_by_type = {t: state.pbs_for(t) for t in TRACK_TYPES}
    await update.message.reply_text(fmt_board(pb_by_type, PLAYERS, BOARD_MAX_CHARS), parse_mode="HTML")


def _find_player(name: str) -> Optional[str]:
    wanted = name.lower()
    for player in PLAYERS:
        if player.lower() == wanted:
            return player
    return None


async def pb_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not context.args:
        await update.message.reply_text("Usage: /pb <player>")
        return

    query = context.args[0].strip()
    player = _find_player(query)
    if not player:
        await update.message.reply_text(
            f"❌ <b>{_escape_html(query)}</b> is not on the roster.", parse_mode="HTML"
        )
        return

    state = store.load()
    rows: List[Tuple[int, Optional[int], Optional[int]]] = []
    for match_type in TRACK_TYPES:
        pbs = state.pbs_for(match_type)
        rows.append((match_type, pbs.get(player), placement_of(pbs, player)))
    await update.message.reply_text(fmt_player_pbs(player, rows), parse_mode="HTML")
