from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .matches import MatchRecord, type_label
from .state import rank_players

BOARD_TITLE = "📌 <b>MCSR PB Board (auto-updating)</b>"
TRUNCATION_MARKER = "…(truncated)"


def _escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def format_time(ms: int) -> str:
    """Render milliseconds as ``m:ss.mmm``."""
    minutes, rest = divmod(int(ms), 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes}:{seconds:02d}.{millis:03d}"


def medal(n: int) -> str:
    if n == 1:
        return "🥇"
    elif n == 2:
        return "🥈"
    elif n == 3:
        return "🥉"
    else:
        return f"{n:>2}."


def fmt_placement(place: int, player: str, match_type: int) -> Optional[str]:
    name = _escape_html(player)
    label = type_label(match_type)
    if place == 1:
        return f"👑 <b>{name} TAKES #1 ({label})!!</b> 👑"
    if place == 2:
        return f"🥈 <b>{name} moves into #2 ({label})!</b>"
    if place == 3:
        return f"🥉 <b>{name} breaks into #3 ({label})!</b>"
    return None


def fmt_new_pb(player: str, match_type: int, new_ms: int, previous_ms: int) -> str:
    return (
        f"🔥 <b>NEW PB ({type_label(match_type)})!</b> <b>{_escape_html(player)}</b>\n"
        f"✅ <b>{format_time(new_ms)}</b> (previous: {format_time(previous_ms)})"
    )


def opponent_names(match: MatchRecord, player_uuid: str, bot_name: Optional[str]) -> str:
    opponents = [
        p.nickname
        for p in match.players
        if p.uuid and p.uuid != player_uuid and p.nickname and p.nickname != bot_name
    ]
    if opponents:
        return " & ".join(opponents)
    # Only the bot (or nobody nameable) was across the table
    if bot_name and any(p.nickname == bot_name for p in match.players):
        return bot_name
    return "Unknown"


def elo_for_player(match: MatchRecord, player_uuid: str) -> Optional[int]:
    for change in match.changes:
        if change.uuid == player_uuid and change.elo_rate is not None:
            return change.elo_rate
    for participant in match.players:
        if participant.uuid == player_uuid and participant.elo_rate is not None:
            return participant.elo_rate
    return None


def fmt_generic_result(player: str, match: MatchRecord) -> str:
    """Announcement for players whose UUID is unknown: no winner or opponent info."""
    name = _escape_html(player)
    label = type_label(match.type)
    if match.forfeited or match.time is None:
        return f"⚠️ <b>{name}</b> finished a <b>{label}</b> match — no completion time (DNF/forfeit)."
    return f"⚠️ <b>{name}</b> finished in <b>{format_time(match.time)}</b> ({label})"


def fmt_match_result(player: str, player_uuid: Optional[str], match: MatchRecord, bot_name: Optional[str] = None) -> str:
    if not player_uuid:
        return fmt_generic_result(player, match)

    name = _escape_html(player)
    label = type_label(match.type)
    opponent = _escape_html(opponent_names(match, player_uuid, bot_name))
    elo = elo_for_player(match, player_uuid)
    elo_text = f" • <b>ELO:</b> {elo}" if elo is not None else ""
    won = match.winner_uuid is not None and match.winner_uuid == player_uuid
    lost = match.winner_uuid is not None and match.winner_uuid != player_uuid

    if match.forfeited or match.time is None:
        if won:
            return f"✅ <b>{name}</b> beat <b>{opponent}</b> — no completion time (forfeit/DNF). ({label}){elo_text}"
        if lost:
            return f"❌ <b>{name}</b> lost to <b>{opponent}</b> — no completion time (forfeit/DNF). ({label}){elo_text}"
        return f"⚠️ <b>{name}</b> finished a <b>{label}</b> match — no completion time (DNF/forfeit).{elo_text}"

    time_text = format_time(match.time)
    if won:
        return f"✅ <b>{name}</b> beat <b>{opponent}</b> in <b>{time_text}</b> ({label}){elo_text}"
    if lost:
        return f"❌ <b>{name}</b> lost to <b>{opponent}</b> in <b>{time_text}</b> ({label}){elo_text}"
    return f"⚠️ <b>{name}</b> finished in <b>{time_text}</b> ({label}){elo_text}"


def _board_section(match_type: int, pbs: Dict[str, int], roster: Sequence[str]) -> List[str]:
    lines = [f"<b>{type_label(match_type)} PBs</b>"]
    roster_set = set(roster)
    rows = [(name, ms) for name, ms in rank_players(pbs) if name in roster_set]
    if not rows:
        lines.append("<i>No completions yet.</i>")
    for i, (name, ms) in enumerate(rows, 1):
        lines.append(f"{medal(i)} <b>{_escape_html(name)}</b> — {format_time(ms)}")
    lines.append("")
    return lines


def truncate_lines(lines: List[str], max_chars: int) -> str:
    """Join lines, dropping whole lines from the end so HTML tags stay balanced."""
    content = "\n".join(lines)
    if len(content) <= max_chars:
        return content
    budget = max_chars - len(TRUNCATION_MARKER) - 1
    kept: List[str] = []
    used = 0
    for line in lines:
        cost = len(line) + (1 if kept else 0)
        if used + cost > budget:
            break
        kept.append(line)
        used += cost
    return "\n".join(kept + [TRUNCATION_MARKER])


def fmt_board(
    pb_by_type: Dict[int, Dict[str, int]],
    roster: Sequence[str],
    max_chars: int,
    now: Optional[datetime] = None,
) -> str:
    current_time = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [BOARD_TITLE, f"🕒 <i>Updated at {current_time}</i>", ""]
    for match_type, pbs in pb_by_type.items():
        lines.extend(_board_section(match_type, pbs, roster))
    return truncate_lines(lines, max_chars)


def fmt_player_pbs(player: str, rows: List[Tuple[int, Optional[int], Optional[int]]]) -> str:
    """Rows are ``(match_type, time_ms, placement)``; time is None when unknown."""
    lines = [f"🏃 <b>{_escape_html(player)}</b>"]
    for match_type, ms, place in rows:
        if ms is None:
            lines.append(f"• {type_label(match_type)}: <i>no completions yet</i>")
        else:
            if place and place <= 3:
                rank = f" {medal(place)}"
            elif place:
                rank = f" #{place}"
            else:
                rank = ""
            lines.append(f"• {type_label(match_type)}: <code>{format_time(ms)}</code>{rank}")
    return "\n".join(lines)
