from __future__ import annotations

from typing import Optional

from .matches import MatchRecord


def is_countable_win(match: MatchRecord, player_uuid: Optional[str]) -> bool:
    """True when the match is a completed, non-forfeited win by this exact player.

    The per-user match listing also contains matches the player only took part
    in, so the winner check keeps an opponent's time from being credited.
    """
    if match.time is None or match.time <= 0:
        return False
    if match.forfeited:
        return False
    if not match.winner_uuid or not player_uuid:
        return False
    return match.winner_uuid == player_uuid
