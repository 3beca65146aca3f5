"""Typed view over MCSR Ranked match payloads.

Every field is parsed explicitly: a value is either present and well-typed or
``None``. Nothing is coerced, so a string time or a boolean id never turns
into a plausible-looking number.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional


class MatchType(IntEnum):
    CASUAL = 1
    RANKED = 2
    PRIVATE = 3
    EVENT = 4


@dataclass(frozen=True)
class Participant:
    uuid: Optional[str]
    nickname: Optional[str]
    elo_rate: Optional[int] = None


@dataclass(frozen=True)
class RatingChange:
    uuid: Optional[str]
    change: Optional[int] = None
    elo_rate: Optional[int] = None


@dataclass(frozen=True)
class MatchRecord:
    id: str
    type: Optional[int] = None
    time: Optional[int] = None
    forfeited: bool = False
    winner_uuid: Optional[str] = None
    players: List[Participant] = field(default_factory=list)
    changes: List[RatingChange] = field(default_factory=list)


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass; it is never a valid number here
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _as_id(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    as_int = _as_int(value)
    if as_int is not None:
        return str(as_int)
    return None


def _parse_participant(raw: Any) -> Optional[Participant]:
    if not isinstance(raw, dict):
        return None
    return Participant(
        uuid=_as_str(raw.get("uuid")),
        nickname=_as_str(raw.get("nickname")),
        elo_rate=_as_int(raw.get("eloRate")),
    )


def _parse_change(raw: Any) -> Optional[RatingChange]:
    if not isinstance(raw, dict):
        return None
    return RatingChange(
        uuid=_as_str(raw.get("uuid")),
        change=_as_int(raw.get("change")),
        elo_rate=_as_int(raw.get("eloRate")),
    )


def parse_match(raw: Any) -> Optional[MatchRecord]:
    """Build a MatchRecord from one API match object, or None if it has no usable id."""
    if not isinstance(raw, dict):
        return None
    match_id = _as_id(raw.get("id"))
    if match_id is None:
        return None

    result = raw.get("result")
    if not isinstance(result, dict):
        result = {}

    players = raw.get("players")
    changes = raw.get("changes")

    return MatchRecord(
        id=match_id,
        type=_as_int(raw.get("type")),
        time=_as_int(result.get("time")),
        forfeited=raw.get("forfeited") is True,
        winner_uuid=_as_str(result.get("uuid")),
        players=[p for p in map(_parse_participant, players if isinstance(players, list) else []) if p],
        changes=[c for c in map(_parse_change, changes if isinstance(changes, list) else []) if c],
    )


class MatchPage(list):
    """One page of parsed matches.

    ``cursor`` is the id of the last record the API returned, usable as the
    next ``before=``. It is None when that record had no id, even if earlier
    records parsed fine.
    """

    def __init__(self, matches: Iterable[MatchRecord] = (), cursor: Optional[str] = None):
        super().__init__(matches)
        self.cursor = cursor


def parse_match_list(payload: Any) -> Optional[MatchPage]:
    """Parse a ``{"data": [...]}`` envelope. Returns None when the envelope itself is malformed."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, list):
        return None
    matches: List[MatchRecord] = []
    for raw in data:
        match = parse_match(raw)
        if match is not None:
            matches.append(match)
    last = data[-1] if data else None
    cursor = _as_id(last.get("id")) if isinstance(last, dict) else None
    return MatchPage(matches, cursor)


def type_label(match_type: Optional[int]) -> str:
    labels: Dict[int, str] = {
        MatchType.CASUAL: "Casual",
        MatchType.RANKED: "Ranked",
        MatchType.PRIVATE: "Private",
        MatchType.EVENT: "Event",
    }
    if match_type is None:
        return "Match"
    return labels.get(match_type, "Match")
