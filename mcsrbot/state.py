from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import logger

TOP_N = 3


@dataclass
class PersistedState:
    """Everything the bot keeps between polls.

    ``pb_by_type`` and ``top3_by_type`` are keyed by the match type as a string
    so the JSON file round-trips without key conversion.
    """

    pb_by_type: Dict[str, Dict[str, int]] = field(default_factory=dict)
    last_match_id: Dict[str, str] = field(default_factory=dict)
    top3_by_type: Dict[str, List[str]] = field(default_factory=dict)
    board_message_id: Optional[int] = None

    def pbs_for(self, match_type: int) -> Dict[str, int]:
        return self.pb_by_type.setdefault(str(int(match_type)), {})

    def top3_for(self, match_type: int) -> List[str]:
        return list(self.top3_by_type.get(str(int(match_type)), []))

    def set_top3(self, match_type: int, names: List[str]) -> None:
        self.top3_by_type[str(int(match_type))] = list(names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pbByType": {t: dict(pbs) for t, pbs in self.pb_by_type.items()},
            "boardMessageId": self.board_message_id,
            "lastMatchId": dict(self.last_match_id),
            "top3ByType": {t: list(names) for t, names in self.top3_by_type.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PersistedState":
        if not isinstance(data, dict):
            logger.warning("State payload is not an object; starting empty")
            return cls()

        pb_by_type: Dict[str, Dict[str, int]] = {}
        raw_pbs = data.get("pbByType")
        for type_key, entries in (raw_pbs.items() if isinstance(raw_pbs, dict) else []):
            if not isinstance(entries, dict):
                continue
            clean: Dict[str, int] = {}
            for name, value in entries.items():
                if _is_valid_time(value):
                    clean[name] = value
                else:
                    logger.warning(f"Dropping invalid stored PB for {name} (type {type_key}): {value!r}")
            pb_by_type[str(type_key)] = clean

        last_match_id: Dict[str, str] = {}
        raw_ids = data.get("lastMatchId")
        for name, match_id in (raw_ids.items() if isinstance(raw_ids, dict) else []):
            if isinstance(match_id, str) and match_id:
                last_match_id[name] = match_id
            else:
                logger.warning(f"Dropping invalid stored match id for {name}: {match_id!r}")

        top3_by_type: Dict[str, List[str]] = {}
        raw_top3 = data.get("top3ByType")
        for type_key, names in (raw_top3.items() if isinstance(raw_top3, dict) else []):
            if isinstance(names, list):
                top3_by_type[str(type_key)] = [n for n in names if isinstance(n, str)]

        board_message_id = data.get("boardMessageId")
        if isinstance(board_message_id, bool) or not isinstance(board_message_id, int):
            board_message_id = None

        return cls(
            pb_by_type=pb_by_type,
            last_match_id=last_match_id,
            top3_by_type=top3_by_type,
            board_message_id=board_message_id,
        )


def _is_valid_time(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def rank_players(pbs: Dict[str, int]) -> List[Tuple[str, int]]:
    """Players sorted by ascending time; equal times keep mapping order."""
    rows = [(name, ms) for name, ms in pbs.items() if _is_valid_time(ms)]
    return sorted(rows, key=lambda row: row[1])


def compute_top3(pbs: Dict[str, int]) -> List[str]:
    return [name for name, _ in rank_players(pbs)[:TOP_N]]


def placement_of(pbs: Dict[str, int], player: str) -> Optional[int]:
    """1-based rank of ``player`` or None when they have no time."""
    for index, (name, _) in enumerate(rank_players(pbs), 1):
        if name == player:
            return index
    return None
