"""Shared fakes for the MCSR PB Bot test suite."""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from mcsrbot.api import SortOrder
from mcsrbot.matches import MatchPage, MatchRecord, Participant, RatingChange
from mcsrbot.storage import StateStore

UUID_A = "uuid-alice"
UUID_B = "uuid-bob"
UUID_C = "uuid-carol"


def make_match(
    match_id,
    time: Optional[int] = 600_000,
    winner: Optional[str] = UUID_A,
    forfeited: bool = False,
    match_type: int = 2,
    players: Optional[List[Participant]] = None,
    changes: Optional[List[RatingChange]] = None,
) -> MatchRecord:
    return MatchRecord(
        id=str(match_id),
        type=match_type,
        time=time,
        forfeited=forfeited,
        winner_uuid=winner,
        players=players if players is not None else [
            Participant(UUID_A, "Alice", 1450),
            Participant(UUID_B, "Bob", 1400),
        ],
        changes=changes or [],
    )


class FakeSource:
    """In-memory MatchSource.

    ``pages[(player, type, sort)]`` is a list of pages served in order; a
    page can be an Exception instance to simulate a failing request. Plain
    lists get the last match id as cursor; pass a MatchPage to set it.
    """

    def __init__(self):
        self.pages: Dict[Tuple[str, Optional[int], SortOrder], List] = {}
        self.latest: Dict[str, List] = {}
        self.calls: List[dict] = []

    async def list_matches(self, name, match_type=None, count=100, sort=SortOrder.NEWEST, before=None):
        self.calls.append({"name": name, "type": match_type, "count": count, "sort": sort, "before": before})
        key = (name, match_type, sort)
        served = sum(1 for c in self.calls if (c["name"], c["type"], c["sort"]) == key) - 1
        pages = self.pages.get(key, [])
        if served >= len(pages):
            return MatchPage()
        page = pages[served]
        if isinstance(page, Exception):
            raise page
        if isinstance(page, MatchPage):
            return MatchPage(page, page.cursor)
        return MatchPage(page, page[-1].id if page else None)

    async def get_latest_match(self, name):
        queue = self.latest.get(name) or []
        if not queue:
            return None
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            return None
        return item


class FakeResolver:
    """Returns scripted bests per (player, type); None means unresolved."""

    def __init__(self, bests: Optional[Dict[Tuple[str, int], Optional[int]]] = None):
        self.bests = dict(bests or {})

    async def resolve_best(self, player, match_type):
        return self.bests.get((player, match_type))


class FakeSink:
    def __init__(self):
        self.sent: List[str] = []
        self.edits: List[Tuple[int, str]] = []
        self.existing: set = set()
        self._next_id = 100

    async def send(self, text):
        self.sent.append(text)
        self._next_id += 1
        self.existing.add(self._next_id)
        return self._next_id

    async def edit(self, message_id, text):
        if message_id not in self.existing:
            return False
        self.edits.append((message_id, text))
        return True


@pytest.fixture
def store(tmp_path):
    return StateStore(str(tmp_path / "state.json"))


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def identities():
    return {"Alice": UUID_A, "Bob": UUID_B, "Carol": UUID_C}




@pytest.fixture
def break_disk(monkeypatch):
    """Call to make every later state file write fail at the final rename."""

    def refuse(src, dst):
        raise OSError("read-only filesystem")

    def activate():
        monkeypatch.setattr("mcsrbot.storage.os.replace", refuse)

    return activate
