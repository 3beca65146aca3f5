"""Tests for the JSON state store."""

import json
import os

from mcsrbot.state import PersistedState, compute_top3, placement_of, rank_players
from mcsrbot.storage import StateStore


class TestStateStore:
    def test_missing_file_loads_empty_state(self, tmp_path):
        state = StateStore(str(tmp_path / "nope.json")).load()

        assert state == PersistedState()

    def test_corrupt_file_loads_empty_state(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        assert StateStore(str(path)).load() == PersistedState()

    def test_round_trip_keeps_order(self, store):
        state = PersistedState(board_message_id=77)
        state.pbs_for(2).update({"Bob": 600000, "Alice": 600000})
        state.last_match_id["Alice"] = "123"
        state.set_top3(2, ["Bob", "Alice"])

        store.save(state)
        loaded = store.load()

        assert loaded == state
        assert list(loaded.pbs_for(2)) == ["Bob", "Alice"]

    def test_reads_legacy_state_file_layout(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "pbByType": {"1": {"Alice": 700000}, "2": {"Alice": 620000, "Bob": 0, "Carol": "5", "Dave": True}},
            "boardMessageId": 55,
            "lastMatchId": {"Alice": "991", "Bob": 17},
            "top3ByType": {"2": ["Alice"]},
        }), encoding="utf-8")

        state = StateStore(str(path)).load()

        assert state.pbs_for(1) == {"Alice": 700000}
        assert state.pbs_for(2) == {"Alice": 620000}
        assert state.last_match_id == {"Alice": "991"}
        assert state.top3_for(2) == ["Alice"]
        assert state.board_message_id == 55

    def test_save_writes_indented_json_and_no_temp_files(self, store):
        store.save(PersistedState())

        text = store.path.read_text(encoding="utf-8")
        assert text.startswith("{\n  ")
        assert [p.name for p in store.path.parent.iterdir()] == ["state.json"]

    def test_save_failure_is_reported_not_raised(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        assert StateStore(str(blocker / "state.json")).save(PersistedState()) is False

    def test_transaction_reloads_and_saves(self, store):
        with store.transaction() as state:
            state.last_match_id["Alice"] = "1"

        # An external writer changes the file between transactions
        other = store.load()
        other.last_match_id["Bob"] = "2"
        store.save(other)

        with store.transaction() as state:
            state.pbs_for(2)["Alice"] = 600000

        loaded = store.load()
        assert loaded.last_match_id == {"Alice": "1", "Bob": "2"}
        assert loaded.pbs_for(2) == {"Alice": 600000}

    def test_transaction_does_not_save_on_error(self, store):
        store.save(PersistedState(board_message_id=1))
        try:
            with store.transaction() as state:
                state.board_message_id = 2
                raise RuntimeError("abort")
        except RuntimeError:
            pass

        assert store.load().board_message_id == 1
        assert os.path.exists(store.path)


class TestUnwritableStateFile:
    def test_failed_save_is_served_from_memory(self, store, break_disk):
        break_disk()
        state = PersistedState(board_message_id=5)
        state.last_match_id["Alice"] = "10"

        assert store.save(state) is False
        assert store.dirty
        assert not store.path.exists()

        loaded = store.load()
        assert loaded == state
        # Callers get a copy, not the held state
        loaded.last_match_id["Alice"] = "11"
        assert store.load().last_match_id["Alice"] == "10"

    def test_transactions_build_on_unsaved_state(self, store, break_disk):
        break_disk()
        with store.transaction() as state:
            state.last_match_id["Alice"] = "1"
        with store.transaction() as state:
            state.pbs_for(2)["Alice"] = 600000

        loaded = store.load()
        assert loaded.last_match_id == {"Alice": "1"}
        assert loaded.pbs_for(2) == {"Alice": 600000}

    def test_recovered_disk_gets_the_held_state(self, store, monkeypatch):
        def refuse(src, dst):
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr("mcsrbot.storage.os.replace", refuse)
            with store.transaction() as state:
                state.last_match_id["Alice"] = "7"

        with store.transaction() as state:
            state.board_message_id = 3

        assert not store.dirty
        on_disk = StateStore(str(store.path)).load()
        assert on_disk.last_match_id == {"Alice": "7"}
        assert on_disk.board_message_id == 3


class TestRanking:
    def test_rank_is_ascending_and_stable_on_ties(self):
        pbs = {"Carol": 600000, "Alice": 500000, "Bob": 600000}

        assert rank_players(pbs) == [("Alice", 500000), ("Carol", 600000), ("Bob", 600000)]

    def test_top3_and_placement(self):
        pbs = {"A": 4, "B": 3, "C": 2, "D": 1}

        assert compute_top3(pbs) == ["D", "C", "B"]
        assert placement_of(pbs, "A") == 4
        assert placement_of(pbs, "Z") is None
