"""MCSR PB Bot package.

Modules:
- config: environment and constants
- http: session and request helpers
- matches: typed match records parsed from API payloads
- api: MCSR Ranked API surface
- validation: which matches count as a player's win
- resolver: personal-best lookup strategies
- state / storage: persisted state and its JSON store
- formatting: message building utilities
- notify: Telegram message sink
- reconcile: PB reconciliation and leaderboard refresh
- watchers: new-match watcher and poll loops
- commands: telegram command handlers
- app: application bootstrap and wiring
"""

from .config import Config, BASE, BOT_TOKEN, CHAT_ID, PLAYERS, TRACK_TYPES, PB_POLL_SECS, FINISH_POLL_SECS
from .http import make_session, fetch_json, build_headers
from .matches import MatchType, MatchRecord, Participant, RatingChange, parse_match, parse_match_list, MatchPage, type_label
from .api import MatchSource, SortOrder, SourceError, resolve_identities
from .validation import is_countable_win
from .resolver import BestTimeResolver
from .state import PersistedState, rank_players, compute_top3, placement_of
from .storage import StateStore
from .formatting import (
    format_time,
    fmt_board,
    fmt_new_pb,
    fmt_placement,
    fmt_match_result,
    fmt_generic_result,
    fmt_player_pbs,
)
from .notify import NotificationSink, TelegramSink
from .reconcile import ReconciliationEngine, PbImprovement
from .watchers import MatchWatcher, run_every, start_loop
from .commands import start_cmd, board_cmd, pb_cmd
from .app import main, start_tracking

__all__ = [
    # Config / HTTP
    "Config", "BASE", "BOT_TOKEN", "CHAT_ID", "PLAYERS", "TRACK_TYPES", "PB_POLL_SECS", "FINISH_POLL_SECS",
    "make_session", "fetch_json", "build_headers",
    # Matches / API
    "MatchType", "MatchRecord", "Participant", "RatingChange", "parse_match", "parse_match_list", "MatchPage", "type_label",
    "MatchSource", "SortOrder", "SourceError", "resolve_identities",
    # PB logic
    "is_countable_win", "BestTimeResolver",
    "PersistedState", "rank_players", "compute_top3", "placement_of", "StateStore",
    # Formatting / notifications
    "format_time", "fmt_board", "fmt_new_pb", "fmt_placement", "fmt_match_result", "fmt_generic_result",
    "fmt_player_pbs", "NotificationSink", "TelegramSink",
    # Orchestration / App
    "ReconciliationEngine", "PbImprovement", "MatchWatcher", "run_every", "start_loop",
    "start_cmd", "board_cmd", "pb_cmd", "main", "start_tracking",
]
