from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import BOARD_MAX_CHARS, logger
from .formatting import fmt_board, fmt_new_pb, fmt_placement
from .matches import type_label
from .notify import NotificationSink
from .resolver import BestTimeResolver
from .state import PersistedState, TOP_N, compute_top3, placement_of
from .storage import StateStore


@dataclass(frozen=True)
class PbImprovement:
    player: str
    match_type: int
    previous_ms: int
    new_ms: int
    placement: Optional[int]
    placement_changed: bool


class ReconciliationEngine:
    """Periodic PB pass: resolve bests, store improvements, announce, refresh the board.

    The first tick after start primes state silently; later ticks announce.
    """

    def __init__(
        self,
        resolver: BestTimeResolver,
        store: StateStore,
        sink: NotificationSink,
        players: Sequence[str],
        match_types: Sequence[int],
        board_max_chars: int = BOARD_MAX_CHARS,
        announce_first_tick: bool = False,
    ):
        self.resolver = resolver
        self.store = store
        self.sink = sink
        self.players = list(players)
        self.match_types = list(match_types)
        self.board_max_chars = board_max_chars
        self._announce = announce_first_tick

    async def tick(self) -> List[PbImprovement]:
        announce = self._announce
        improvements: List[PbImprovement] = []
        for match_type in self.match_types:
            improvements.extend(await self.reconcile_type(match_type, announce))
        await self.refresh_board()
        self._announce = True
        logger.info(f"PB pass done: {len(improvements)} improvement(s){'' if announce else ' (silent)'}")
        return improvements

    async def reconcile_type(self, match_type: int, announce: bool = True) -> List[PbImprovement]:
        old_top3 = self.store.load().top3_for(match_type)
        improvements: List[PbImprovement] = []

        for player in self.players:
            latest = await self.resolver.resolve_best(player, match_type)
            if latest is None:
                continue

            with self.store.transaction() as state:
                improvement = self._merge(state, match_type, player, latest, old_top3)

            if improvement is not None:
                improvements.append(improvement)
                if announce:
                    await self._announce_improvement(improvement)

        with self.store.transaction() as state:
            state.set_top3(match_type, compute_top3(state.pbs_for(match_type)))
        return improvements

    def _merge(
        self,
        state: PersistedState,
        match_type: int,
        player: str,
        latest: int,
        old_top3: List[str],
    ) -> Optional[PbImprovement]:
        pbs = state.pbs_for(match_type)
        previous = pbs.get(player)
        if previous is None:
            pbs[player] = latest
            logger.info(f"Recorded first {type_label(match_type)} PB for {player}: {latest}ms")
            return None
        if latest >= previous:
            return None

        pbs[player] = latest
        place = placement_of(pbs, player)
        changed = False
        if place is not None and place <= TOP_N:
            holder = old_top3[place - 1] if place <= len(old_top3) else None
            changed = holder != player
        logger.info(f"New {type_label(match_type)} PB for {player}: {previous}ms -> {latest}ms (#{place})")
        return PbImprovement(player, match_type, previous, latest, place, changed)

    async def _announce_improvement(self, improvement: PbImprovement) -> None:
        if improvement.placement_changed and improvement.placement is not None:
            message = fmt_placement(improvement.placement, improvement.player, improvement.match_type)
            if message:
                await self.sink.send(message)
        await self.sink.send(
            fmt_new_pb(improvement.player, improvement.match_type, improvement.new_ms, improvement.previous_ms)
        )

    def render_board(self, state: PersistedState) -> str:
        pb_by_type = {t: state.pbs_for(t) for t in self.match_types}
        return fmt_board(pb_by_type, self.players, self.board_max_chars)

    async def refresh_board(self) -> None:
        """Replace the standing board message, recreating it if it was deleted."""
        state = self.store.load()
        content = self.render_board(state)

        if state.board_message_id is not None:
            if await self.sink.edit(state.board_message_id, content):
                return
            logger.info(f"Board message {state.board_message_id} is gone; posting a new one")

        message_id = await self.sink.send(content)
        if message_id is None:
            return
        with self.store.transaction() as state:
            state.board_message_id = message_id
        logger.info(f"Board message is now {message_id}")
