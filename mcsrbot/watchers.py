from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .api import MatchSource
from .config import BOT_PLAYER_NAME, logger
from .formatting import fmt_match_result
from .notify import NotificationSink
from .storage import StateStore


class MatchWatcher:
    """Announces every newly finished match of each roster player, PB or not.

    The newest match id per player is the watermark. A player's first
    observation only records it, so a fresh start does not replay history.
    """

    def __init__(
        self,
        source: MatchSource,
        store: StateStore,
        sink: NotificationSink,
        players: Sequence[str],
        identities: Mapping[str, str],
        bot_name: Optional[str] = BOT_PLAYER_NAME,
    ):
        self.source = source
        self.store = store
        self.sink = sink
        self.players = list(players)
        self.identities = identities
        self.bot_name = bot_name

    async def tick(self) -> List[str]:
        """Poll every player once; returns the ids of matches that were announced."""
        announced: List[str] = []
        for player in self.players:
            match = await self.source.get_latest_match(player)
            if match is None:
                continue

            previous = self.store.load().last_match_id.get(player)
            if match.id == previous:
                continue

            with self.store.transaction() as state:
                state.last_match_id[player] = match.id

            if previous is None:
                logger.info(f"Recorded initial match {match.id} for {player}")
                continue

            logger.info(f"New match {match.id} for {player} (previous {previous})")
            await self.sink.send(fmt_match_result(player, self.identities.get(player), match, self.bot_name))
            announced.append(match.id)
        return announced


async def run_every(
    name: str,
    interval: float,
    tick: Callable[[], Awaitable[object]],
    stop_event: asyncio.Event,
) -> None:
    """Run ``tick`` now and then every ``interval`` seconds until ``stop_event`` is set."""
    logger.info(f"Started {name} loop (every {interval}s)")
    try:
        while not stop_event.is_set():
            try:
                await tick()
            except Exception as e:
                logger.error(f"{name} tick failed: {e}", exc_info=True)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
    finally:
        logger.info(f"{name} loop stopped")


def start_loop(
    tasks: Dict[str, asyncio.Task],
    name: str,
    interval: float,
    tick: Callable[[], Awaitable[object]],
    stop_event: asyncio.Event,
) -> asyncio.Task:
    """Start a named loop once; a second call with the same name returns the running task."""
    if name in tasks and not tasks[name].done():
        return tasks[name]
    tasks[name] = asyncio.create_task(run_every(name, interval, tick, stop_event))
    return tasks[name]
