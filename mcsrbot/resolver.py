from __future__ import annotations

from typing import Collection, Mapping, Optional

from .api import MatchSource, SortOrder, SourceError
from .config import FASTEST_SORT_TYPES, MAX_SCAN_PAGES, SCAN_PAGE_SIZE, logger
from .matches import type_label
from .validation import is_countable_win


class BestTimeResolver:
    """Finds a player's current PB for one match type.

    Types listed in ``fastest_sort_types`` trust the API's ``sort=fastest``
    ordering and read a single page. The rest are scanned newest-first, page
    by page, up to ``max_pages`` pages; a PB older than that horizon is not
    seen.
    """

    def __init__(
        self,
        source: MatchSource,
        identities: Mapping[str, str],
        fastest_sort_types: Collection[int] = FASTEST_SORT_TYPES,
        page_size: int = SCAN_PAGE_SIZE,
        max_pages: int = MAX_SCAN_PAGES,
    ):
        self.source = source
        self.identities = identities
        self.fastest_sort_types = frozenset(int(t) for t in fastest_sort_types)
        self.page_size = page_size
        self.max_pages = max_pages

    async def resolve_best(self, player: str, match_type: int) -> Optional[int]:
        """Return the PB in ms, or None when unresolved or no countable win exists."""
        player_uuid = self.identities.get(player)
        if not player_uuid:
            logger.debug(f"Skipping PB lookup for {player}: no UUID")
            return None
        try:
            if int(match_type) in self.fastest_sort_types:
                return await self._resolve_fastest(player, player_uuid, match_type)
            return await self._resolve_by_scan(player, player_uuid, match_type)
        except SourceError as e:
            logger.warning(f"PB lookup failed for {player} ({type_label(match_type)}): {e}")
            return None

    async def _resolve_fastest(self, player: str, player_uuid: str, match_type: int) -> Optional[int]:
        matches = await self.source.list_matches(
            player, match_type=match_type, count=self.page_size, sort=SortOrder.FASTEST
        )
        # Sorted fastest-first, so the first countable win is the PB
        for match in matches:
            if is_countable_win(match, player_uuid):
                return match.time
        return None

    async def _resolve_by_scan(self, player: str, player_uuid: str, match_type: int) -> Optional[int]:
        best: Optional[int] = None
        before: Optional[str] = None

        for _ in range(self.max_pages):
            matches = await self.source.list_matches(
                player, match_type=match_type, count=self.page_size, sort=SortOrder.NEWEST, before=before
            )
            if not matches:
                break

            for match in matches:
                if not is_countable_win(match, player_uuid):
                    continue
                if best is None or match.time < best:
                    best = match.time

            if matches.cursor is None:
                logger.debug(f"Last match on page has no id; ending scan for {player} ({type_label(match_type)})")
                break
            before = matches.cursor
        else:
            logger.debug(f"Scan horizon reached for {player} ({type_label(match_type)}) after {self.max_pages} pages")

        return best
