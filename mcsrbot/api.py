from __future__ import annotations

import asyncio
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence
from urllib.parse import quote

import aiohttp

from .config import BASE, logger
from .http import fetch_json, make_session
from .matches import MatchPage, MatchRecord, parse_match_list


class SortOrder(Enum):
    NEWEST = "newest"
    FASTEST = "fastest"


class SourceError(RuntimeError):
    """The match API could not answer: timeout, bad status or malformed payload."""


class MatchSource:
    """Thin client over the MCSR Ranked user endpoints.

    Transport errors never escape as aiohttp exceptions: ``list_matches``
    raises ``SourceError`` and the single-value lookups return ``None``.
    """

    def __init__(self, base_url: str = BASE, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = make_session()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _user_url(self, name: str, suffix: str = "") -> str:
        return f"{self.base_url}/users/{quote(name, safe='')}{suffix}"

    async def _get(self, url: str, params: Dict[str, str] | None = None):
        try:
            return await fetch_json(self._get_session(), url, params=params)
        except asyncio.TimeoutError as e:
            raise SourceError(f"Timeout for {url}") from e
        except aiohttp.ClientError as e:
            raise SourceError(f"Transport error for {url}: {e}") from e
        except ValueError as e:
            raise SourceError(f"Invalid JSON from {url}: {e}") from e
        except RuntimeError as e:
            raise SourceError(str(e)) from e

    async def get_user_uuid(self, name: str) -> Optional[str]:
        try:
            payload = await self._get(self._user_url(name))
        except SourceError as e:
            logger.warning(f"Could not fetch UUID for {name}: {e}")
            return None
        data = payload.get("data") if isinstance(payload, dict) else None
        uuid = data.get("uuid") if isinstance(data, dict) else None
        if isinstance(uuid, str) and uuid:
            return uuid
        logger.warning(f"No UUID in profile payload for {name}")
        return None

    async def list_matches(
        self,
        name: str,
        match_type: Optional[int] = None,
        count: int = 100,
        sort: SortOrder = SortOrder.NEWEST,
        before: Optional[str] = None,
    ) -> MatchPage:
        params: Dict[str, str] = {"count": str(count), "sort": sort.value}
        if match_type is not None:
            params["type"] = str(int(match_type))
        if before is not None:
            params["before"] = before

        payload = await self._get(self._user_url(name, "/matches"), params=params)
        matches = parse_match_list(payload)
        if matches is None:
            raise SourceError(f"Malformed match list for {name}")
        return matches

    async def get_latest_match(self, name: str) -> Optional[MatchRecord]:
        try:
            matches = await self.list_matches(name, count=1, sort=SortOrder.NEWEST)
        except SourceError as e:
            logger.warning(f"Could not fetch latest match for {name}: {e}")
            return None
        return matches[0] if matches else None


async def resolve_identities(source: MatchSource, players: Sequence[str]) -> Mapping[str, str]:
    """Build the read-only nickname -> uuid map used for the whole process lifetime."""
    uuid_by_name: Dict[str, str] = {}
    for player in players:
        uuid = await source.get_user_uuid(player)
        if uuid:
            uuid_by_name[player] = uuid
        else:
            logger.warning(f"Could not fetch UUID for {player}; using generic announcements")
    logger.info(f"UUID map loaded for {len(uuid_by_name)}/{len(players)} players")
    return MappingProxyType(uuid_by_name)
