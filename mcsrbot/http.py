from __future__ import annotations

import aiohttp
from typing import Any, Dict
from .config import REQUEST_TIMEOUT_SECS, logger


def build_headers() -> Dict[str, str]:
    return {
        "accept": "application/json",
        "user-agent": "mcsrbot/1.0 (+https://mcsrranked.com)",
        "cache-control": "no-cache",
    }


def make_session(timeout_secs: float = REQUEST_TIMEOUT_SECS) -> aiohttp.ClientSession:
    timeout = aiohttp.ClientTimeout(total=timeout_secs)
    return aiohttp.ClientSession(
        timeout=timeout,
        headers=build_headers(),
        trust_env=True,
    )


async def fetch_json(session: aiohttp.ClientSession, url: str, params: Dict[str, str] | None = None) -> Any:
    logger.debug(f"API request: {url} {params or ''}")
    async with session.get(url, params=params) as r:
        if r.status == 429:
            logger.warning(f"API rate limited for {url}")
            raise RuntimeError(f"Rate limited (429) for {url}")
        if r.status != 200:
            txt = await r.text()
            error_msg = f"HTTP {r.status} for {url} :: {txt[:300]}"
            logger.error(f"API error for {url}: {r.status}")
            raise RuntimeError(error_msg)
        logger.debug(f"API success: {url}")
        return await r.json()
