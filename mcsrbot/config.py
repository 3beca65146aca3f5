import os
import logging
from typing import List

from dotenv import load_dotenv

# Load env early
load_dotenv()

# Logging configuration
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, log_level, logging.INFO),
)
logger = logging.getLogger(__name__)

# Reduce noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.ExtBot").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Updater").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Application").setLevel(logging.WARNING)
logging.getLogger("telegram.bot").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _int_list(raw: str) -> List[int]:
    return [int(item) for item in _split_csv(raw)]


def _chat_id(raw: str) -> int | None:
    # Reported by validate_config, not at import
    try:
        return int(raw.strip() or "0")
    except ValueError:
        return None


class Config:
    """Application configuration read from the environment."""

    # Telegram Bot Configuration
    BOT_TOKEN: str | None = os.getenv("BOT_TOKEN")
    CHAT_ID: int | None = _chat_id(os.getenv("CHAT_ID", "0"))

    # Roster and tracked match types (1=Casual, 2=Ranked, 3=Private)
    PLAYERS: List[str] = _split_csv(os.getenv("PLAYERS", ""))
    TRACK_TYPES: List[int] = _int_list(os.getenv("TRACK_TYPES", "1,2,3"))
    # Types where the API honours sort=fastest
    FASTEST_SORT_TYPES: List[int] = _int_list(os.getenv("FASTEST_SORT_TYPES", "2"))

    # Polling
    PB_POLL_SECS: int = int(os.getenv("PB_POLL_SECS", "600"))
    FINISH_POLL_SECS: int = int(os.getenv("FINISH_POLL_SECS", "15"))

    # MCSR Ranked API
    MCSR_API_URL: str = os.getenv("MCSR_API_URL", "https://mcsrranked.com/api").strip().rstrip("/")
    REQUEST_TIMEOUT_SECS: float = float(os.getenv("REQUEST_TIMEOUT_SECS", "10"))

    # Casual/Private PB scan horizon: MAX_SCAN_PAGES * SCAN_PAGE_SIZE matches
    SCAN_PAGE_SIZE: int = int(os.getenv("SCAN_PAGE_SIZE", "100"))
    MAX_SCAN_PAGES: int = int(os.getenv("MAX_SCAN_PAGES", "20"))

    STATE_FILE: str = os.getenv("STATE_FILE", "state.json")
    BOARD_MAX_CHARS: int = int(os.getenv("BOARD_MAX_CHARS", "4000"))
    BOT_PLAYER_NAME: str = os.getenv("BOT_PLAYER_NAME", "[Ranked Bot]")

    @classmethod
    def validate_config(cls) -> None:
        if not cls.BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable is required")
        if cls.CHAT_ID is None:
            raise ValueError("CHAT_ID must be a numeric Telegram chat id")
        if cls.CHAT_ID == 0:
            raise ValueError("CHAT_ID environment variable is required")
        if not cls.PLAYERS:
            raise ValueError("PLAYERS environment variable is required (comma-separated nicknames)")
        if not cls.TRACK_TYPES:
            raise ValueError("TRACK_TYPES must list at least one match type")
        if cls.SCAN_PAGE_SIZE <= 0 or cls.MAX_SCAN_PAGES <= 0:
            raise ValueError("SCAN_PAGE_SIZE and MAX_SCAN_PAGES must be positive")

    @classmethod
    def get_api_base_url(cls) -> str:
        logger.info(f"Using API endpoint: {cls.MCSR_API_URL}")
        return cls.MCSR_API_URL


config = Config()
BASE = config.MCSR_API_URL
BOT_TOKEN = config.BOT_TOKEN
CHAT_ID = config.CHAT_ID
PLAYERS = config.PLAYERS
TRACK_TYPES = config.TRACK_TYPES
FASTEST_SORT_TYPES = config.FASTEST_SORT_TYPES

PB_POLL_SECS = config.PB_POLL_SECS
FINISH_POLL_SECS = config.FINISH_POLL_SECS
REQUEST_TIMEOUT_SECS = config.REQUEST_TIMEOUT_SECS
SCAN_PAGE_SIZE = config.SCAN_PAGE_SIZE
MAX_SCAN_PAGES = config.MAX_SCAN_PAGES

STATE_FILE = config.STATE_FILE
BOARD_MAX_CHARS = config.BOARD_MAX_CHARS
BOT_PLAYER_NAME = config.BOT_PLAYER_NAME
