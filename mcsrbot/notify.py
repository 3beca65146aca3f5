from __future__ import annotations

from typing import Optional, Protocol

from telegram.error import BadRequest, TelegramError

from .config import logger


class NotificationSink(Protocol):
    async def send(self, text: str) -> Optional[int]: ...

    async def edit(self, message_id: int, text: str) -> bool: ...


class TelegramSink:
    """Posts HTML messages to one Telegram chat.

    Telegram cannot look a message up by id, so ``edit`` doubles as the
    existence check: it returns False when the message is gone.
    """

    def __init__(self, bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id

    async def send(self, text: str) -> Optional[int]:
        try:
            sent_message = await self.bot.send_message(self.chat_id, text, parse_mode="HTML")
        except TelegramError as e:
            logger.error(f"Failed to send message to chat {self.chat_id}: {e}")
            return None
        return sent_message.message_id

    async def edit(self, message_id: int, text: str) -> bool:
        """Return False only when the message no longer exists."""
        try:
            await self.bot.edit_message_text(
                chat_id=self.chat_id, message_id=message_id, text=text, parse_mode="HTML"
            )
            return True
        except BadRequest as e:
            if "not modified" in str(e).lower():
                return True
            logger.warning(f"Could not edit message {message_id} in chat {self.chat_id}: {e}")
            return False
        except TelegramError as e:
            # Network-level failure; the message is still there, retry next tick
            logger.error(f"Failed to edit message {message_id} in chat {self.chat_id}: {e}")
            return True
