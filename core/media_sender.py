"""Outbound Telegram calls: status texts and video uploads"""
import logging
import os

from aiogram import Bot
from aiogram.types import FSInputFile

from core.errors import SendFailed

logger = logging.getLogger(__name__)


class MediaSender:
    """Thin wrapper over the bot API used by the pipeline"""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_text(self, chat_id: int, text: str) -> object:
        """Best-effort status message. Returns the message or None."""
        try:
            return await self.bot.send_message(chat_id=chat_id, text=text)
        except Exception as e:
            logger.error(f"Failed to send message to {chat_id}: {e}")
            return None

    async def send_video(self, chat_id: int, file_path: str, caption: str = None) -> object:
        """Uploads a local video file. Raises SendFailed."""
        if not os.path.exists(file_path):
            raise SendFailed(f"file to send does not exist: {file_path}")
        try:
            return await self.bot.send_video(
                chat_id=chat_id,
                video=FSInputFile(file_path),
                caption=caption,
                supports_streaming=True,
            )
        except Exception as e:
            raise SendFailed(f"failed to send video {os.path.basename(file_path)}: {e}")
