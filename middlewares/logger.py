# -*- coding: utf-8 -*-
import logging
from typing import Callable, Dict, Any, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 100


class LoggingMiddleware(BaseMiddleware):
    """Logs every inbound message"""
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = data.get("event_from_user")

        if user and isinstance(event, Message):
            user_info = f"@{user.username}" if user.username else f"ID:{user.id}"
            text_preview = event.text or event.caption or f"[{event.content_type}]"
            if len(text_preview) > PREVIEW_LIMIT:
                text_preview = text_preview[:PREVIEW_LIMIT] + "..."
            logger.info(f"Message from {user_info}: {text_preview}")

        return await handler(event, data)
