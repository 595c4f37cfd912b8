# -*- coding: utf-8 -*-
import logging
from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer

from core.config import Settings
from handlers.links import links_router
from middlewares.logger import LoggingMiddleware

logger = logging.getLogger(__name__)


def create_bot(settings: Settings) -> Bot:
    if settings.USE_LOCAL_SERVER:
        # Local Bot API server allows uploads beyond 50MB
        api_server = TelegramAPIServer.from_base(settings.LOCAL_SERVER_URL)
        return Bot(token=settings.BOT_TOKEN, session=AiohttpSession(api=api_server))
    return Bot(token=settings.BOT_TOKEN)


def create_dispatcher() -> Dispatcher:
    dp = Dispatcher()
    dp.message.middleware(LoggingMiddleware())
    dp.include_router(links_router)
    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)
    return dp


async def on_startup(bot: Bot):
    me = await bot.get_me()
    logger.info(f"Authorized on account {me.username}")


async def on_shutdown(bot: Bot):
    logger.info("Bot is shutting down...")
