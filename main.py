# -*- coding: utf-8 -*-
import asyncio
import logging
import sys

from core.config import Settings, ensure_media_dir, load_env_file, write_env_template
from core.errors import ConfigError
from core.loader import create_bot, create_dispatcher
from core.logger import setup_logger
from core.media_sender import MediaSender
from core.queue_manager import ToolLimiter
from services.pipeline import VideoPipeline

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    if not load_env_file():
        write_env_template()
    settings = Settings.from_env()
    ensure_media_dir(settings)
    return settings


async def main(settings: Settings):
    logger.info("Starting bot initialization...")
    if settings.WHITELIST_USERS:
        logger.info(f"Whitelist enabled for {len(settings.WHITELIST_USERS)} user(s)")
    else:
        logger.info("Whitelist empty: bot is open to everyone")

    bot = create_bot(settings)
    dp = create_dispatcher()
    pipeline = VideoPipeline(
        settings,
        MediaSender(bot),
        limiter=ToolLimiter(settings.MAX_CONCURRENT_TOOLS),
    )

    logger.info("Starting polling...")
    # Each update is handled in its own task; the bot session is closed on exit
    await dp.start_polling(bot, polling_timeout=settings.POLLING_TIMEOUT, handle_as_tasks=True, pipeline=pipeline)


def run():
    setup_logger()
    try:
        settings = load_settings()
    except ConfigError as e:
        logger.critical(str(e))
        sys.exit(1)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Bot stopped.")


if __name__ == "__main__":
    run()
