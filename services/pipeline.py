# -*- coding: utf-8 -*-
"""classify -> download -> maybe split -> deliver -> cleanup, for one message"""
import logging
import os
from typing import Optional
from uuid import uuid4

from core.access_manager import AccessManager
from core.config import Settings, MB
from core.errors import BotError, ErrorKind, Unauthorized
from core.logger import log_event
from core.media_sender import MediaSender
from core.queue_manager import ToolLimiter
from services.cleanup import cleanup
from services.delivery import deliver_chunks, deliver_single
from services.downloader import download_video
from services.link_classifier import detect_platform, extract_url
from services.splitter import needs_split, split_video

logger = logging.getLogger(__name__)


class VideoPipeline:
    def __init__(self, settings: Settings, sender: MediaSender, limiter: ToolLimiter = None, access: AccessManager = None):
        self.settings = settings
        self.sender = sender
        self.limiter = limiter or ToolLimiter(settings.MAX_CONCURRENT_TOOLS)
        self.access = access or AccessManager(settings.WHITELIST_USERS)

    def new_work_dir(self) -> str:
        return os.path.join(str(self.settings.MEDIA_DIR), uuid4().hex)

    async def handle(self, chat_id: int, username: Optional[str], text: Optional[str]) -> Optional[ErrorKind]:
        """
        Runs the whole flow for one text message.
        Returns the kind of the error that stopped it, or None.
        """
        if not text:
            return None

        try:
            self.access.ensure_authorized(username)
        except Unauthorized as e:
            await self.sender.send_text(chat_id, e.user_message)
            return e.kind

        platform = detect_platform(text)
        if not platform:
            return None
        url = extract_url(text) or text.strip()
        user = f"@{username}" if username else f"chat:{chat_id}"
        log_event(user, "LINK", f"{platform}: {url}")

        work_dir = self.new_work_dir()
        try:
            os.makedirs(work_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create video directory: {e}")
            await self.sender.send_text(chat_id, "❌ Failed to create download directory")
            return ErrorKind.DOWNLOAD_FAILED

        await self.sender.send_text(chat_id, "📥 Downloading video...")
        if self.limiter.is_saturated():
            await self.sender.send_text(chat_id, "⏳ Queued, waiting for a free slot...")

        artifact = None
        try:
            artifact = await download_video(url, work_dir, self.settings, self.limiter)
            logger.info(f"Downloaded {artifact.path} ({artifact.size_mb:.1f}MB) for {user}")

            if needs_split(artifact.size, self.settings.MAX_FILE_SIZE):
                limit_mb = self.settings.MAX_FILE_SIZE // MB
                await self.sender.send_text(chat_id, f"📹 Video is larger than {limit_mb}MB, splitting into chunks...")
                chunks = await split_video(artifact, work_dir, self.settings, self.limiter)
                report = await deliver_chunks(self.sender, chat_id, chunks, self.settings.MAX_FILE_SIZE)
                log_event(user, "SENT_CHUNKS", f"{len(report.sent)}/{report.total}")
            else:
                if await deliver_single(self.sender, chat_id, artifact):
                    log_event(user, "SENT_VIDEO", os.path.basename(artifact.path))
            return None
        except BotError as e:
            logger.error(f"[{e.kind.value}] {url}: {e}")
            await self.sender.send_text(chat_id, e.user_message)
            return e.kind
        except Exception as e:
            logger.exception(f"Unexpected error while handling {url}: {e}")
            await self.sender.send_text(chat_id, "❌ Something went wrong")
            raise
        finally:
            cleanup(artifact.path if artifact else None, work_dir)
