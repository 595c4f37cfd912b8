import logging
import os
from typing import List

from core.caption_utils import chunk_caption
from core.errors import SendFailed
from core.media_sender import MediaSender
from core.models import DeliveryReport, MediaArtifact

logger = logging.getLogger(__name__)


async def deliver_single(sender: MediaSender, chat_id: int, artifact: MediaArtifact) -> bool:
    """One upload, best-effort: a failure is logged and reported, never raised."""
    await sender.send_text(chat_id, "📤 Sending video...")
    try:
        await sender.send_video(chat_id, artifact.path)
    except SendFailed as e:
        logger.error(f"Failed to send video: {e}")
        await sender.send_text(chat_id, e.user_message)
        return False
    return True


async def deliver_chunks(sender: MediaSender, chat_id: int, chunks: List[MediaArtifact], max_size: int) -> DeliveryReport:
    """
    Uploads chunks one by one in index order.

    Each chunk's size is checked again first: the split only estimates it.
    Oversized, unreadable or failed chunks are reported and skipped; the rest still go out.
    All chunk files are deleted afterwards.
    """
    total = len(chunks)
    report = DeliveryReport(total=total)
    await sender.send_text(chat_id, f"📤 Sending {total} video chunks...")

    try:
        for i, chunk in enumerate(chunks, start=1):
            try:
                size = os.path.getsize(chunk.path)
            except OSError as e:
                logger.error(f"Failed to get chunk {i} info: {e}")
                await sender.send_text(chat_id, f"⚠️ Chunk {i} is missing, skipping")
                report.skipped.append(i)
                continue

            if size > max_size:
                logger.warning(f"Chunk {i} is too large ({size} bytes), skipping")
                await sender.send_text(chat_id, f"⚠️ Chunk {i} is too large, skipping")
                report.skipped.append(i)
                continue

            try:
                await sender.send_video(chat_id, chunk.path, caption=chunk_caption(i, total, size))
            except SendFailed as e:
                logger.error(f"Failed to send video chunk {i}: {e}")
                await sender.send_text(chat_id, f"❌ Error sending chunk {i}")
                report.failed.append(i)
                continue
            report.sent.append(i)
    finally:
        remove_chunks(chunks)

    logger.info(f"Delivered {len(report.sent)}/{total} chunks to {chat_id} (skipped={report.skipped}, failed={report.failed})")
    return report


def remove_chunks(chunks: List[MediaArtifact]):
    for chunk in chunks:
        try:
            os.remove(chunk.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove chunk {chunk.path}: {e}")
