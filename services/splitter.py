# -*- coding: utf-8 -*-
"""
Splits an oversized video into time-sliced, re-encoded chunks.

Chunk size is bounded through duration, assuming a constant bitrate:
chunk_duration = duration * target_size / file_size, never below the
minimum chunk duration. The estimate is approximate, so delivery checks
each chunk's real size again before uploading it.
"""
import logging
import math
import os
from contextlib import nullcontext
from typing import List

from core.config import Settings
from core.errors import BotError, ProbeFailed, SplitFailed
from core.models import ChunkPlan, MediaArtifact
from core.process_runner import run_command, with_retries

logger = logging.getLogger(__name__)

CHUNK_NAME = "chunk_{}.mp4"
TRANSCODE_ARGS = [
    "-c:v", "libx264",
    "-profile:v", "baseline",
    "-level", "3.0",
    "-pix_fmt", "yuv420p",
    "-c:a", "aac",
    "-movflags", "+faststart",
    "-avoid_negative_ts", "make_zero",
]


def needs_split(size: int, limit: int) -> bool:
    return size > limit


def plan_chunks(duration: float, file_size: int, target_size: int, min_chunk_duration: float = 30.0) -> ChunkPlan:
    if duration <= 0:
        raise ValueError("duration must be positive")
    if file_size <= 0:
        raise ValueError("file_size must be positive")

    chunk_duration = duration * target_size / file_size
    if chunk_duration < min_chunk_duration:
        chunk_duration = min_chunk_duration

    count = int(math.floor(duration / chunk_duration)) + 1
    return ChunkPlan(duration=duration, chunk_duration=chunk_duration, count=count)


def parse_duration(output: str) -> float:
    text = (output or "").strip()
    try:
        duration = float(text.splitlines()[0]) if text else float("nan")
    except ValueError:
        raise ProbeFailed("failed to parse duration", output=text)
    if math.isnan(duration) or duration <= 0:
        raise ProbeFailed("failed to parse duration", output=text)
    return duration


async def probe_duration(path: str, settings: Settings, limiter=None) -> float:
    args = [
        settings.FFPROBE_BINARY,
        "-v", "quiet",
        "-show_entries", "format=duration",
        "-of", "csv=p=0",
        path,
    ]

    async def attempt(n: int) -> float:
        async with (limiter.slot("probe") if limiter else nullcontext()):
            try:
                result = await run_command(args, timeout=settings.PROBE_TIMEOUT)
            except FileNotFoundError as e:
                raise ProbeFailed(f"ffprobe not available: {e}")
        if not result.ok:
            raise ProbeFailed(f"failed to get video duration (exit {result.returncode})", output=result.output)
        return parse_duration(result.stdout)

    return await with_retries(attempt, settings.PROBE_ATTEMPTS, settings.RETRY_DELAY, label=f"probe {path}")


def transcode_args(settings: Settings, source: str, start: float, duration: float, output: str) -> list:
    return [
        settings.FFMPEG_BINARY, "-y",
        "-i", source,
        "-ss", f"{start:.2f}",
        "-t", f"{duration:.2f}",
        *TRANSCODE_ARGS,
        output,
    ]


def _remove_quietly(paths):
    for path in paths:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to remove chunk {path}: {e}")


async def split_video(artifact: MediaArtifact, output_dir: str, settings: Settings, limiter=None) -> List[MediaArtifact]:
    """
    Re-encodes `artifact` into ordered chunks inside `output_dir`.

    Missing or empty chunk outputs are skipped. Any transcode failure removes
    every chunk produced so far and raises SplitFailed; no partial list is returned.
    """
    duration = await probe_duration(artifact.path, settings, limiter)
    plan = plan_chunks(duration, artifact.size, settings.TARGET_CHUNK_SIZE, settings.MIN_CHUNK_DURATION)
    logger.info(
        f"Splitting {artifact.path}: {artifact.size_mb:.1f}MB, {duration:.1f}s "
        f"-> {plan.count} chunks of {plan.chunk_duration:.1f}s"
    )

    chunks: List[MediaArtifact] = []
    for i in range(plan.count):
        chunk_file = os.path.join(output_dir, CHUNK_NAME.format(i + 1))
        args = transcode_args(settings, artifact.path, plan.start_of(i), plan.chunk_duration, chunk_file)

        try:
            async with (limiter.slot("transcode") if limiter else nullcontext()):
                result = await run_command(args, timeout=settings.TRANSCODE_TIMEOUT)
        except (BotError, OSError) as e:
            _remove_quietly([c.path for c in chunks] + [chunk_file])
            raise SplitFailed(f"failed to create chunk {i + 1}: {e}")

        if not result.ok:
            _remove_quietly([c.path for c in chunks] + [chunk_file])
            raise SplitFailed(f"failed to create chunk {i + 1} (exit {result.returncode})", output=result.output)

        try:
            size = os.path.getsize(chunk_file)
        except OSError:
            logger.info(f"Chunk {i + 1} was not produced, skipping")
            continue
        if size > 0:
            chunks.append(MediaArtifact(path=chunk_file, size=size))
        else:
            logger.info(f"Chunk {i + 1} is empty, skipping")
            _remove_quietly([chunk_file])

    return chunks
