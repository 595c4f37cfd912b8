import asyncio
import logging
import os
import re
import shutil
import threading
from contextlib import nullcontext

import yt_dlp
from yt_dlp.utils import DownloadCancelled, DownloadError

from core.config import Settings
from core.errors import DownloadFailed, NoFileFound, ToolTimeout
from core.models import MediaArtifact
from core.process_runner import with_retries

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".mkv", ".webm")
VIDEO_FORMAT = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
FFMPEG_COMPAT_ARGS = ["-c:v", "libx264", "-profile:v", "baseline", "-level", "3.0", "-pix_fmt", "yuv420p", "-c:a", "aac"]


class ErrorCaptureLogger:
    """Routes yt-dlp output into our log and keeps the errors for the exception."""

    def __init__(self):
        self.errors = []

    @property
    def error_message(self):
        return "\n".join(self.errors) if self.errors else None

    def debug(self, msg):
        logger.debug(f"[YT-DLP] {msg}")

    def info(self, msg):
        logger.debug(f"[YT-DLP] {msg}")

    def warning(self, msg):
        logger.warning(f"[YT-DLP] {msg}")

    def error(self, msg):
        self.errors.append(msg)
        logger.error(f"[YT-DLP ERROR] {msg}")


def _clean_error_message(error_text: str) -> str:
    if not error_text:
        return "Unknown Error"
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
    text = ansi_escape.sub('', str(error_text))
    if "ERROR:" in text:
        text = text.split("ERROR:", 1)[1].strip()
    return text.split('\n')[0]


def build_ydl_opts(dest_dir: str, settings: Settings, capture_logger, cancel_event: threading.Event, safe_mode: bool = False) -> dict:
    def _abort_on_cancel(status):
        if cancel_event.is_set():
            raise DownloadCancelled("download cancelled: timeout")

    ydl_opts = {
        'format': VIDEO_FORMAT,
        'merge_output_format': 'mp4',
        'postprocessor_args': {'ffmpeg': list(FFMPEG_COMPAT_ARGS)},
        'outtmpl': os.path.join(dest_dir, '%(title)s.%(ext)s'),
        'logger': capture_logger,
        'progress_hooks': [_abort_on_cancel],
        'postprocessor_hooks': [_abort_on_cancel],
        'quiet': True,
        'noplaylist': True,
        'overwrites': True,
        'socket_timeout': 20,
        'trim_file_name': 200,
    }

    if safe_mode:
        # Plain ASCII names, short: survives odd titles and filesystems
        ydl_opts['restrictfilenames'] = True
        ydl_opts['trim_file_name'] = 100

    ffmpeg_location = shutil.which(settings.FFMPEG_BINARY)
    if ffmpeg_location:
        ydl_opts['ffmpeg_location'] = ffmpeg_location

    return ydl_opts


def _run_yt_dlp(url: str, opts: dict) -> int:
    with yt_dlp.YoutubeDL(opts) as ydl:
        return ydl.download([url])


def find_video_file(dest_dir: str):
    """First file (sorted by name) with a known container extension, or None."""
    try:
        names = sorted(os.listdir(dest_dir))
    except OSError:
        return None
    for name in names:
        path = os.path.join(dest_dir, name)
        if name.lower().endswith(VIDEO_EXTENSIONS) and os.path.isfile(path):
            return path
    return None


def _purge_dir(dest_dir: str):
    """Empties the work directory after a failed attempt"""
    try:
        entries = os.listdir(dest_dir)
    except OSError:
        return
    for name in entries:
        path = os.path.join(dest_dir, name)
        try:
            if os.path.isdir(path):
                shutil.rmtree(path, ignore_errors=True)
            else:
                os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to remove leftover {path}: {e}")


async def _download_once(url: str, dest_dir: str, settings: Settings, safe_mode: bool) -> MediaArtifact:
    capture_logger = ErrorCaptureLogger()
    cancel_event = threading.Event()
    ydl_opts = build_ydl_opts(dest_dir, settings, capture_logger, cancel_event, safe_mode=safe_mode)
    logger.info(f"Executing yt-dlp for {url} (format={ydl_opts['format']}, safe_mode={safe_mode})")

    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, _run_yt_dlp, url, ydl_opts)
    try:
        retcode = await asyncio.wait_for(asyncio.shield(future), timeout=settings.DOWNLOAD_TIMEOUT)
    except asyncio.TimeoutError:
        cancel_event.set()
        logger.warning(f"yt-dlp timed out after {settings.DOWNLOAD_TIMEOUT:g}s, waiting for it to stop: {url}")
        # The worker owns the directory (and the caller's slot) until it actually returns
        try:
            await future
        except (DownloadError, DownloadCancelled) as e:
            logger.info(f"yt-dlp stopped after timeout: {_clean_error_message(str(e))}")
        _purge_dir(dest_dir)
        raise ToolTimeout(f"yt-dlp did not finish within {settings.DOWNLOAD_TIMEOUT:g}s")
    except (DownloadError, DownloadCancelled) as e:
        _purge_dir(dest_dir)
        raise DownloadFailed(
            f"yt-dlp failed: {_clean_error_message(str(e))}",
            output=capture_logger.error_message or str(e),
        )

    if retcode:
        _purge_dir(dest_dir)
        raise DownloadFailed(f"yt-dlp exited with code {retcode}", output=capture_logger.error_message)

    video_file = find_video_file(dest_dir)
    if not video_file:
        _purge_dir(dest_dir)
        raise NoFileFound("no video file found", output=capture_logger.error_message)
    return MediaArtifact.from_path(video_file)


async def download_video(url: str, dest_dir: str, settings: Settings, limiter=None) -> MediaArtifact:
    """
    Fetches `url` into `dest_dir` and returns the merged video file.

    Download errors and timeouts are retried up to DOWNLOAD_ATTEMPTS times;
    later attempts switch to safe-mode filenames. NoFileFound is not retried.
    """
    async def attempt(n: int) -> MediaArtifact:
        async with (limiter.slot("download") if limiter else nullcontext()):
            return await _download_once(url, dest_dir, settings, safe_mode=n > 1)

    return await with_retries(attempt, settings.DOWNLOAD_ATTEMPTS, settings.RETRY_DELAY, label=f"download {url}")
