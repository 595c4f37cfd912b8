# -*- coding: utf-8 -*-
"""Error kinds raised along the download -> split -> deliver pipeline."""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    DOWNLOAD_FAILED = "download_failed"
    NO_FILE_FOUND = "no_file_found"
    STAT_FAILED = "stat_failed"
    PROBE_FAILED = "probe_failed"
    SPLIT_FAILED = "split_failed"
    SEND_FAILED = "send_failed"
    TIMEOUT = "timeout"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_RETRYABLE = frozenset({
    ErrorKind.DOWNLOAD_FAILED,
    ErrorKind.PROBE_FAILED,
    ErrorKind.SEND_FAILED,
    ErrorKind.TIMEOUT,
})


class ConfigError(Exception):
    """Startup misconfiguration. The only error that stops the process."""


class BotError(Exception):
    kind: ErrorKind = ErrorKind.DOWNLOAD_FAILED
    user_message: str = "❌ Something went wrong"

    def __init__(self, message: str = "", output: str | None = None):
        super().__init__(message or self.user_message)
        self.output = output

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def __str__(self) -> str:
        base = super().__str__()
        if self.output:
            return f"{base}, output: {self.output}"
        return base


class Unauthorized(BotError):
    kind = ErrorKind.UNAUTHORIZED
    user_message = "❌ You are not authorized to operate this bot"


class DownloadFailed(BotError):
    kind = ErrorKind.DOWNLOAD_FAILED
    user_message = "❌ Failed to download video"


class NoFileFound(DownloadFailed):
    kind = ErrorKind.NO_FILE_FOUND
    user_message = "❌ No video file found after download"


class StatFailed(BotError):
    kind = ErrorKind.STAT_FAILED
    user_message = "❌ Error checking video file"


class ProbeFailed(BotError):
    kind = ErrorKind.PROBE_FAILED
    user_message = "❌ Error splitting video"


class SplitFailed(BotError):
    kind = ErrorKind.SPLIT_FAILED
    user_message = "❌ Error splitting video"


class SendFailed(BotError):
    kind = ErrorKind.SEND_FAILED
    user_message = "❌ Error sending video"


class ToolTimeout(BotError):
    kind = ErrorKind.TIMEOUT
    user_message = "❌ Timeout: processing took too long"
