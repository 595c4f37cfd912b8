# -*- coding: utf-8 -*-
"""Runs external tools (ffmpeg, ffprobe) off the event loop, with a timeout."""
import asyncio
import logging
import subprocess
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar

from core.errors import BotError, ToolTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CommandResult:
    args: list
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return (self.stdout + self.stderr).strip()


def _run_blocking(args: list, timeout: float) -> CommandResult:
    process = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.communicate()
        raise
    return CommandResult(
        args=args,
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_command(args: Sequence[str], timeout: float) -> CommandResult:
    """
    Runs a command in a worker thread and waits for it.
    The child is killed once `timeout` seconds pass and ToolTimeout is raised.
    A missing binary surfaces as FileNotFoundError.
    """
    args = [str(a) for a in args]
    logger.debug(f"Executing command: {' '.join(args)}")
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, _run_blocking, args, timeout)
    except subprocess.TimeoutExpired:
        raise ToolTimeout(f"{args[0]} did not finish within {timeout:g}s")


async def with_retries(
    func: Callable[[int], Awaitable[T]],
    attempts: int,
    delay: float = 0.0,
    label: str = "operation",
) -> T:
    """
    Calls func(attempt) up to `attempts` times.
    Only errors whose kind is retryable are retried; anything else propagates at once.
    """
    attempt = 1
    while True:
        try:
            return await func(attempt)
        except BotError as e:
            if not e.retryable or attempt >= attempts:
                raise
            logger.warning(f"[RETRY] {label} failed (attempt {attempt}/{attempts}): {e}")
            attempt += 1
            if delay:
                await asyncio.sleep(delay)
