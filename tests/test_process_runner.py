import sys

import pytest

from core.errors import DownloadFailed, NoFileFound, ToolTimeout
from core.process_runner import run_command, with_retries


async def test_captures_output_and_exit_code():
    result = await run_command([sys.executable, "-c", "import sys; print('12.5'); sys.exit(3)"], timeout=30)
    assert result.returncode == 3
    assert result.stdout.strip() == "12.5"
    assert not result.ok


async def test_timeout_kills_process():
    with pytest.raises(ToolTimeout) as exc_info:
        await run_command([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)
    assert "within 0.5s" in str(exc_info.value)


async def test_missing_binary():
    with pytest.raises(FileNotFoundError):
        await run_command(["definitely-not-a-real-binary-xyz"], timeout=5)


async def test_retries_retryable_errors_up_to_limit():
    attempts = []

    async def op(n):
        attempts.append(n)
        raise DownloadFailed("flaky")

    with pytest.raises(DownloadFailed):
        await with_retries(op, attempts=3)
    assert attempts == [1, 2, 3]


async def test_returns_after_recovery():
    async def op(n):
        if n == 1:
            raise ToolTimeout("slow")
        return "ok"

    assert await with_retries(op, attempts=2) == "ok"


async def test_non_retryable_error_propagates_immediately():
    attempts = []

    async def op(n):
        attempts.append(n)
        raise NoFileFound("nothing")

    with pytest.raises(NoFileFound):
        await with_retries(op, attempts=5)
    assert attempts == [1]
