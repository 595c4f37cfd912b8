from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import MB, Settings
from core.media_sender import MediaSender


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        BOT_TOKEN="123456:TEST-token",
        MEDIA_DIR=tmp_path / "media",
        MAX_FILE_SIZE=50 * MB,
        TARGET_CHUNK_SIZE=40 * MB,
        RETRY_DELAY=0,
    )


@pytest.fixture()
def bot() -> MagicMock:
    mock_bot = MagicMock()
    mock_bot.send_message = AsyncMock()
    mock_bot.send_video = AsyncMock()
    return mock_bot


@pytest.fixture()
def sender(bot) -> MediaSender:
    return MediaSender(bot)


def sent_texts(bot) -> list[str]:
    return [c.kwargs["text"] for c in bot.send_message.call_args_list]


def make_file(path, size: int) -> str:
    """Creates a sparse file of the given size."""
    with open(path, "wb") as f:
        if size:
            f.seek(size - 1)
            f.write(b"\0")
    return str(path)
