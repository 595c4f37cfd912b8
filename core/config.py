# -*- coding: utf-8 -*-
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.errors import ConfigError

logger = logging.getLogger(__name__)

# 1. Paths
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

MB = 1024 * 1024
CLOUD_MAX_FILE_SIZE_MB = 50
LOCAL_MAX_FILE_SIZE_MB = 2000

ENV_TEMPLATE = """# Video relay bot environment
TELEGRAM_BOT_TOKEN=

# Comma-separated usernames allowed to use the bot (empty = everyone)
TELEGRAM_BOT_WHITELIST_USERS=

MEDIA_DIR=./media

# Optional local Bot API server (lifts the 50MB upload ceiling)
LOCAL_SERVER_URL=

# Splitting
MAX_FILE_SIZE_MB=
TARGET_CHUNK_SIZE_MB=40
MIN_CHUNK_DURATION=30

# External tools
FFMPEG_BINARY=ffmpeg
FFPROBE_BINARY=ffprobe
MAX_CONCURRENT_TOOLS=3
DOWNLOAD_TIMEOUT=600
PROBE_TIMEOUT=30
TRANSCODE_TIMEOUT=900
DOWNLOAD_ATTEMPTS=2
PROBE_ATTEMPTS=2
RETRY_DELAY=2
"""


def load_env_file(path: Path = ENV_PATH) -> bool:
    """Loads .env into the process environment if it exists. Real env vars win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)
        return True
    return False


def parse_whitelist(raw: Optional[str]) -> frozenset:
    if not raw:
        return frozenset()
    return frozenset(u.strip() for u in raw.split(",") if u.strip())


def _clean(raw: Optional[str]) -> str:
    return (raw or "").strip().strip('"').strip("'")


def _number(env: Mapping[str, str], name: str, default, cast=float, minimum=None):
    raw = _clean(env.get(name))
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    BOT_TOKEN: str
    WHITELIST_USERS: frozenset = frozenset()
    MEDIA_DIR: Path = Path("media")
    LOCAL_SERVER_URL: str = ""

    MAX_FILE_SIZE: int = CLOUD_MAX_FILE_SIZE_MB * MB
    TARGET_CHUNK_SIZE: int = 40 * MB
    MIN_CHUNK_DURATION: float = 30.0

    FFMPEG_BINARY: str = "ffmpeg"
    FFPROBE_BINARY: str = "ffprobe"
    MAX_CONCURRENT_TOOLS: int = 3
    DOWNLOAD_TIMEOUT: float = 600.0
    PROBE_TIMEOUT: float = 30.0
    TRANSCODE_TIMEOUT: float = 900.0
    DOWNLOAD_ATTEMPTS: int = 2
    PROBE_ATTEMPTS: int = 2
    RETRY_DELAY: float = 2.0

    POLLING_TIMEOUT: int = 60

    @property
    def USE_LOCAL_SERVER(self) -> bool:
        return bool(self.LOCAL_SERVER_URL)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            env = os.environ

        token = _clean(env.get("TELEGRAM_BOT_TOKEN"))
        if not token:
            raise ConfigError("TELEGRAM_BOT_TOKEN environment variable not set")
        if ":" not in token or not token.split(":")[0].isdigit():
            raise ConfigError("TELEGRAM_BOT_TOKEN format is incorrect (missing ':' or ID is not a number)")

        local_server = _clean(env.get("LOCAL_SERVER_URL")).rstrip("/")
        default_max_mb = LOCAL_MAX_FILE_SIZE_MB if local_server else CLOUD_MAX_FILE_SIZE_MB
        max_file_mb = _number(env, "MAX_FILE_SIZE_MB", default_max_mb, minimum=1)
        target_mb = _number(env, "TARGET_CHUNK_SIZE_MB", 40, minimum=1)
        if target_mb > max_file_mb:
            raise ConfigError("TARGET_CHUNK_SIZE_MB must not exceed MAX_FILE_SIZE_MB")

        return cls(
            BOT_TOKEN=token,
            WHITELIST_USERS=parse_whitelist(_clean(env.get("TELEGRAM_BOT_WHITELIST_USERS"))),
            MEDIA_DIR=Path(_clean(env.get("MEDIA_DIR")) or "media"),
            LOCAL_SERVER_URL=local_server,
            MAX_FILE_SIZE=int(max_file_mb * MB),
            TARGET_CHUNK_SIZE=int(target_mb * MB),
            MIN_CHUNK_DURATION=_number(env, "MIN_CHUNK_DURATION", 30.0, minimum=1),
            FFMPEG_BINARY=_clean(env.get("FFMPEG_BINARY")) or "ffmpeg",
            FFPROBE_BINARY=_clean(env.get("FFPROBE_BINARY")) or "ffprobe",
            MAX_CONCURRENT_TOOLS=_number(env, "MAX_CONCURRENT_TOOLS", 3, cast=int, minimum=1),
            DOWNLOAD_TIMEOUT=_number(env, "DOWNLOAD_TIMEOUT", 600.0, minimum=1),
            PROBE_TIMEOUT=_number(env, "PROBE_TIMEOUT", 30.0, minimum=1),
            TRANSCODE_TIMEOUT=_number(env, "TRANSCODE_TIMEOUT", 900.0, minimum=1),
            DOWNLOAD_ATTEMPTS=_number(env, "DOWNLOAD_ATTEMPTS", 2, cast=int, minimum=1),
            PROBE_ATTEMPTS=_number(env, "PROBE_ATTEMPTS", 2, cast=int, minimum=1),
            RETRY_DELAY=_number(env, "RETRY_DELAY", 2.0, minimum=0),
        )


def ensure_media_dir(settings: Settings) -> Path:
    try:
        settings.MEDIA_DIR.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Failed to create media directory {settings.MEDIA_DIR}: {e}")
    return settings.MEDIA_DIR


def write_env_template(path: Path = ENV_PATH) -> bool:
    """Creates a .env template for first-time local runs."""
    if path.exists() or os.path.exists("/.dockerenv"):
        return False
    try:
        path.write_text(ENV_TEMPLATE, encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not create .env template at {path}: {e}")
        return False
    logger.info(f"Created missing .env template: {path}")
    return True
