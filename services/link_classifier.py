import re
from typing import Optional

# (platform, pattern). Order matters: first match wins.
SUPPORTED_PATTERNS = [
    # YouTube
    ("YouTube", r"youtube\.com/watch"),
    ("YouTube", r"youtu\.be/"),
    ("YouTube", r"youtube\.com/embed/"),
    ("YouTube", r"youtube\.com/v/"),
    ("YouTube", r"youtube\.com/shorts/"),
    # Instagram
    ("Instagram", r"instagram\.com/p/"),
    ("Instagram", r"instagram\.com/reel/"),
    ("Instagram", r"instagram\.com/tv/"),
    ("Instagram", r"instagram\.com/stories/"),
    # TikTok
    ("TikTok", r"tiktok\.com/"),
    ("TikTok", r"vm\.tiktok\.com/"),
    # Reddit
    ("Reddit", r"reddit\.com/r/.*/comments/"),
    ("Reddit", r"v\.redd\.it/"),
    # Twitter / X
    ("Twitter", r"twitter\.com/.*/status/"),
    ("Twitter", r"x\.com/.*/status/"),
    # Facebook
    ("Facebook", r"facebook\.com/.*/videos/"),
    ("Facebook", r"fb\.watch/"),
    # Twitch
    ("Twitch", r"twitch\.tv/"),
    ("Twitch", r"clips\.twitch\.tv/"),
    # Vimeo
    ("Vimeo", r"vimeo\.com/"),
    # Dailymotion
    ("Dailymotion", r"dailymotion\.com/video/"),
]

_COMPILED = [(platform, re.compile(pattern)) for platform, pattern in SUPPORTED_PATTERNS]

URL_REGEX = re.compile(r"https?://\S+", re.IGNORECASE)


def detect_platform(text: str) -> Optional[str]:
    """Name of the first platform whose link shape appears in text."""
    if not text:
        return None
    for platform, pattern in _COMPILED:
        if pattern.search(text):
            return platform
    return None


def is_supported_url(text: str) -> bool:
    return detect_platform(text) is not None


def extract_url(text: str) -> Optional[str]:
    """First http(s) token in text that points at a supported platform."""
    for match in URL_REGEX.finditer(text or ""):
        candidate = match.group(0).rstrip(".,;:!?)]}>")
        if is_supported_url(candidate):
            return candidate
    return None
