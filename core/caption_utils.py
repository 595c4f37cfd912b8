from __future__ import annotations

from core.config import MB


def format_size_mb(size_bytes: int) -> str:
    return f"{size_bytes / MB:.1f}MB"


def chunk_caption(index: int, total: int, size_bytes: int) -> str:
    """Caption for chunk `index` (1-based), e.g. 'Part 2/3 (38.4MB)'."""
    return f"Part {index}/{total} ({format_size_mb(size_bytes)})"
