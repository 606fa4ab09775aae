from __future__ import annotations

import re

from .config_schema import DEFAULT_FOLDER, sanitize_folder
from .models import VideoVariant

_DOWNLOAD_INVALID_RE = re.compile(r"[^a-zA-Z0-9\-_ /\\]")
_UNDERSCORE_RUN_RE = re.compile(r"_{2,}")
_EDGE_SEPARATORS_RE = re.compile(r"^[\s/\\]+|[\s/\\]+$")


def format_bitrate(bitrate: int) -> str:
    if bitrate >= 1_000_000:
        return f"{bitrate / 1_000_000:.1f} Mbps"
    if bitrate >= 1_000:
        return f"{int(bitrate / 1_000 + 0.5)} kbps"
    return f"{bitrate} bps"


def sanitize_download_folder(raw: str | None) -> str:
    """
    Apply the folder rules used when a download is actually started.

    Anything outside ASCII letters, digits, `-`, `_`, space and slashes
    becomes `_`, underscore runs collapse, edge whitespace and slashes are
    trimmed. An empty result falls back to DEFAULT_FOLDER.
    """
    if not raw or not raw.strip():
        return DEFAULT_FOLDER
    value = _DOWNLOAD_INVALID_RE.sub("_", raw)
    value = _UNDERSCORE_RUN_RE.sub("_", value)
    value = _EDGE_SEPARATORS_RE.sub("", value)
    return value or DEFAULT_FOLDER


def download_filename(post_id: str, variant: VideoVariant) -> str:
    return f"tweet_{post_id}_{variant.resolution}.mp4"


def download_path(folder: str | None, post_id: str, variant: VideoVariant) -> str:
    """Relative path a downloader should save `variant` under."""
    folder_name = sanitize_download_folder(sanitize_folder(folder))
    return f"{folder_name}/{download_filename(post_id, variant)}"
