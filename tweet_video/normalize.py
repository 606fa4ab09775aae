from __future__ import annotations

import re
from typing import Any, Mapping

from .config_schema import VariantsConfig
from .models import VideoVariant

_RESOLUTION_RE = re.compile(r"/(\d{2,4})x(\d{2,4})/", re.ASCII)

# Exclusive upper bounds, ascending.
_QUALITY_BANDS: tuple[tuple[int, str], ...] = (
    (400_000, "360p"),
    (900_000, "480p"),
    (3_000_000, "720p"),
    (6_000_000, "1080p"),
)
_TOP_QUALITY = "4K"

_DEFAULT_VARIANTS = VariantsConfig()


def _coerce_bitrate(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value > 0 else 0
    if isinstance(value, float):
        return int(value) if value > 0 else 0
    return 0


def _coerce_url(value: Any) -> str | None:
    if isinstance(value, str):
        return value if value.strip() else None
    return None


def bitrate_to_quality(bitrate: int) -> str:
    for upper, label in _QUALITY_BANDS:
        if bitrate < upper:
            return label
    return _TOP_QUALITY


def extract_resolution(url: str, bitrate: int) -> str:
    """
    Derive a display label such as "720p" for a variant.

    A `/WIDTHxHEIGHT/` path segment wins over the bitrate bands; the larger
    dimension is used so portrait videos are not under-reported.
    """
    m = _RESOLUTION_RE.search(url or "")
    if m:
        return f"{max(int(m.group(1)), int(m.group(2)))}p"
    return bitrate_to_quality(bitrate or 0)


def extract_variants(
    video_info: Any, *, config: VariantsConfig | None = None
) -> list[VideoVariant]:
    """
    Turn a raw `video_info` structure into MP4 variants, best first.

    Never raises: anything that does not look like a variant list yields [].
    """
    cfg = config or _DEFAULT_VARIANTS

    if not isinstance(video_info, Mapping):
        return []
    raw_variants = video_info.get("variants")
    if not isinstance(raw_variants, list):
        return []

    out: list[VideoVariant] = []
    for item in raw_variants:
        if not isinstance(item, Mapping):
            continue
        if item.get("content_type") != cfg.content_type:
            continue

        url = _coerce_url(item.get("url"))
        if url is None:
            if cfg.require_url:
                continue
            url = ""

        bitrate = _coerce_bitrate(item.get("bitrate"))
        out.append(
            VideoVariant(
                bitrate=bitrate,
                url=url,
                resolution=extract_resolution(url, bitrate),
            )
        )

    out.sort(key=lambda v: v.bitrate, reverse=True)
    return out
