from __future__ import annotations

from .cache import VideoDataCache
from .config import config_sha256, load_config
from .config_schema import AppConfig
from .errors import CaptureError, ConfigError
from .extract import collect_posts_with_video
from .intercept import Interceptor, should_intercept
from .models import NetworkCall, VideoVariant
from .normalize import bitrate_to_quality, extract_resolution, extract_variants
from .publish import Publisher

__all__ = [
    "AppConfig",
    "CaptureError",
    "ConfigError",
    "Interceptor",
    "NetworkCall",
    "Publisher",
    "VideoDataCache",
    "VideoVariant",
    "bitrate_to_quality",
    "collect_posts_with_video",
    "config_sha256",
    "extract_resolution",
    "extract_variants",
    "load_config",
    "should_intercept",
]
