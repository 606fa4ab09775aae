from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PATH_PATTERNS: tuple[str, ...] = (
    "/TweetDetail",
    "/TweetResultByRestId",
    "/graphql/",
    "/i/api/graphql/",
)
DEFAULT_FOLDER = "TweetVideos"

_FOLDER_INVALID_RE = re.compile(r'[<>:"|?*\\]')


def _normalize_pattern_list(values: list[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()

    for item in values:
        pattern = (item or "").strip()
        if not pattern or pattern in seen:
            continue
        seen.add(pattern)
        out.append(pattern)

    if not out:
        raise ValueError("must contain at least one non-empty pattern")
    return out


def sanitize_folder(raw: str | None) -> str:
    """
    Clean a download folder name the way the extension popup does.

    Invalid path characters are removed, surrounding whitespace and slashes
    are trimmed, and an empty result falls back to DEFAULT_FOLDER.
    """
    value = (raw or "").strip()
    value = _FOLDER_INVALID_RE.sub("", value)
    value = value.strip("/")
    return value or DEFAULT_FOLDER


class InterceptConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_PATH_PATTERNS))
    keyword: str = "tweet"  # empty disables the keyword match

    @field_validator("path_patterns")
    @classmethod
    def _normalize_patterns(cls, v: list[str]) -> list[str]:
        return _normalize_pattern_list(v)

    @field_validator("keyword")
    @classmethod
    def _strip_keyword(cls, v: str) -> str:
        return (v or "").strip()


class VariantsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    content_type: str = "video/mp4"
    require_url: bool = True

    @field_validator("content_type")
    @classmethod
    def _content_type_non_empty(cls, v: str) -> str:
        ct = (v or "").strip()
        if not ct:
            raise ValueError("must be a non-empty MIME type")
        return ct


class ChannelConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    message_type: str = "VIDEO_DATA"
    target_origin: str = "*"

    @field_validator("message_type", "target_origin")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        s = (v or "").strip()
        if not s:
            raise ValueError("must be non-empty")
        return s


class DownloadsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    folder: str = DEFAULT_FOLDER

    @field_validator("folder")
    @classmethod
    def _sanitize(cls, v: str) -> str:
        return sanitize_folder(v)


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    intercept: InterceptConfig = Field(default_factory=InterceptConfig)
    variants: VariantsConfig = Field(default_factory=VariantsConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    downloads: DownloadsConfig = Field(default_factory=DownloadsConfig)
