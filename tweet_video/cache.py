from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import VideoVariant


class VariantPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    bitrate: int = Field(0, ge=0)
    url: str
    resolution: str

    def to_variant(self) -> VideoVariant:
        return VideoVariant(bitrate=self.bitrate, url=self.url, resolution=self.resolution)


class VideoDataMessage(BaseModel):
    """Wire shape of a channel message, as received by a consumer."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    type: str
    post_identifier: str = Field(alias="postIdentifier", min_length=1)
    variants: list[VariantPayload]


class VideoDataCache:
    """
    Consumer-side store of the latest variants seen per post.

    Messages of another type or with an unexpected shape are ignored. A
    later message for the same post replaces the earlier one.
    """

    def __init__(self, *, message_type: str = "VIDEO_DATA") -> None:
        self._message_type = message_type
        self._variants: dict[str, list[VideoVariant]] = {}

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, post_id: object) -> bool:
        return post_id in self._variants

    def receive(self, message: Any, _target_origin: str = "*") -> bool:
        """Store `message` if it is a video data message; return whether it was."""
        if not isinstance(message, Mapping) or message.get("type") != self._message_type:
            return False

        try:
            parsed = VideoDataMessage.model_validate(message)
        except ValidationError:
            return False

        self._variants[parsed.post_identifier] = [v.to_variant() for v in parsed.variants]
        return True

    def get(self, post_id: str) -> list[VideoVariant]:
        variants = self._variants.get(post_id) or []
        return sorted(variants, key=lambda v: v.bitrate, reverse=True)

    def best(self, post_id: str) -> VideoVariant | None:
        variants = self.get(post_id)
        return variants[0] if variants else None

    def post_ids(self) -> list[str]:
        return list(self._variants)
