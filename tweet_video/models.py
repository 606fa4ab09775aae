from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


@dataclass(frozen=True)
class NetworkCall:
    """An outgoing call as seen by the interception layer."""

    url: str
    method: str = "GET"


@dataclass(frozen=True)
class VideoVariant:
    """One progressive MP4 rendition of a post's video."""

    bitrate: int
    url: str
    resolution: str

    def to_dict(self) -> dict[str, Any]:
        return {"bitrate": self.bitrate, "url": self.url, "resolution": self.resolution}


ExtractionResult = Dict[str, List[VideoVariant]]
