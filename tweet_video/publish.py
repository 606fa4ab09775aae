from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from .config_schema import ChannelConfig
from .models import VideoVariant

PostMessageFn = Callable[[Mapping[str, Any], str], None]


def video_data_message(
    post_id: str,
    variants: Sequence[VideoVariant],
    *,
    message_type: str = "VIDEO_DATA",
) -> dict[str, Any]:
    return {
        "type": message_type,
        "postIdentifier": post_id,
        "variants": [v.to_dict() for v in variants],
    }


class Publisher:
    """
    Broadcasts extraction results to whatever consumer listens on the sink.

    One message per post with at least one variant. Delivery is
    fire-and-forget; consumers keep the last message seen per post.
    """

    def __init__(self, post_message: PostMessageFn, *, config: ChannelConfig | None = None) -> None:
        self._post_message = post_message
        self._config = config or ChannelConfig()

    def publish(self, result: Mapping[str, Sequence[VideoVariant]]) -> int:
        sent = 0
        for post_id, variants in result.items():
            if not variants:
                continue
            message = video_data_message(
                post_id, variants, message_type=self._config.message_type
            )
            self._post_message(message, self._config.target_origin)
            sent += 1
        return sent
