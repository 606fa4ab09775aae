from __future__ import annotations

from typing import Any, Mapping, Optional

from .config_schema import VariantsConfig
from .models import ExtractionResult, JsonValue, VideoVariant
from .normalize import extract_variants
from .tree import JsonVisitor

_ID_FIELDS: tuple[str, ...] = ("rest_id", "id_str")

# (container, list owner) pairs, in the order their media is considered.
_MEDIA_PATHS: tuple[tuple[str | None, str], ...] = (
    ("legacy", "extended_entities"),
    ("legacy", "entities"),
    (None, "extended_entities"),
    (None, "entities"),
)


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value else None
    if isinstance(value, int):
        return str(value) if value else None
    return None


def post_identifier(node: Mapping[str, Any]) -> str | None:
    """Return the post id carried directly by `node`, if any."""
    for key in _ID_FIELDS:
        post_id = _coerce_id(node.get(key))
        if post_id is not None:
            return post_id
    return None


def has_video_info(node: Mapping[str, Any]) -> bool:
    return bool(node.get("video_info"))


def media_descriptors(post: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """
    Gather media entries from every known location on a post object.

    Nested `legacy` lists come first, then the post's own top-level lists.
    """
    out: list[Mapping[str, Any]] = []

    for container_key, owner_key in _MEDIA_PATHS:
        container: Any = post
        if container_key is not None:
            container = post.get(container_key)
        if not isinstance(container, Mapping):
            continue

        owner = container.get(owner_key)
        if not isinstance(owner, Mapping):
            continue

        media = owner.get("media")
        if isinstance(media, list):
            out.extend(item for item in media if isinstance(item, Mapping))

    return out


class _PostVisitor(JsonVisitor[None]):
    def __init__(self, config: VariantsConfig | None) -> None:
        self._config = config
        self.results: ExtractionResult = {}
        self._seen_urls: dict[str, set[str]] = {}

    def visit_object(self, node: Mapping[str, Any], context: None) -> None:
        post_id = post_identifier(node)
        if post_id is not None:
            self._collect(post_id, node)
        return context

    def _collect(self, post_id: str, post: Mapping[str, Any]) -> None:
        seen = self._seen_urls.setdefault(post_id, set())

        for media in media_descriptors(post):
            if not has_video_info(media):
                continue
            for variant in extract_variants(media["video_info"], config=self._config):
                if variant.url in seen:
                    continue
                seen.add(variant.url)
                self.results.setdefault(post_id, []).append(variant)


class _OrphanVisitor(JsonVisitor[Optional[str]]):
    def __init__(self, claimed: Mapping[str, Any], config: VariantsConfig | None) -> None:
        self._claimed = claimed
        self._config = config
        self.results: ExtractionResult = {}

    def visit_object(self, node: Mapping[str, Any], context: str | None) -> str | None:
        post_id = post_identifier(node) or context

        if (
            post_id is not None
            and has_video_info(node)
            and post_id not in self._claimed
            and post_id not in self.results
        ):
            variants = extract_variants(node["video_info"], config=self._config)
            if variants:
                self.results[post_id] = variants

        return post_id


def collect_posts_with_video(
    root: JsonValue, *, config: VariantsConfig | None = None
) -> dict[str, list[VideoVariant]]:
    """
    Map post ids to their MP4 variants (best first) found anywhere in `root`.

    Pass one reads the media lists of every object carrying `rest_id` or
    `id_str`, de-duplicating by URL per post. Pass two picks up `video_info`
    nodes sitting elsewhere under a post and assigns them to the nearest
    ancestor id, but only for ids the first pass left empty.
    """
    primary = _PostVisitor(config)
    primary.walk(root, None)

    orphans = _OrphanVisitor(primary.results, config)
    orphans.walk(root, None)

    results: ExtractionResult = dict(primary.results)
    results.update(orphans.results)
    return results
