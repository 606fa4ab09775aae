from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping

from .errors import CaptureError
from .models import NetworkCall


@dataclass(frozen=True)
class CapturedResponse:
    call: NetworkCall
    body: str


@dataclass(frozen=True)
class Capture:
    """A loaded capture file: either HAR entries or a single JSON document."""

    path: Path
    responses: tuple[CapturedResponse, ...] = ()
    document: Any = None
    is_har: bool = False


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise CaptureError(f"Capture file not found: {path}")

    try:
        raw_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CaptureError(f"Failed to read capture file: {path}") from e

    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise CaptureError(f"Capture file is not valid JSON: {path}: {e}") from e


def _is_har(data: Any) -> bool:
    if not isinstance(data, Mapping):
        return False
    log = data.get("log")
    return isinstance(log, Mapping) and isinstance(log.get("entries"), list)


def _decode_content(content: Mapping[str, Any]) -> str | None:
    text = content.get("text")
    if not isinstance(text, str) or not text:
        return None

    encoding = content.get("encoding")
    if not isinstance(encoding, str) or encoding.strip().lower() != "base64":
        return text

    try:
        return base64.b64decode(text).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def iter_har_responses(data: Mapping[str, Any]) -> Iterator[CapturedResponse]:
    """
    Yield `(call, body)` pairs for HAR entries that recorded a response body.

    Entries without a URL or body are skipped; browsers omit bodies for
    redirects, cached and aborted requests.
    """
    for entry in data["log"]["entries"]:
        if not isinstance(entry, Mapping):
            continue

        request = entry.get("request")
        response = entry.get("response")
        if not isinstance(request, Mapping) or not isinstance(response, Mapping):
            continue

        url = request.get("url")
        if not isinstance(url, str) or not url:
            continue
        method = request.get("method")
        method = method.upper() if isinstance(method, str) and method else "GET"

        content = response.get("content")
        if not isinstance(content, Mapping):
            continue
        body = _decode_content(content)
        if body is None:
            continue

        yield CapturedResponse(call=NetworkCall(url=url, method=method), body=body)


def load_capture(path: str | Path) -> Capture:
    p = Path(path)
    data = _read_json(p)

    if _is_har(data):
        return Capture(path=p, responses=tuple(iter_har_responses(data)), is_har=True)
    return Capture(path=p, document=data)
