from __future__ import annotations

import json
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class EventLog:
    """
    JSON-lines event log for interception sessions.

    Every record is one JSON object per line (`ts`, `level`, `event`,
    `session_id`, plus optional `url` and `data`), so a capture run can be
    audited with ordinary line tools. DEBUG records are dropped unless the
    log was opened with `verbose=True`.
    """

    def __init__(
        self,
        stream: TextIO,
        *,
        verbose: bool = False,
        session_id: str | None = None,
        owns_stream: bool = False,
    ) -> None:
        self._fp: TextIO | None = stream
        self._verbose = bool(verbose)
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._owns_stream = owns_stream
        self._lock = Lock()

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        overwrite: bool = True,
        verbose: bool = False,
        session_id: str | None = None,
    ) -> "EventLog":
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        fp = p.open("w" if overwrite else "a", encoding="utf-8", newline="\n")
        return cls(fp, verbose=verbose, session_id=session_id, owns_stream=True)

    @classmethod
    def to_stream(
        cls,
        stream: TextIO | None = None,
        *,
        verbose: bool = False,
        session_id: str | None = None,
    ) -> "EventLog":
        return cls(stream or sys.stderr, verbose=verbose, session_id=session_id)

    @property
    def session_id(self) -> str:
        return self._session_id

    def close(self) -> None:
        with self._lock:
            if self._fp is None:
                return
            try:
                self._fp.flush()
            finally:
                if self._owns_stream:
                    self._fp.close()
                self._fp = None

    def __enter__(self) -> "EventLog":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def debug(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("DEBUG", event, url=url, **data)

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("INFO", event, url=url, **data)

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("WARN", event, url=url, **data)

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("ERROR", event, url=url, **data)

    def exception(
        self,
        event: str,
        *,
        exc: BaseException,
        url: str | None = None,
        level: str = "ERROR",
        **data: Any,
    ) -> None:
        err = {
            "type": type(exc).__name__,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                limit=8000,
            ),
        }
        self.log(level, event, url=url, error=err, **data)

    def log(self, level: str, event: str, *, url: str | None = None, **data: Any) -> None:
        lvl = (level or "").strip().upper() or "INFO"
        if lvl not in _LEVELS:
            lvl = "INFO"
        if lvl == "DEBUG" and not self._verbose:
            return

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": lvl,
            "event": (event or "").strip() or "event",
            "session_id": self._session_id,
        }

        u = (url or "").strip()
        if u:
            record["url"] = u

        if data:
            record["data"] = data

        self._write(record)

    def _write(self, record: dict[str, Any]) -> None:
        payload = json.dumps(
            record,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

        with self._lock:
            if self._fp is None:
                return
            self._fp.write(payload + "\n")
            self._fp.flush()
