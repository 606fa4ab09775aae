from __future__ import annotations

import argparse
import json
import sys
from contextlib import nullcontext
from typing import Any, Mapping, Sequence

from .cache import VideoDataCache
from .capture import load_capture
from .config import config_sha256, load_config
from .config_schema import AppConfig
from .errors import CaptureError, ConfigError
from .event_log import EventLog
from .extract import collect_posts_with_video
from .intercept import Interceptor, should_intercept
from .naming import download_path, format_bitrate
from .publish import Publisher


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tweet_video")

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser(
        "extract",
        help="Replay HAR exports or JSON response bodies and list video variants.",
    )
    extract.add_argument(
        "files",
        nargs="+",
        help="HAR files or raw JSON response bodies.",
    )
    extract.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (defaults are used when omitted).",
    )
    extract.add_argument(
        "--format",
        choices=("jsonl", "table"),
        default="jsonl",
        help="Print channel messages as JSON lines, or a readable table.",
    )
    extract.add_argument(
        "--log",
        default=None,
        help="Write a JSON-lines event log to this path.",
    )
    extract.add_argument(
        "--verbose",
        action="store_true",
        help="Include per-call debug events in the log.",
    )
    extract.set_defaults(_handler=_cmd_extract)

    check = subparsers.add_parser(
        "check-url",
        help="Show whether URLs would be intercepted.",
    )
    check.add_argument("urls", nargs="+")
    check.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (defaults are used when omitted).",
    )
    check.set_defaults(_handler=_cmd_check_url)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _print_table(cache: VideoDataCache, cfg: AppConfig) -> None:
    for post_id in cache.post_ids():
        for v in cache.get(post_id):
            path = download_path(cfg.downloads.folder, post_id, v)
            print("\t".join([post_id, v.resolution, format_bitrate(v.bitrate), path, v.url]))


def _cmd_extract(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)

    log_cm: Any = (
        EventLog.open(args.log, verbose=bool(args.verbose)) if args.log else nullcontext(None)
    )
    with log_cm as log:
        if log is not None:
            log.info(
                "extract_started",
                files=[str(f) for f in args.files],
                config_path=args.config,
                config_sha256=config_sha256(cfg),
            )

        messages: list[Mapping[str, Any]] = []
        cache = VideoDataCache(message_type=cfg.channel.message_type)

        def _post_message(message: Mapping[str, Any], target_origin: str) -> None:
            messages.append(message)
            cache.receive(message, target_origin)

        publisher = Publisher(_post_message, config=cfg.channel)
        interceptor = Interceptor(
            publisher,
            config=cfg.intercept,
            variants=cfg.variants,
            logger=log,
        )

        try:
            for path in args.files:
                capture = load_capture(path)
                if capture.is_har:
                    for captured in capture.responses:
                        interceptor.observe(captured.call, captured.body)
                else:
                    publisher.publish(
                        collect_posts_with_video(capture.document, config=cfg.variants)
                    )

                if log is not None:
                    log.info(
                        "capture_processed",
                        path=str(capture.path),
                        har=capture.is_har,
                        responses=len(capture.responses),
                    )
        except Exception as e:
            if log is not None:
                log.exception("extract_failed", exc=e)
            raise

        if args.format == "table":
            _print_table(cache, cfg)
        else:
            for message in messages:
                print(json.dumps(message, ensure_ascii=False, sort_keys=True))

        if log is not None:
            log.info("extract_completed", messages=len(messages), posts=len(cache))

    _eprint(f"posts={len(cache)}")
    return 0


def _cmd_check_url(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    for url in args.urls:
        matched = should_intercept(url, config=cfg.intercept)
        print(f"{'true' if matched else 'false'}\t{url}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except CaptureError as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
