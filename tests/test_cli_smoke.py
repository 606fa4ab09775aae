from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

_TWEET_DETAIL = {
    "data": {
        "threaded_conversation_with_injections_v2": {
            "instructions": [
                {
                    "entries": [
                        {
                            "content": {
                                "itemContent": {
                                    "tweet_results": {
                                        "result": {
                                            "rest_id": "1790000000000000001",
                                            "legacy": {
                                                "extended_entities": {
                                                    "media": [
                                                        {
                                                            "type": "video",
                                                            "video_info": {
                                                                "variants": [
                                                                    {
                                                                        "content_type": "video/mp4",
                                                                        "bitrate": 832000,
                                                                        "url": "https://video.twimg.com/ext_tw_video/1/pu/vid/640x360/a.mp4",
                                                                    },
                                                                    {
                                                                        "content_type": "video/mp4",
                                                                        "bitrate": 2176000,
                                                                        "url": "https://video.twimg.com/ext_tw_video/1/pu/vid/1280x720/b.mp4",
                                                                    },
                                                                ]
                                                            },
                                                        }
                                                    ]
                                                }
                                            },
                                        }
                                    }
                                }
                            }
                        }
                    ]
                }
            ]
        }
    }
}


def _run(repo_root: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    existing_pp = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = (
        f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
    )
    return subprocess.run(
        [sys.executable, "-m", "tweet_video", *args],
        cwd=repo_root,
        env=env,
        capture_output=True,
        text=True,
    )


class TestCLISmoke(unittest.TestCase):
    def setUp(self) -> None:
        self.repo_root = Path(__file__).resolve().parents[1]

    def test_extract_har_jsonl(self) -> None:
        har = {
            "log": {
                "entries": [
                    {
                        "request": {
                            "method": "GET",
                            "url": "https://x.com/i/api/graphql/abc/TweetDetail",
                        },
                        "response": {"content": {"text": json.dumps(_TWEET_DETAIL)}},
                    },
                    {
                        "request": {"method": "GET", "url": "https://example.com/feed.json"},
                        "response": {"content": {"text": json.dumps(_TWEET_DETAIL)}},
                    },
                ]
            }
        }

        with tempfile.TemporaryDirectory() as td:
            har_path = Path(td) / "session.har"
            har_path.write_text(json.dumps(har), encoding="utf-8")
            log_path = Path(td) / "events.jsonl"

            proc = _run(self.repo_root, "extract", str(har_path), "--log", str(log_path))

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            events = [
                json.loads(ln)["event"]
                for ln in log_path.read_text(encoding="utf-8").splitlines()
                if ln.strip()
            ]

        messages = [json.loads(ln) for ln in proc.stdout.splitlines() if ln.strip()]
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0]["postIdentifier"], "1790000000000000001")
        self.assertEqual(
            [v["resolution"] for v in messages[0]["variants"]], ["1280p", "640p"]
        )
        self.assertIn("posts=1", proc.stderr)
        self.assertIn("extract_started", events)
        self.assertIn("extract_completed", events)

    def test_extract_plain_json_table(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            body_path = Path(td) / "body.json"
            body_path.write_text(json.dumps(_TWEET_DETAIL), encoding="utf-8")

            proc = _run(self.repo_root, "extract", str(body_path), "--format", "table")

        self.assertEqual(proc.returncode, 0, msg=proc.stderr)
        rows = [ln.split("\t") for ln in proc.stdout.splitlines() if ln.strip()]
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0][1], "1280p")
        self.assertEqual(rows[0][2], "2.2 Mbps")
        self.assertEqual(rows[0][3], "TweetVideos/tweet_1790000000000000001_1280p.mp4")

    def test_missing_capture_exits_3(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run(self.repo_root, "extract", str(Path(td) / "nope.har"))
        self.assertEqual(proc.returncode, 3, msg=proc.stderr)

    def test_bad_config_exits_2(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "config.yaml"
            cfg.write_text("variants:\n  nope: true\n", encoding="utf-8")
            proc = _run(self.repo_root, "check-url", "https://x.com", "--config", str(cfg))
        self.assertEqual(proc.returncode, 2)
        self.assertIn("variants.nope", proc.stderr)

    def test_check_url(self) -> None:
        proc = _run(
            self.repo_root,
            "check-url",
            "https://x.com/i/api/graphql/q/UserTweets",
            "https://example.com/assets/logo.png",
        )
        self.assertEqual(proc.returncode, 0, msg=proc.stderr)
        self.assertEqual(
            proc.stdout.splitlines(),
            [
                "true\thttps://x.com/i/api/graphql/q/UserTweets",
                "false\thttps://example.com/assets/logo.png",
            ],
        )


if __name__ == "__main__":
    unittest.main()
