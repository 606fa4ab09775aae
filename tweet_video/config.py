from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Interception config not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read interception config {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Interception config {path} is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Interception config {path} must be a mapping with sections such as "
            "intercept, variants, channel, downloads"
        )
    return data


def load_config(path: str | Path | None) -> AppConfig:
    """
    Build the AppConfig for an interception session.

    Without a path every section uses its defaults (the stock GraphQL path
    list, MP4-only variants, `VIDEO_DATA` messages). Sections left out of the
    file fall back the same way; unknown keys are rejected.
    """
    if path is None:
        return AppConfig()

    p = Path(path)
    data = _read_yaml_mapping(p)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_describe_validation_errors(e, p)) from e


def config_sha256(config: AppConfig) -> str:
    """Digest of the effective settings, logged so two runs can be compared."""
    canonical = json.dumps(
        config.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _describe_validation_errors(err: ValidationError, path: Path) -> str:
    problems = [
        f"- {'.'.join(str(part) for part in item.get('loc', ())) or '<root>'}: "
        f"{item.get('msg', 'invalid value')}"
        for item in err.errors()
    ]
    return "\n".join([f"Interception config {path} has {len(problems)} problem(s):", *problems])
