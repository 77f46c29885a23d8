"""Per-user settings for the CLI; currently only the remembered player name."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict

from crtz.services.script_service import DEFAULT_PLAYER_NAME


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        return (Path(base) if base else Path.home()) / "CRTZ"
    return Path.home() / ".config" / "crtz"


def get_default_config_path() -> Path:
    return get_user_data_dir() / "config.json"


def _player_name_from(raw: object) -> str:
    """Pull a usable player name out of decoded JSON, falling back to the default."""
    value = raw.get("player_name") if isinstance(raw, dict) else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_PLAYER_NAME


def load_config(path: Path | None = None) -> Dict[str, str]:
    """Load config from disk; a missing or malformed file yields the defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        raw = None
    return {"player_name": _player_name_from(raw)}


def save_config(config: Dict[str, str], path: Path | None = None) -> None:
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"player_name": _player_name_from(config)}
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
