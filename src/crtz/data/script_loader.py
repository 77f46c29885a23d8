"""Low-level helpers for reading script files."""
from __future__ import annotations

from pathlib import Path

from .errors import ScriptLoadError


def load_script(path: Path | str) -> str:
    """Read a UTF-8 script from disk and raise ScriptLoadError on failure."""
    script_path = Path(path)
    try:
        return script_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ScriptLoadError(f"Script file not found: {script_path}") from exc
    except UnicodeDecodeError as exc:
        raise ScriptLoadError(f"Script file is not valid UTF-8: {script_path}") from exc
    except OSError as exc:
        raise ScriptLoadError(f"Unable to read script file: {script_path}") from exc
