"""Data layer utilities for loading script files."""

from .errors import DataError, ScriptLoadError
from .paths import get_repo_root, get_scripts_path
from .script_loader import load_script

__all__ = [
    "DataError",
    "ScriptLoadError",
    "get_repo_root",
    "get_scripts_path",
    "load_script",
]
