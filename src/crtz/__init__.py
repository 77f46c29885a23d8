"""CRTZ dialogue-script interpreter."""

from .services.script_service import run_script, run_source

__all__ = ["run_script", "run_source"]
