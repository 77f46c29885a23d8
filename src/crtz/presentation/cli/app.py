"""Console entry point for running CRTZ scripts."""
from __future__ import annotations

import argparse
import sys
from typing import Sequence

from crtz.data.errors import ScriptLoadError
from crtz.presentation.cli.config import load_config, save_config
from crtz.presentation.cli.render import debug_enabled, render_check_report
from crtz.services.graph_check import has_errors
from crtz.services.script_service import check_script, run_script


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crtz", description="Run a CRTZ dialogue script.")
    parser.add_argument("script", help="Path to a .crtz script.")
    parser.add_argument("--debug", action="store_true", help="Start in the interactive debugger.")
    parser.add_argument("--player", help="Player name substituted for [@You].")
    parser.add_argument("--check", action="store_true", help="Parse and lint the script without running it.")
    parser.add_argument(
        "--save-player",
        action="store_true",
        help="Remember the --player name for later runs.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)

    if args.check:
        return _check(args.script)

    config = load_config()
    player_name = args.player or config["player_name"]
    if args.save_player and args.player:
        save_config({"player_name": args.player})

    debug = args.debug or debug_enabled()
    if not run_script(args.script, player_name, debug=debug):
        return 1
    return 0


def _check(path: str) -> int:
    try:
        result, issues = check_script(path)
    except ScriptLoadError:
        print(f"Could not open {path}", file=sys.stderr)
        return 1
    render_check_report(result.diagnostics, issues)
    if result.diagnostics or has_errors(issues):
        return 1
    return 0
