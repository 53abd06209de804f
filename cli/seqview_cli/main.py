"""Main entry point for seqview CLI."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from seqview.config import config
from seqview.kernel.engine import SeqViewEngine
from seqview.kernel.persistence import JsonFileKeyValueStore
from seqview.kernel.renderer import TextSurface
from seqview_cli import __version__
from seqview_cli.repl import Repl


def print_help():
    """Print help message."""
    print(f"""
seqview CLI v{__version__}

Usage:
  seqview [options] [FILE]

Options:
  --state FILE      Where filters and selection are saved
                    (default: ~/.seqview/state.json)
  --page-size N     Signals per page when no saved state exists (0 = off)
  --reset           Start with default filters
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  SEQVIEW_STATE_FILE   Same as --state
  SEQVIEW_PAGE_SIZE    Same as --page-size
  SEQVIEW_LOG_LEVEL    Logging level (default: WARNING)

Type /help inside the REPL for its commands.
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        source: str | None
        state: str | None
        page_size: int | None
        reset: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "source": None,
        "state": None,
        "page_size": None,
        "reset": False,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--state":
            if i + 1 < len(args):
                result["state"] = args[i + 1]
                i += 1
            else:
                print("Error: --state requires a file")
                sys.exit(1)
        elif arg == "--page-size":
            if i + 1 < len(args) and args[i + 1].isdigit():
                result["page_size"] = int(args[i + 1])
                i += 1
            else:
                print("Error: --page-size requires a number")
                sys.exit(1)
        elif arg == "--reset":
            result["reset"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'seqview --help' for usage.")
            sys.exit(1)
        elif result["source"] is None:
            result["source"] = arg
        else:
            print(f"Unexpected argument: {arg}")
            print("Run 'seqview --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def build_engine(state: str | Path, page_size: int | None = None, reset: bool = False) -> tuple[SeqViewEngine, TextSurface]:
    """Engine wired to a state file and a text surface."""
    surface = TextSurface()
    engine = SeqViewEngine(JsonFileKeyValueStore(state), surface=surface)
    fresh = engine.settings.is_fresh

    if reset:
        engine.reset()
    if page_size is not None or (fresh and config.PAGE_SIZE):
        engine.set_page_size(page_size if page_size is not None else config.PAGE_SIZE)
    return engine, surface


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"seqview {__version__}")
        return

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    engine, surface = build_engine(
        args["state"] or config.STATE_FILE,
        page_size=args["page_size"],
        reset=args["reset"],
    )

    source = Path(args["source"]) if args["source"] else None
    repl = Repl(engine, surface, source)
    repl.start()


if __name__ == "__main__":
    main()
