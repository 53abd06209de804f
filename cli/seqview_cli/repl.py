"""REPL for seqview CLI."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from seqview.kernel.engine import SeqViewEngine
from seqview.kernel.renderer import TextSurface

logger = logging.getLogger(__name__)


def _on_off(arg: str | None, current: bool) -> bool:
    if arg and arg.lower() in ("on", "off"):
        return arg.lower() == "on"
    return not current


class Repl:
    """Interactive REPL over one SeqViewEngine."""

    def __init__(self, engine: SeqViewEngine, surface: TextSurface, source: Path | None = None):
        self.engine = engine
        self.surface = surface
        self.source = source
        self.running = True
        self.watch_mode = True

    def start(self):
        """Start the REPL."""
        if self.source:
            self._open(str(self.source))
        else:
            print("seqview > No source loaded. Use /open <file>.")

        while self.running:
            try:
                line = input("seqview > ").strip()

                if not line:
                    continue

                if line.startswith("/"):
                    self._handle_command(line)
                else:
                    # Bare text searches
                    self._find(line)

                if self.watch_mode and self.running:
                    self._view()

            except (EOFError, KeyboardInterrupt):
                print()
                break
            except Exception as e:
                logger.debug("Command failed", exc_info=True)
                print(f"Error: {e}")

    def _handle_command(self, line: str):
        """Handle REPL commands."""
        parts = line.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else None
        engine = self.engine

        if cmd == "/quit":
            self.running = False
            print("Goodbye.")
        elif cmd == "/open":
            if arg:
                self._open(arg)
            else:
                print("Usage: /open <file>")
        elif cmd == "/view":
            self._view()
        elif cmd == "/watch":
            self.watch_mode = _on_off(arg, self.watch_mode)
            print(f"  Watch mode: {'on' if self.watch_mode else 'off'}.")
        elif cmd == "/toggle":
            if arg:
                engine.toggle_participant(arg)
            else:
                print("Usage: /toggle <participant>")
        elif cmd == "/order":
            names = [n.strip() for n in (arg or "").split(",") if n.strip()]
            engine.set_custom_order(names)
        elif cmd in ("/left", "/right"):
            if arg:
                engine.move_participant(arg, -1 if cmd == "/left" else 1)
            else:
                print(f"Usage: {cmd} <participant>")
        elif cmd == "/window":
            self._window(arg)
        elif cmd == "/page":
            self._page(arg)
        elif cmd == "/pagesize":
            engine.set_page_size(int(arg or 0))
        elif cmd == "/go":
            if arg:
                engine.set_cursor(int(arg))
            else:
                print("Usage: /go <seq>")
        elif cmd in ("/down", "/up"):
            n = int(arg) if arg else 1
            engine.move_cursor(n if cmd == "/down" else -n)
        elif cmd == "/find":
            self._find(arg or "")
        elif cmd == "/n":
            self._report_hit(engine.next_hit())
        elif cmd == "/p":
            self._report_hit(engine.prev_hit())
        elif cmd == "/ids":
            engine.set_inline_ids(_on_off(arg, engine.filters.inline_ids))
        elif cmd == "/orphans":
            engine.set_keep_orphans(_on_off(arg, engine.filters.keep_orphans))
        elif cmd == "/instance":
            engine.set_marking(show_instance=_on_off(arg, engine.filters.show_instance))
        elif cmd == "/related":
            engine.set_marking(show_related=_on_off(arg, engine.filters.show_related))
        elif cmd == "/info":
            self._show_info()
        elif cmd == "/reset":
            engine.reset()
            print("  Filters reset.")
        elif cmd == "/clear":
            engine.clear()
            print("  Source and saved state cleared.")
        elif cmd == "/help":
            self._show_help()
        else:
            print(f"Unknown command: {cmd}")
            print("Type /help for available commands.")

    def _open(self, path: str):
        """Load a source file."""
        file = Path(path).expanduser()
        if not file.exists():
            print(f"  No such file: {file}")
            return

        async def read() -> bytes:
            return await asyncio.to_thread(file.read_bytes)

        result = asyncio.run(self.engine.load(read))
        if result is None:
            return
        if result.ok:
            self.source = file
            counts = self.engine.view.counts
            print(f"  Loaded {file.name}: {counts.total} signals.")
        else:
            print(f"  Could not load {file.name}: {result.error}")

    def _view(self):
        """Render the current view in the terminal."""
        if self.engine.error is not None:
            print(f"  {self.engine.error}")
            return
        asyncio.run(self.engine.redraw())
        print()
        for line in self.surface.text().split("\n"):
            print(f"  {line}")
        print()

    def _window(self, arg: str | None):
        if not arg:
            print("Usage: /window <start> <end> [anchor] | /window reset")
            return
        if arg.lower() == "reset":
            self.engine.reset_window()
            return
        values = [int(v) if v != "-" else None for v in arg.split()]
        values += [None] * (3 - len(values))
        if not self.engine.set_window(*values[:3]):
            print("  Window edges must be event numbers in the loaded source.")

    def _page(self, arg: str | None):
        if arg == "next" or arg is None:
            self.engine.next_page()
        elif arg == "prev":
            self.engine.prev_page()
        else:
            self.engine.set_page(int(arg) - 1)

    def _find(self, pattern: str):
        hits = self.engine.search(pattern)
        print(f"  {len(hits)} hit(s) for {pattern!r}.")
        if hits:
            self._report_hit(self.engine.next_hit())

    def _report_hit(self, seq: int | None):
        if seq is None:
            print("  No hits.")
            return
        hits = self.engine.hits
        print(f"  Hit {hits.index() + 1}/{len(hits.hits)} at event {seq}.")

    def _show_info(self):
        """Show the selected event's details."""
        detail = self.engine.detail()
        if detail is None:
            print("  No event selected.")
            return
        print(f"  {detail.notation}")
        if detail.meta:
            print(f"  meta: {detail.meta}")
        if detail.annotation:
            print(f"  note: {detail.annotation}")

    def _show_help(self):
        """Show help message."""
        print("""
  REPL Commands:
    /open <file>            - Load a source file
    /view                   - Render the current view
    /watch [on|off]         - Render after every command
    /toggle <name>          - Hide/show a participant's events
    /order a,b,c            - Set the participant order
    /left <name>            - Move a participant left
    /right <name>           - Move a participant right
    /window <s> <e> [a]     - Limit to events s..e (keep a visible); '-' skips
    /window reset           - Show the whole range again
    /pagesize <n>           - Signals per page (0 = no paging)
    /page [n|next|prev]     - Change page
    /go <seq>               - Select an event
    /down [n], /up [n]      - Move the selection
    /find <text>            - Search (bare text also searches)
    /n, /p                  - Next / previous hit
    /ids [on|off]           - Show source ids in messages
    /orphans [on|off]       - Keep participants with no events
    /instance [on|off]      - Mark signals of the same instance
    /related [on|off]       - Mark related signals
    /info                   - Details of the selected event
    /reset                  - Reset filters
    /clear                  - Forget source and saved state
    /help                   - Show this help
    /quit                   - Exit REPL
""")
