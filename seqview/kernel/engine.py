"""
seqview Kernel — Engine

Sits between the pure parts (store snapshots, pipeline, search) and the
outside world (settings persistence, the rendering surface, the UI).
Coordinates the lifecycle of one loaded source text.

Every mutation runs synchronously: update FilterState, re-project from a
fresh snapshot, rebind the cursor. The surface refresh that follows is
scheduled on the running event loop, head first, body one tick later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from seqview.kernel import pipeline
from seqview.kernel.cursor import Cursor
from seqview.kernel.marking import describe, marks
from seqview.kernel.pagination import PaginationController
from seqview.kernel.persistence import KeyValueStore, SettingsStore
from seqview.kernel.renderer import RenderSurface
from seqview.kernel.search import HitCursor, search
from seqview.kernel.store import Parser, StableStore
from seqview.kernel.types import (
    Detail,
    Event,
    LoadResult,
    ParseFailure,
    View,
)

logger = logging.getLogger(__name__)

SourceReader = Callable[[], Awaitable[str | bytes]]


class SeqViewEngine:
    """
    The operations a UI drives: filters, window, pages, cursor, search.
    """

    def __init__(
        self,
        kv: KeyValueStore | None = None,
        *,
        surface: RenderSurface | None = None,
        parser: Parser | None = None,
    ):
        self.store = StableStore(parser)
        self.settings = SettingsStore(kv)
        self.surface = surface
        self.view = View(page_size=self.settings.filters.page_size)
        self.error: ParseFailure | None = None
        self.geometry: dict[int, float] = {}
        self.cursor = Cursor(self.view, seq=self.settings.cursor.seq, on_change=self._cursor_changed)
        self.hits = HitCursor()
        self.pagination = PaginationController(
            self.settings,
            self.store,
            reproject=self._project,
            current_view=lambda: self.view,
        )
        self._generation = 0
        self._redraw_task: asyncio.Task | None = None

    @property
    def filters(self):
        return self.settings.filters

    # -- load --

    def load_text(self, text: str) -> LoadResult:
        """Load source text now. Supersedes any load still decoding."""
        self._generation += 1
        return self._apply_source(text)

    async def load(self, reader: SourceReader) -> LoadResult | None:
        """
        Decode a source asynchronously, then load it.

        Returns None when a newer load started while this one was decoding;
        its result is dropped. Filter changes made meanwhile are kept: the
        load that wins projects with the FilterState as it is then.
        """
        self._generation += 1
        generation = self._generation
        data = await reader()
        if generation != self._generation:
            logger.info("Dropping stale source load (generation %d < %d)", generation, self._generation)
            return None
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        return self._apply_source(text)

    def _apply_source(self, text: str) -> LoadResult:
        result = self.store.load(text)
        self.error = result.error
        if result.error is not None:
            logger.info("No diagram loaded: %s", result.error)
        self._project()
        return result

    def clear(self) -> None:
        """Forget the source and every persisted setting."""
        self._generation += 1
        self.cursor.set(None)
        self.store.clear()
        self.settings.clear()
        self.error = None
        self.hits.rebind([], "")
        self._project()

    def reset(self) -> View:
        """All FilterState back to defaults, then re-project."""
        self.settings.reset_filters()
        return self._project()

    # -- participants --

    def toggle_participant(self, name: str) -> View:
        excluded = set(self.filters.excluded)
        if name in excluded:
            excluded.discard(name)
        elif name in self._declared_names():
            excluded.add(name)
        else:
            logger.debug("Ignoring toggle of unknown participant %r", name)
            return self.view
        self.filters.excluded = list(excluded)
        self.settings.save_filters()
        return self._project()

    def set_custom_order(self, names: list[str]) -> View:
        self.filters.custom_order = list(names)
        self.settings.save_filters()
        return self._project()

    def move_participant(self, name: str, delta: int) -> View:
        """Shift one participant left (negative) or right in the order."""
        order = list(self.filters.custom_order) if self.view.order_applied else self._declared_names()
        if name not in order:
            return self.view
        i = order.index(name)
        j = min(max(i + delta, 0), len(order) - 1)
        if i == j:
            return self.view
        order.insert(j, order.pop(i))
        return self.set_custom_order(order)

    # -- display toggles --

    def set_inline_ids(self, on: bool) -> View:
        self.filters.inline_ids = on
        self.settings.save_filters()
        return self._project()

    def set_keep_orphans(self, on: bool) -> View:
        self.filters.keep_orphans = on
        self.settings.save_filters()
        return self._project()

    def set_marking(self, *, show_instance: bool | None = None, show_related: bool | None = None) -> None:
        if show_instance is not None:
            self.filters.show_instance = show_instance
        if show_related is not None:
            self.filters.show_related = show_related
        self.settings.save_filters()
        self._schedule_redraw()

    # -- window and pages --

    def set_window(self, start: int | None = None, end: int | None = None, anchor: int | None = None) -> bool:
        return self.pagination.set_window(start, end, anchor)

    def set_window_start(self, seq: int) -> bool:
        return self.pagination.set_window_start(seq)

    def set_window_end(self, seq: int) -> bool:
        return self.pagination.set_window_end(seq)

    def reset_window(self) -> View:
        return self.pagination.reset_window()

    def set_page_size(self, size: int) -> View:
        self.pagination.set_page_size(size)
        self._follow(self.cursor.get())
        return self.view

    def set_page(self, i: int) -> View:
        return self.pagination.go_to_page(i)

    def next_page(self) -> View:
        return self.pagination.next_page()

    def prev_page(self) -> View:
        return self.pagination.prev_page()

    @property
    def page_count(self) -> int:
        return self.pagination.page_count()

    # -- cursor --

    def set_cursor(self, seq: int | None) -> int:
        """Select an event by seq and bring its page into view."""
        self.cursor.set(seq)
        self._follow(seq)
        self._schedule_redraw()
        return self.cursor.index()

    def select(self, seq: int) -> int | None:
        """Select, or unselect when `seq` is already selected."""
        selected = self.cursor.select_toggle(seq)
        self._follow(selected)
        self._schedule_redraw()
        return selected

    def move_cursor(self, n: int) -> int:
        """
        Move n events through the whole filtered range, not just the
        current page; the page follows the cursor.
        """
        walker = Cursor(self.filtered(), seq=self.cursor.get())
        walker.move(n)
        self.cursor.set(walker.get())
        self._follow(walker.get())
        self._schedule_redraw()
        return self.cursor.index()

    def _follow(self, seq: int | None) -> None:
        if seq is None:
            return
        ordinal = pipeline.signal_ordinal(self.filtered(), seq)
        if ordinal >= 0:
            self.pagination.go_to_page_of_event(ordinal)

    def _cursor_changed(self, seq: int | None) -> None:
        self.settings.cursor.seq = seq
        self.settings.save_cursor()

    # -- search --

    def search(self, pattern: str) -> list[Event]:
        hits = search(pattern, self.filtered())
        self.hits.rebind(hits, pattern)
        logger.debug("Search %r: %d hits", pattern, len(hits))
        self._schedule_redraw()
        return hits

    def next_hit(self) -> int | None:
        return self._goto_hit(self.hits.goto_next(self.cursor.get()))

    def prev_hit(self) -> int | None:
        return self._goto_hit(self.hits.goto_prev(self.cursor.get()))

    def _goto_hit(self, seq: int | None) -> int | None:
        if seq is None:
            return None
        self.cursor.set(seq)
        self._follow(seq)
        self._schedule_redraw()
        return seq

    # -- queries --

    def filtered(self) -> list[Event]:
        """Stages 1–2 on a fresh snapshot: the whole range, unpaged."""
        return pipeline.candidates(self.store.snapshot(), self.filters)

    def marks(self) -> dict[int, set[str]]:
        return marks(
            self.view,
            self.cursor.get(),
            show_instance=self.filters.show_instance,
            show_related=self.filters.show_related,
        )

    def detail(self, seq: int | None = None) -> Detail | None:
        """Detail text for `seq` (default: the cursor), if it is in view."""
        seq = self.cursor.get() if seq is None else seq
        i = self.view.index_of(seq)
        if i < 0:
            return None
        event = self.view.events[i]
        ordinal = pipeline.signal_ordinal(self.filtered(), seq) + 1
        aliases = {p.name: p.alias for p in self.view.participants}
        return describe(event, ordinal, aliases)

    # -- projection --

    def _project(self) -> View:
        view = pipeline.project(self.store.snapshot(), self.filters)
        if view.order_stale:
            logger.info("Custom participant order no longer matches the source, dropping it")
            self.filters.custom_order = []
            self.settings.save_filters()
        self.view = view
        self.cursor.bind(view)
        if self.hits.pattern:
            self.hits.rebind(search(self.hits.pattern, self.filtered()), self.hits.pattern)
        self._schedule_redraw()
        return view

    # -- drawing --

    def _schedule_redraw(self) -> None:
        if self.surface is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller awaits redraw() itself
            return
        if self._redraw_task is not None and not self._redraw_task.done():
            self._redraw_task.cancel()
        self._redraw_task = loop.create_task(self.redraw())

    async def redraw(self) -> None:
        """
        Head, then body one tick later, then marks and scroll once the body
        has reported its geometry.
        """
        if self.surface is None:
            return
        view = self.view
        await self.surface.draw_head(view)
        await asyncio.sleep(0)
        self.geometry = await self.surface.draw_body(view)
        await self.surface.mark(view, self.marks())
        seq = self.cursor.get()
        if seq is not None and seq in self.geometry:
            await self.surface.scroll_to(seq, self.geometry[seq])

    async def settle(self) -> None:
        """Wait until the latest scheduled redraw has finished."""
        while True:
            task = self._redraw_task
            if task is None or task.done():
                return
            try:
                await task
            except asyncio.CancelledError:
                # Superseded by a newer redraw: wait for that one instead
                if not task.cancelled() or task is self._redraw_task:
                    raise

    # -- internal --

    def _declared_names(self) -> list[str]:
        return self.store.participant_names()
