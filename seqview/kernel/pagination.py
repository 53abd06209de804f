"""
seqview Kernel — Pagination

Turns page requests and window edits into FilterState changes and asks for a
re-projection. Pages are counted in signals of the filtered (windowed,
actor-filtered) collection; windows are defined in absolute master terms so
they do not move when filters change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from seqview.kernel import pipeline
from seqview.kernel.persistence import SettingsStore
from seqview.kernel.store import StableStore
from seqview.kernel.types import View

logger = logging.getLogger(__name__)


class PaginationController:
    """Owns page index, page size and window bounds in the persisted FilterState."""

    def __init__(
        self,
        settings: SettingsStore,
        store: StableStore,
        reproject: Callable[[], View],
        current_view: Callable[[], View | None],
    ):
        self._settings = settings
        self._store = store
        self._reproject = reproject
        self._current_view = current_view

    @property
    def page_size(self) -> int:
        return self._settings.filters.page_size

    @property
    def page_index(self) -> int:
        return self._settings.filters.page_index

    # -- pages --

    def page_count(self, view: View | None = None) -> int:
        view = view if view is not None else self._current_view()
        net = view.counts.net if view is not None else 0
        return pipeline.page_count(net, self.page_size)

    def page_window(self, i: int) -> tuple[int, int]:
        """(offset, length) in signals, including the one-signal overlap."""
        return pipeline.page_bounds(i, self.page_size)

    def go_to_page(self, i: int) -> View:
        i = min(max(i, 0), self.page_count() - 1)
        self._commit(page_index=i)
        logger.debug("Page %d, window %s", i, self.page_window(i))
        return self._reproject()

    def next_page(self) -> View:
        return self.go_to_page(self.page_index + 1)

    def prev_page(self) -> View:
        return self.go_to_page(self.page_index - 1)

    def page_of(self, global_index: int) -> int:
        """The page holding signal number `global_index` of the filtered range."""
        if self.page_size <= 0 or global_index < 0:
            return 0
        return global_index // self.page_size

    def go_to_page_of_event(self, global_index: int) -> bool:
        """Switch to the page holding `global_index`. False if already there."""
        page = self.page_of(global_index)
        if page == self.page_index:
            return False
        self.go_to_page(page)
        return True

    def set_page_size(self, size: int) -> View:
        self._commit(page_size=max(size, 0), page_index=0)
        return self._reproject()

    # -- window --

    def set_window_start(self, seq: int) -> bool:
        f = self._settings.filters
        return self.set_window(start=seq, end=f.window_end, anchor=f.window_anchor)

    def set_window_end(self, seq: int) -> bool:
        f = self._settings.filters
        return self.set_window(start=f.window_start, end=seq, anchor=f.window_anchor)

    def set_window(self, start: int | None = None, end: int | None = None, anchor: int | None = None) -> bool:
        """
        Set the window edges and the keep-visible anchor, all by seq.
        Every seq given must exist in the master; otherwise nothing changes.
        """
        for seq in (start, end, anchor):
            if seq is not None and self._store.index_of(seq) < 0:
                logger.info("Window edge %s is not in the loaded source", seq)
                return False

        if start is not None and end is not None and self._store.index_of(start) > self._store.index_of(end):
            start, end = end, start

        self._commit(window_start=start, window_end=end, window_anchor=anchor, page_index=0)
        self._reproject()
        return True

    def reset_window(self) -> View:
        self._commit(window_start=None, window_end=None, window_anchor=None, page_index=0)
        return self._reproject()

    # -- internal --

    def _commit(self, **changes) -> None:
        filters = self._settings.filters
        for key, value in changes.items():
            setattr(filters, key, value)
        self._settings.save_filters()
