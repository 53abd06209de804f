"""
seqview Kernel — Cursor

A pointer to one event by seq, over whichever collection it is currently
bound to (the main view, or a search hit list).

The stored seq is the only state. Positions are resolved against the bound
collection on demand, so rebinding after a re-projection never moves the
cursor: it keeps pointing at the same event if that event is still there,
and reads as invalid (index -1) while it is not.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from seqview.kernel.types import Event


class Cursor:
    """Pointer by seq over a rebindable, ordered collection of events."""

    def __init__(
        self,
        collection: Sequence[Event] | None = None,
        *,
        seq: int | None = None,
        on_change: Callable[[int | None], None] | None = None,
    ) -> None:
        self._seq = seq
        self._on_change = on_change
        self._collection: Sequence[Event] = ()
        self._positions: dict[int, int] = {}
        self.bind(collection if collection is not None else ())

    # -- binding --

    def bind(self, collection: Sequence[Event]) -> None:
        """Point the cursor at a new collection. The stored seq is kept."""
        self._collection = collection
        if hasattr(collection, "index_of"):
            # Views carry their own seq → position map
            self._positions = {}
        else:
            self._positions = {e.seq: i for i, e in enumerate(collection)}

    @property
    def collection(self) -> Sequence[Event]:
        return self._collection

    # -- state --

    def get(self) -> int | None:
        return self._seq

    def set(self, seq: int | None) -> None:
        if seq == self._seq:
            return
        self._seq = seq
        if self._on_change is not None:
            self._on_change(seq)

    def clear(self) -> None:
        self.set(None)

    def set_by_index(self, i: int) -> int:
        """Select the event at position `i`, clamped to the collection."""
        n = len(self._collection)
        if n == 0:
            return -1
        i = min(max(i, 0), n - 1)
        self.set(self._collection[i].seq)
        return i

    def select_toggle(self, seq: int) -> int | None:
        """Select `seq`, or clear the selection if it is already selected."""
        self.set(None if seq == self._seq else seq)
        return self._seq

    # -- resolution --

    def index(self) -> int:
        if self._seq is None:
            return -1
        if hasattr(self._collection, "index_of"):
            return self._collection.index_of(self._seq)
        return self._positions.get(self._seq, -1)

    def is_valid(self) -> bool:
        return self.index() >= 0

    def current(self) -> Event | None:
        i = self.index()
        return self._collection[i] if i >= 0 else None

    # -- movement --

    def home(self) -> int:
        return self.set_by_index(0)

    def end(self) -> int:
        return self.set_by_index(len(self._collection) - 1)

    def next(self) -> int:
        """One step forward; a no-op at the end. An invalid cursor goes home."""
        i = self.index()
        if i < 0:
            return self.home()
        return self.set_by_index(i + 1)

    def prev(self) -> int:
        """One step back; a no-op at home. An invalid cursor goes to the end."""
        i = self.index()
        if i < 0:
            return self.end()
        return self.set_by_index(i - 1)

    def move(self, n: int) -> int:
        """Move n steps (negative moves back), clamped at both ends."""
        i = self.index()
        if i < 0:
            return self.home() if n >= 0 else self.end()
        return self.set_by_index(i + n)

    def is_at_home(self) -> bool:
        return len(self._collection) > 0 and self.index() == 0

    def is_at_end(self) -> bool:
        return len(self._collection) > 0 and self.index() == len(self._collection) - 1
