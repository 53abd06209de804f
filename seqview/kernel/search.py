"""
seqview Kernel — Search

Stateless matching plus a HitCursor over the match list.

Search always runs over the full filtered range (window + actor filter,
never paged), so a hit is found whichever page is on screen. Mapping a hit
back to its page is the engine's job.
"""

from __future__ import annotations

from collections.abc import Sequence

from seqview.kernel.cursor import Cursor
from seqview.kernel.types import Event


def matches(pattern: str, event: Event) -> bool:
    """Case-sensitive substring match on any searchable field."""
    fields = (
        event.orig_message,
        event.actor_a,
        event.actor_b,
        event.meta_raw,
        event.annotation,
    )
    return any(f is not None and pattern in f for f in fields)


def search(pattern: str, candidate_events: Sequence[Event]) -> list[Event]:
    """Signals matching `pattern`, in collection order. Empty pattern, no hits."""
    if not pattern:
        return []
    return [e for e in candidate_events if e.is_signal and matches(pattern, e)]


class HitCursor(Cursor):
    """
    A cursor bound to the current hit list.

    Navigation starts from wherever the main cursor is, not from the last
    hit visited: the user may have moved since.
    """

    def __init__(self, hits: Sequence[Event] = (), pattern: str = ""):
        super().__init__(hits)
        self.pattern = pattern

    def rebind(self, hits: Sequence[Event], pattern: str) -> None:
        self.pattern = pattern
        self.bind(hits)

    @property
    def hits(self) -> Sequence[Event]:
        return self.collection

    def goto_next(self, from_seq: int | None) -> int | None:
        """First hit strictly after `from_seq`, wrapping to the first hit."""
        hits = self.collection
        if not hits:
            return None
        if from_seq is not None:
            for i, hit in enumerate(hits):
                if hit.seq > from_seq:
                    self.set_by_index(i)
                    return hit.seq
        self.home()
        return self.get()

    def goto_prev(self, from_seq: int | None) -> int | None:
        """Last hit strictly before `from_seq`, wrapping to the last hit."""
        hits = self.collection
        if not hits:
            return None
        if from_seq is not None:
            for i in range(len(hits) - 1, -1, -1):
                if hits[i].seq < from_seq:
                    self.set_by_index(i)
                    return hits[i].seq
        self.end()
        return self.get()
