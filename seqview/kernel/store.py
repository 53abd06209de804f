"""
seqview Kernel — Stable Store

Holds the one immutable master sequence for the loaded source text and
hands out deep copies. Parsing happens once per load; every projection and
every search runs on a snapshot, so the master is never mutated and `seq`
values stay stable for as long as the text is loaded.

The store never throws a parse failure across its boundary: `load()`
always returns a LoadResult.
"""

from __future__ import annotations

import copy
import hashlib
import logging
from collections.abc import Callable

from seqview.kernel.notation import NotationError, parse
from seqview.kernel.types import (
    DecodedMeta,
    EVENT_KINDS,
    LoadResult,
    MasterSequence,
    ParseFailure,
)

logger = logging.getLogger(__name__)

Parser = Callable[[str], MasterSequence]


class StableStore:
    """Owns the master sequence for one loaded source text."""

    def __init__(self, parser: Parser | None = None):
        self._parser = parser or parse
        self._master: MasterSequence | None = None
        self._positions: dict[int, int] = {}

    # -- load --

    def load(self, text: str) -> LoadResult:
        """
        Parse source text and make it the master.
        On failure the previous master is dropped: a partial diagram is
        never kept around.
        """
        try:
            master = self._parser(text)
        except NotationError as e:
            self.clear()
            logger.info("Source rejected at line %s: %s", e.line, e.message)
            return LoadResult(error=ParseFailure(e.message, e.line))
        except Exception as e:
            # Injected parsers raise whatever they raise
            self.clear()
            logger.warning("Parser failed: %s", e)
            return LoadResult(error=ParseFailure(str(e) or type(e).__name__))

        problem = _check_numbering(master)
        if problem:
            self.clear()
            logger.warning("Parser output rejected: %s", problem)
            return LoadResult(error=ParseFailure(problem))

        # Injected parsers may hand back objects they keep using
        master = copy.deepcopy(master)
        for event in master.events:
            event.orig_message = event.orig_message or event.message
            event.meta = DecodedMeta.decode(event.meta_raw)

        master.source_digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        self._master = master
        self._positions = {e.seq: i for i, e in enumerate(master.events)}
        logger.debug(
            "Loaded %d participants, %d events",
            len(master.participants),
            len(master.events),
        )
        return LoadResult(master=self.snapshot())

    def clear(self) -> None:
        self._master = None
        self._positions = {}

    # -- read --

    @property
    def is_loaded(self) -> bool:
        return self._master is not None

    @property
    def source_digest(self) -> str | None:
        return self._master.source_digest if self._master is not None else None

    def snapshot(self) -> MasterSequence:
        """An independent deep copy of the master (empty when nothing is loaded)."""
        if self._master is None:
            return MasterSequence()
        return copy.deepcopy(self._master)

    def participant_names(self) -> list[str]:
        """Declared participant names, in declaration order."""
        if self._master is None:
            return []
        return self._master.participant_names()

    def index_of(self, seq: int | None) -> int:
        """Absolute position of `seq` in the master, or -1."""
        if seq is None:
            return -1
        return self._positions.get(seq, -1)

    def __contains__(self, seq: object) -> bool:
        return seq in self._positions


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _check_numbering(master: MasterSequence) -> str | None:
    """Every identity guarantee rests on strictly increasing seq values."""
    names = set(master.participant_names())
    previous: int | None = None
    for event in master.events:
        if event.kind not in EVENT_KINDS:
            return f"Event {event.seq} has unknown kind {event.kind!r}"
        if previous is not None and event.seq <= previous:
            return f"Event seq {event.seq} does not increase after {previous}"
        for name in event.participants:
            if name not in names:
                return f"Event {event.seq} references undeclared participant {name!r}"
        previous = event.seq
    return None
