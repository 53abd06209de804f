"""
seqview Kernel — Shared Types

Data classes used across the store, pipeline, cursor, search and engine.
These are the contracts that bind the kernel together.

Identity rule:
- `Event.seq` is assigned once by the parser, in source order, and is never
  reassigned. It is the only key that survives every projection.
- Positions (indexes into a list of events) are always derived, never stored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Event kinds
# ---------------------------------------------------------------------------

SIGNAL = "Signal"
NOTE = "Note"

EVENT_KINDS: set[str] = {SIGNAL, NOTE}

NOTE_PLACEMENTS: set[str] = {"left", "right", "over"}

# Metadata keys as they appear in the raw JSON
META_KEYS: dict[str, str] = {
    "srcInstanceId": "src_id",
    "dstInstanceId": "dst_id",
    "timestamp": "timestamp",
    "size": "size",
    "isSpecial": "is_special",
}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class DecodedMeta:
    """
    Correlation fields decoded from an event's raw metadata.

    An event whose metadata is missing or malformed gets an empty one;
    nothing else is affected.
    """

    src_id: str | None = None
    dst_id: str | None = None
    timestamp: str | None = None
    size: float | None = None
    is_special: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self == DecodedMeta()

    @classmethod
    def decode(cls, raw: str | None) -> DecodedMeta:
        """Decode a raw metadata string. Never raises."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.debug("Undecodable event metadata %r: %s", raw[:200], e)
            return cls()
        if not isinstance(data, dict):
            logger.debug("Event metadata is not an object: %r", raw[:200])
            return cls()

        meta = cls()
        for key, value in data.items():
            attr = META_KEYS.get(key)
            if attr is None:
                meta.extra[key] = value
            elif attr == "size":
                meta.size = value if isinstance(value, (int, float)) and not isinstance(value, bool) else None
            elif attr == "is_special":
                meta.is_special = value is True
            else:
                setattr(meta, attr, None if value is None else str(value))
        return meta


@dataclass
class Event:
    """
    One Signal (actor_a → actor_b) or Note (attached to actor_a).

    `message` is display text and may be decorated by the pipeline;
    `orig_message` is the text as parsed and is what decoration restores.
    """

    seq: int
    kind: str
    actor_a: str
    actor_b: str | None = None
    message: str = ""
    orig_message: str = ""
    arrow: str = "->"
    placement: str | None = None
    meta_raw: str | None = None
    meta: DecodedMeta = field(default_factory=DecodedMeta)
    annotation: str | None = None

    @property
    def is_signal(self) -> bool:
        return self.kind == SIGNAL

    @property
    def participants(self) -> tuple[str, ...]:
        if self.actor_b is None:
            return (self.actor_a,)
        return (self.actor_a, self.actor_b)

    @property
    def is_special(self) -> bool:
        size = self.meta.size
        return self.meta.is_special or (size is not None and size <= 0)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "seq": self.seq,
            "kind": self.kind,
            "actor_a": self.actor_a,
            "message": self.message,
        }
        if self.actor_b is not None:
            d["actor_b"] = self.actor_b
        if self.placement is not None:
            d["placement"] = self.placement
        if self.meta_raw is not None:
            d["meta_raw"] = self.meta_raw
        if self.annotation is not None:
            d["annotation"] = self.annotation
        return d


@dataclass
class Participant:
    """
    A named lifeline. `name` is the stable key; everything below `alias`
    is derived and recomputed on every projection.
    """

    name: str
    alias: str = ""
    display_index: int = -1
    event_count: int = 0
    is_orphan: bool = True
    is_special: bool = False
    is_excluded: bool = False

    def __post_init__(self) -> None:
        if not self.alias:
            self.alias = self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "alias": self.alias,
            "display_index": self.display_index,
            "event_count": self.event_count,
            "is_orphan": self.is_orphan,
            "is_special": self.is_special,
            "is_excluded": self.is_excluded,
        }


@dataclass
class MasterSequence:
    """
    The parsed source: participants in declaration order, events in
    parse order. Owned by the StableStore; consumers only see copies.
    """

    participants: list[Participant] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    source_digest: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.events and not self.participants

    def participant_names(self) -> list[str]:
        return [p.name for p in self.participants]


@dataclass
class ViewCounts:
    """Signal-kind event counts. Always net <= window_surviving <= total."""

    total: int = 0
    window_surviving: int = 0
    net: int = 0


@dataclass
class View:
    """
    The pipeline's output. Disposable: rebuilt in full on every mutation,
    never edited in place by consumers.
    """

    participants: list[Participant] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    counts: ViewCounts = field(default_factory=ViewCounts)
    page_index: int = 0
    page_size: int = 0
    page_count: int = 1
    page_own: int = 0
    lead_seq: int | None = None
    order_applied: bool = False
    order_stale: bool = False
    _positions: dict[int, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the seq → position side map."""
        self._positions = {e.seq: i for i, e in enumerate(self.events)}

    def index_of(self, seq: int | None) -> int:
        if seq is None:
            return -1
        return self._positions.get(seq, -1)

    def __len__(self) -> int:
        return len(self.events)

    def __getitem__(self, i: int) -> Event:
        return self.events[i]

    def participant(self, name: str) -> Participant | None:
        for p in self.participants:
            if p.name == name:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "participants": [p.to_dict() for p in self.participants],
            "events": [e.to_dict() for e in self.events],
            "counts": {
                "total": self.counts.total,
                "window_surviving": self.counts.window_surviving,
                "net": self.counts.net,
            },
            "page_index": self.page_index,
            "page_size": self.page_size,
            "page_count": self.page_count,
            "page_own": self.page_own,
            "lead_seq": self.lead_seq,
            "order_applied": self.order_applied,
            "order_stale": self.order_stale,
        }


@dataclass
class ParseFailure:
    """Why a source text could not be loaded."""

    message: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


@dataclass
class LoadResult:
    """
    Result of loading a source text into the store.
    The store never throws — it always returns one of these.
    """

    master: MasterSequence | None = None
    error: ParseFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Detail:
    """Text shown for one event in the detail pane."""

    notation: str
    meta: str = ""
    annotation: str = ""
