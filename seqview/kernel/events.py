"""
seqview Kernel — Event Construction

Factory functions for building well-formed events and master sequences
without going through the notation parser. Used by parsers that produce
events directly, and by tests to build sequences concisely.
"""

from __future__ import annotations

import json
from typing import Any

from seqview.kernel.types import (
    NOTE,
    SIGNAL,
    DecodedMeta,
    Event,
    MasterSequence,
    Participant,
)


def make_signal(
    seq: int,
    a: str,
    b: str,
    message: str = "",
    *,
    meta: dict[str, Any] | str | None = None,
    annotation: str | None = None,
    arrow: str = "->",
) -> Event:
    """
    Build a Signal. `meta` may be a dict (serialised to JSON) or a raw
    string, which is kept as-is even if it is not valid JSON.
    """
    meta_raw = json.dumps(meta, sort_keys=True) if isinstance(meta, dict) else meta
    return Event(
        seq=seq,
        kind=SIGNAL,
        actor_a=a,
        actor_b=b,
        message=message or f"m{seq}",
        orig_message=message or f"m{seq}",
        arrow=arrow,
        meta_raw=meta_raw,
        meta=DecodedMeta.decode(meta_raw),
        annotation=annotation,
    )


def make_note(
    seq: int,
    actor: str,
    message: str = "",
    *,
    placement: str = "over",
    annotation: str | None = None,
) -> Event:
    return Event(
        seq=seq,
        kind=NOTE,
        actor_a=actor,
        message=message or f"n{seq}",
        orig_message=message or f"n{seq}",
        placement=placement,
        annotation=annotation,
    )


def make_master(events: list[Event], participants: list[str] | None = None) -> MasterSequence:
    """
    Wrap events into a MasterSequence. Participants default to every name
    the events mention, in order of first appearance.
    """
    names: list[str] = list(participants or [])
    for event in events:
        for name in event.participants:
            if name not in names:
                names.append(name)
    return MasterSequence(
        participants=[Participant(name=n) for n in names],
        events=events,
    )


def make_chain(n: int, actors: tuple[str, ...] = ("A", "B")) -> list[Event]:
    """
    n signals with seq 1..n bouncing between the given actors:
    A→B, B→A, A→B, ... (or round-robin for more than two).
    """
    events = []
    for seq in range(1, n + 1):
        a = actors[(seq - 1) % len(actors)]
        b = actors[seq % len(actors)]
        events.append(make_signal(seq, a, b))
    return events
