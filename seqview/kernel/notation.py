"""
seqview Kernel — Default Notation Parser

Turns source text into a MasterSequence. This is the parser the store uses
when none is injected; any callable with the same contract can replace it.

Accepted lines (blank lines and `#` comments are skipped):

    participant NAME
    participant NAME as ALIAS
    A->B: message            (also -->, ->>, -->>)
    Note left of A: text     (also `right of`, `over`)

A signal or note may carry up to two trailing segments separated by ` ;; `:
the raw metadata (a JSON object as text) and then a free-text annotation:

    Client->Server: GET /items ;; {"srcInstanceId": "c1", "size": 120} ;; first call

Participants are declared on first use. Every event gets a `seq`, starting
at 1 and increasing by one per event, in source order.
"""

from __future__ import annotations

import re

from seqview.kernel.types import (
    NOTE,
    SIGNAL,
    Event,
    MasterSequence,
    Participant,
)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# A hyphen may appear inside a name, but never as the start of an arrow
_NAME = r"[^\s:,;\-<>](?:[^:,;\-<>]|-(?!-?>))*?"

PARTICIPANT_RE = re.compile(rf"^participant\s+(?P<name>{_NAME})(?:\s+as\s+(?P<alias>.+?))?\s*$", re.IGNORECASE)
SIGNAL_RE = re.compile(rf"^(?P<a>{_NAME})\s*(?P<arrow>-->>|->>|-->|->)\s*(?P<b>{_NAME})\s*:(?P<text>.*)$")
NOTE_RE = re.compile(
    rf"^note\s+(?P<placement>left of|right of|over)\s+(?P<a>{_NAME})\s*:(?P<text>.*)$",
    re.IGNORECASE,
)

SEGMENT_SEP = " ;; "


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class NotationError(Exception):
    """Source text is not valid notation."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse(text: str) -> MasterSequence:
    """
    Parse source text into a MasterSequence.
    Raises NotationError on the first line it cannot understand.
    """
    participants: dict[str, Participant] = {}
    events: list[Event] = []

    def declare(name: str, alias: str | None = None) -> None:
        if name not in participants:
            participants[name] = Participant(name=name, alias=alias or name)
        elif alias:
            participants[name].alias = alias

    for lineno, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        m = PARTICIPANT_RE.match(line)
        if m:
            declare(m.group("name").strip(), m.group("alias"))
            continue

        m = NOTE_RE.match(line)
        if m:
            actor = m.group("a").strip()
            declare(actor)
            message, meta_raw, annotation = _split_segments(m.group("text"), lineno)
            events.append(
                _make_event(
                    seq=len(events) + 1,
                    kind=NOTE,
                    actor_a=actor,
                    message=message,
                    placement=m.group("placement").split()[0].lower(),
                    meta_raw=meta_raw,
                    annotation=annotation,
                )
            )
            continue

        m = SIGNAL_RE.match(line)
        if m:
            a, b = m.group("a").strip(), m.group("b").strip()
            declare(a)
            declare(b)
            message, meta_raw, annotation = _split_segments(m.group("text"), lineno)
            events.append(
                _make_event(
                    seq=len(events) + 1,
                    kind=SIGNAL,
                    actor_a=a,
                    actor_b=b,
                    message=message,
                    arrow=m.group("arrow"),
                    meta_raw=meta_raw,
                    annotation=annotation,
                )
            )
            continue

        raise NotationError(f"Unrecognised line: {line[:80]!r}", lineno)

    return MasterSequence(participants=list(participants.values()), events=events)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _split_segments(text: str, lineno: int) -> tuple[str, str | None, str | None]:
    """Split `message ;; meta ;; annotation` into its parts."""
    parts = text.split(SEGMENT_SEP)
    if len(parts) > 3:
        raise NotationError("Too many ';;' segments", lineno)
    message = parts[0].strip().replace("\\n", "\n")
    meta_raw = parts[1].strip() or None if len(parts) > 1 else None
    annotation = parts[2].strip() or None if len(parts) > 2 else None
    return message, meta_raw, annotation


def _make_event(seq: int, kind: str, actor_a: str, message: str, **kwargs) -> Event:
    return Event(seq=seq, kind=kind, actor_a=actor_a, message=message, orig_message=message, **kwargs)
