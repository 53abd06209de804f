"""
seqview Kernel — Projection Pipeline

Pure function: (snapshot, FilterState) → View
No IO. Deterministic: two snapshots of the same master projected with the
same FilterState give equal Views.

Stages, always in this order:

  1. window-trim      keep events between the two window bounds (by seq)
  2. actor-filter     drop events touching an excluded participant
  3. aggregate        per-participant event counts, orphan/special flags
  4. page-slice       keep one page of signals (+1 overlap event after page 0)
  5. actor-reorder    apply the custom participant order, renumber
  6. decoration       inline correlation ids into signal text

Stages operate on the snapshot they are given. Callers pass a fresh copy
from the StableStore, never the master.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from seqview.kernel.settings import FilterState
from seqview.kernel.types import (
    Event,
    MasterSequence,
    Participant,
    View,
    ViewCounts,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def project(snapshot: MasterSequence, filters: FilterState) -> View:
    """
    Run the full pipeline.
    An empty snapshot gives an empty View; so does an unresolvable window,
    with every count at zero.
    """
    total = count_signals(snapshot.events)

    windowed = window_trim(snapshot.events, filters)
    if windowed is None:
        logger.debug("Window bounds do not resolve, projecting an empty view")
        return View(counts=ViewCounts(), page_size=filters.page_size)
    window_surviving = count_signals(windowed)

    excluded = set(filters.excluded)
    filtered = filter_actors(windowed, excluded)
    net = count_signals(filtered)

    aggregate(snapshot.participants, filtered, excluded)

    page = slice_page(filtered, filters.page_size, filters.page_index)

    participants, applied, stale = reorder_actors(
        snapshot.participants,
        filters.custom_order,
        keep_orphans=filters.keep_orphans,
    )

    decorate(page.events, inline_ids=filters.inline_ids)

    logger.debug(
        "Projected total=%d window=%d net=%d page=%d/%d events=%d",
        total,
        window_surviving,
        net,
        page.index,
        page.count,
        len(page.events),
    )

    return View(
        participants=participants,
        events=page.events,
        counts=ViewCounts(total=total, window_surviving=window_surviving, net=net),
        page_index=page.index,
        page_size=filters.page_size,
        page_count=page.count,
        page_own=page.own,
        lead_seq=page.lead_seq,
        order_applied=applied,
        order_stale=stale,
    )


def candidates(snapshot: MasterSequence, filters: FilterState) -> list[Event]:
    """
    Stages 1–2 only: the full filtered range, never paged.
    This is what search and cross-page cursor movement operate on.
    """
    windowed = window_trim(snapshot.events, filters)
    if windowed is None:
        return []
    return filter_actors(windowed, set(filters.excluded))


# ---------------------------------------------------------------------------
# Stage 1: window-trim
# ---------------------------------------------------------------------------


def window_trim(events: list[Event], filters: FilterState) -> list[Event] | None:
    """
    Keep events in [start, end], bounds resolved by seq, not position.
    A start after the end is swapped; an anchor outside the window widens
    it. Returns None when any set bound names a seq that is not present.
    """
    if not filters.has_window:
        return list(events)
    if not events:
        return None

    positions = {e.seq: i for i, e in enumerate(events)}

    def resolve(seq: int | None, default: int) -> int | None:
        if seq is None:
            return default
        return positions.get(seq)

    start = resolve(filters.window_start, 0)
    end = resolve(filters.window_end, len(events) - 1)
    anchor = resolve(filters.window_anchor, start if start is not None else 0)
    if start is None or end is None or anchor is None:
        return None

    if start > end:
        start, end = end, start
    start = min(start, anchor)
    end = max(end, anchor)
    return events[start : end + 1]


# ---------------------------------------------------------------------------
# Stage 2: actor-filter
# ---------------------------------------------------------------------------


def filter_actors(events: list[Event], excluded: set[str]) -> list[Event]:
    """A signal goes if either end is excluded; a note if its participant is."""
    if not excluded:
        return list(events)
    return [e for e in events if not any(name in excluded for name in e.participants)]


# ---------------------------------------------------------------------------
# Stage 3: aggregate
# ---------------------------------------------------------------------------


def aggregate(participants: list[Participant], events: list[Event], excluded: set[str]) -> None:
    """Recompute the derived participant fields from the surviving events."""
    counts: dict[str, int] = {}
    special: set[str] = set()
    for event in events:
        for name in set(event.participants):
            counts[name] = counts.get(name, 0) + 1
            if event.is_special:
                special.add(name)

    for p in participants:
        p.event_count = counts.get(p.name, 0)
        p.is_orphan = p.event_count == 0
        p.is_special = p.name in special
        p.is_excluded = p.name in excluded


# ---------------------------------------------------------------------------
# Stage 4: page-slice
# ---------------------------------------------------------------------------


@dataclass
class PageSlice:
    events: list[Event] = field(default_factory=list)
    index: int = 0
    count: int = 1
    own: int = 0
    lead_seq: int | None = None


def page_count(net: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil(net / page_size))


def page_bounds(page_index: int, page_size: int) -> tuple[int, int]:
    """
    (offset, length) of a page in signal units. Pages after the first start
    one signal early, so the previous page's last signal is shown again.
    """
    overlap = 1 if page_index > 0 else 0
    return page_index * page_size - overlap, page_size + overlap


def slice_page(events: list[Event], page_size: int, page_index: int) -> PageSlice:
    """
    Keep the events of one page. Paging is on only when page_size is set and
    smaller than the number of signals. Notes travel with the signal before
    them; notes ahead of the first signal belong to page 0.
    """
    signal_positions = [i for i, e in enumerate(events) if e.is_signal]
    net = len(signal_positions)

    if page_size <= 0 or page_size >= net:
        return PageSlice(events=list(events), index=0, count=1, own=net)

    count = page_count(net, page_size)
    index = min(max(page_index, 0), count - 1)
    offset, length = page_bounds(index, page_size)

    start = 0 if index == 0 else signal_positions[offset]
    stop_signal = offset + length
    stop = signal_positions[stop_signal] if stop_signal < net else len(events)

    own = min(page_size, net - index * page_size)
    lead_seq = events[signal_positions[offset]].seq if index > 0 else None
    return PageSlice(events=events[start:stop], index=index, count=count, own=own, lead_seq=lead_seq)


# ---------------------------------------------------------------------------
# Stage 5: actor-reorder
# ---------------------------------------------------------------------------


def reorder_actors(
    participants: list[Participant],
    custom_order: list[str],
    *,
    keep_orphans: bool = True,
) -> tuple[list[Participant], bool, bool]:
    """
    Returns (participants, order_applied, order_stale).

    The custom order only applies when it names exactly the declared
    participants; anything else is stale and declaration order stands.
    With no participants (nothing loaded) there is nothing to compare
    against, so the order is neither applied nor stale.
    """
    result = list(participants)
    applied = False
    stale = False

    if custom_order and participants:
        if set(custom_order) == {p.name for p in participants}:
            rank = {name: i for i, name in enumerate(custom_order)}
            result.sort(key=lambda p: rank.get(p.name, len(rank)))
            applied = True
        else:
            stale = True

    if not keep_orphans:
        result = [p for p in result if not p.is_orphan]

    for i, p in enumerate(result):
        p.display_index = i
    return result, applied, stale


# ---------------------------------------------------------------------------
# Stage 6: decoration
# ---------------------------------------------------------------------------


def decorate(events: list[Event], *, inline_ids: bool) -> None:
    """Restore each message, then append the source correlation id if asked."""
    for event in events:
        event.message = event.orig_message
        if inline_ids and event.is_signal and event.meta.src_id:
            event.message = f"{event.message}\n{event.meta.src_id}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def count_signals(events: list[Event]) -> int:
    return sum(1 for e in events if e.is_signal)


def signal_ordinal(events: list[Event], seq: int) -> int:
    """
    Position of `seq` among the signals of `events`, which is what pages are
    counted in. A note maps to the signal before it (0 if there is none).
    Returns -1 when `seq` is not in `events`.
    """
    ordinal = -1
    for event in events:
        if event.is_signal:
            ordinal += 1
        if event.seq == seq:
            return max(ordinal, 0)
    return -1
