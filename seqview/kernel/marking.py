"""
seqview Kernel — Marking

Which highlight classes each event of a view gets, given the selected event:

  selected       the selected event itself
  same-instance  signals sharing the selected signal's source id
  related        signals whose ids chain to the selected one
                 (their dst is its src, or their src is its dst)
  special        flagged special, or with a size <= 0

Plus the detail text shown for one event.
"""

from __future__ import annotations

from seqview.kernel.types import Detail, Event, View

SELECTED = "selected"
SAME_INSTANCE = "same-instance"
RELATED = "related"
SPECIAL = "special"


def marks(
    view: View,
    ref_seq: int | None,
    *,
    show_instance: bool = False,
    show_related: bool = False,
) -> dict[int, set[str]]:
    """Map of seq → highlight classes, for every event of the view."""
    ref_index = view.index_of(ref_seq)
    ref = view.events[ref_index] if ref_index >= 0 else None
    ref_src = ref.meta.src_id if ref is not None and ref.is_signal else None
    ref_dst = ref.meta.dst_id if ref is not None and ref.is_signal else None

    result: dict[int, set[str]] = {}
    for event in view.events:
        classes: set[str] = set()
        if event.seq == ref_seq:
            classes.add(SELECTED)
        if event.is_special:
            classes.add(SPECIAL)

        src = event.meta.src_id
        if event.is_signal and src and ref_src:
            if show_instance and src == ref_src:
                classes.add(SAME_INSTANCE)
            if show_related and (event.meta.dst_id == ref_src or src == ref_dst):
                classes.add(RELATED)

        result[event.seq] = classes
    return result


def describe(event: Event, ordinal: int, aliases: dict[str, str] | None = None) -> Detail:
    """
    Detail-pane text for one event. `ordinal` is 1-based, as displayed.
    """
    aliases = aliases or {}
    a = aliases.get(event.actor_a, event.actor_a)
    if event.is_signal and event.actor_b is not None:
        b = aliases.get(event.actor_b, event.actor_b)
        notation = f"{ordinal}. {a} -> {b}: {event.message}"
    else:
        notation = f"{ordinal}. Note {event.placement or 'over'} {a}: {event.message}"
    return Detail(
        notation=notation,
        meta=event.meta_raw or "",
        annotation=event.annotation or "",
    )
