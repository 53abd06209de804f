"""
seqview Kernel — Rendering Surfaces

The engine draws through a RenderSurface: head (participants) first, body
(events) after, then marks once the body reports its geometry back.

TextSurface is the terminal implementation: one row per event, rendered with
mustache templates. Pure helpers (`render_text`, `render_head`,
`render_rows`) are usable without a surface.
"""

from __future__ import annotations

from typing import Any

import chevron

from seqview.kernel.marking import RELATED, SAME_INSTANCE, SELECTED, SPECIAL
from seqview.kernel.types import View

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

HEAD_TEMPLATE = (
    "{{#participants}}"
    "[{{{alias}}}{{#is_excluded}} off{{/is_excluded}}{{^is_excluded}}{{#is_orphan}} idle{{/is_orphan}}{{/is_excluded}}]"
    "{{^last}} {{/last}}"
    "{{/participants}}"
)

SIGNAL_TEMPLATE = "{{{marker}}} {{seq}}. {{{a}}} {{{arrow}}} {{{b}}}: {{{message}}}"
NOTE_TEMPLATE = "{{{marker}}} {{seq}}. Note {{placement}} {{{a}}}: {{{message}}}"

FOOTER_TEMPLATE = (
    "page {{page}}/{{pages}}"
    "{{#lead_seq}} (from {{lead_seq}}){{/lead_seq}}"
    " | {{net}} of {{window}} in window, {{total}} total"
)

# Marker column, strongest first
MARKERS: list[tuple[str, str]] = [
    (SELECTED, ">"),
    (SAME_INSTANCE, "="),
    (RELATED, "~"),
    (SPECIAL, "!"),
]

EMPTY_TEXT = "(nothing to show)"


# ---------------------------------------------------------------------------
# Surface protocol
# ---------------------------------------------------------------------------


class RenderSurface:
    """
    Abstract rendering surface.
    The engine awaits each call in order; draw_body's return value is the
    draw-complete signal and carries the per-event geometry.
    """

    async def draw_head(self, view: View) -> None:
        raise NotImplementedError

    async def draw_body(self, view: View) -> dict[int, float]:
        """Draw the events. Returns seq → vertical position."""
        raise NotImplementedError

    async def mark(self, view: View, marks: dict[int, set[str]]) -> None:
        raise NotImplementedError

    async def scroll_to(self, seq: int, y: float) -> None:
        raise NotImplementedError


class TextSurface(RenderSurface):
    """Renders a view as text lines. Geometry is the row number."""

    def __init__(self) -> None:
        self.head: str = ""
        self.rows: list[str] = []
        self.footer: str = ""
        self.scrolled_to: int | None = None
        self.draws: int = 0
        self._view: View | None = None

    async def draw_head(self, view: View) -> None:
        self._view = view
        self.head = render_head(view)

    async def draw_body(self, view: View) -> dict[int, float]:
        self._view = view
        self.rows = render_rows(view)
        self.footer = render_footer(view)
        self.draws += 1
        return {e.seq: float(i) for i, e in enumerate(view.events)}

    async def mark(self, view: View, marks: dict[int, set[str]]) -> None:
        self.rows = render_rows(view, marks)

    async def scroll_to(self, seq: int, y: float) -> None:
        self.scrolled_to = seq

    def text(self) -> str:
        if self._view is None or not self._view.events:
            return "\n".join(p for p in (self.head, EMPTY_TEXT) if p)
        return "\n".join([self.head, *self.rows, self.footer])


# ---------------------------------------------------------------------------
# Pure rendering
# ---------------------------------------------------------------------------


def render_text(view: View, marks: dict[int, set[str]] | None = None) -> str:
    """The whole view as text: head line, one row per event, footer."""
    head = render_head(view)
    if not view.events:
        return "\n".join(p for p in (head, EMPTY_TEXT) if p)
    return "\n".join([head, *render_rows(view, marks), render_footer(view)])


def render_head(view: View) -> str:
    participants = [
        {**p.to_dict(), "last": i == len(view.participants) - 1}
        for i, p in enumerate(view.participants)
    ]
    return chevron.render(HEAD_TEMPLATE, {"participants": participants})


def render_rows(view: View, marks: dict[int, set[str]] | None = None) -> list[str]:
    marks = marks or {}
    aliases = {p.name: p.alias for p in view.participants}
    rows = []
    for event in view.events:
        context = _row_context(event, aliases, marks.get(event.seq, set()))
        template = SIGNAL_TEMPLATE if event.is_signal else NOTE_TEMPLATE
        rows.append(chevron.render(template, context))
    return rows


def render_footer(view: View) -> str:
    return chevron.render(
        FOOTER_TEMPLATE,
        {
            "page": view.page_index + 1,
            "pages": view.page_count,
            "lead_seq": view.lead_seq,
            "net": view.counts.net,
            "window": view.counts.window_surviving,
            "total": view.counts.total,
        },
    )


def _row_context(event, aliases: dict[str, str], classes: set[str]) -> dict[str, Any]:
    marker = " "
    for cls, symbol in MARKERS:
        if cls in classes:
            marker = symbol
            break
    return {
        "marker": marker,
        "seq": event.seq,
        "a": aliases.get(event.actor_a, event.actor_a),
        "b": aliases.get(event.actor_b, event.actor_b) if event.actor_b else "",
        "arrow": event.arrow,
        "placement": event.placement or "over",
        "message": event.message.replace("\n", " | "),
    }
