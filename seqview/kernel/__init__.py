"""
seqview Kernel — the view-projection and navigation engine.

Components:
  store       — one immutable master sequence, deep-copy snapshots
  pipeline    — (snapshot, FilterState) → View  (pure, deterministic)
  cursor      — pointer by seq over a rebindable collection
  pagination  — page/window requests → FilterState → re-projection
  search      — substring matching + HitCursor over the unpaged range
  engine      — coordinates the above with persistence and a render surface
"""

from seqview.kernel.cursor import Cursor
from seqview.kernel.engine import SeqViewEngine
from seqview.kernel.pipeline import candidates, project
from seqview.kernel.search import HitCursor, search
from seqview.kernel.settings import CursorState, FilterState
from seqview.kernel.store import StableStore

__all__ = [
    "StableStore",
    "project",
    "candidates",
    "Cursor",
    "HitCursor",
    "search",
    "FilterState",
    "CursorState",
    "SeqViewEngine",
]
