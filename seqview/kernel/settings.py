"""Persisted view settings: what the user asked to see, and where the cursor is."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class FilterState(BaseModel):
    """
    The user intent that drives the projection pipeline.

    Every field persists and round-trips on its own; reloading the same
    source with the same FilterState reproduces the same view.
    """

    model_config = {"extra": "ignore", "validate_assignment": True}

    excluded: list[str] = Field(default_factory=list)
    custom_order: list[str] = Field(default_factory=list)
    window_start: int | None = None
    window_end: int | None = None
    window_anchor: int | None = None
    page_size: int = Field(default=0, ge=0)  # 0 = paging off
    page_index: int = Field(default=0, ge=0)
    inline_ids: bool = False
    keep_orphans: bool = True
    show_instance: bool = False
    show_related: bool = False

    @field_validator("excluded")
    @classmethod
    def _sorted_unique(cls, v: list[str]) -> list[str]:
        return sorted(set(v))

    @property
    def has_window(self) -> bool:
        return self.window_start is not None or self.window_end is not None or self.window_anchor is not None

    def is_excluded(self, name: str) -> bool:
        return name in self.excluded


class CursorState(BaseModel):
    """The selected event, by seq. None means no selection."""

    model_config = {"extra": "ignore"}

    seq: int | None = None
