"""
seqview Kernel — Persistence

Key/value stores the settings survive reloads in, and the SettingsStore that
(de)serialises FilterState, field by field, and CursorState through them.

A failing store never takes the engine down: reads fall back to defaults,
writes fall back to the in-memory value.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from seqview.kernel.settings import CursorState, FilterState

logger = logging.getLogger(__name__)

FILTERS_PREFIX = "seqview.filters."
CURSOR_KEY = "seqview.cursor"


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class KeyValueStore:
    """
    Abstract key/value interface.
    Implement with a file for the CLI, or in-memory for tests.
    """

    def get(self, key: str) -> str | None:
        """Return the stored string, or None if absent."""
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    All keys in one JSON object on disk, rewritten on every change.
    The file is created owner-only (0600).
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            return
        if isinstance(data, dict):
            self._data = {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)
        self.path.chmod(0o600)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()


# ---------------------------------------------------------------------------
# Settings store
# ---------------------------------------------------------------------------


def filter_key(field: str) -> str:
    """Store key of one FilterState field."""
    return f"{FILTERS_PREFIX}{field}"


class SettingsStore:
    """
    Holds the live FilterState and CursorState and writes them through to a
    KeyValueStore, one key per FilterState field. The in-memory copies are
    always authoritative: a key that cannot be written keeps its value in
    memory only.
    """

    def __init__(self, kv: KeyValueStore | None = None):
        self.kv = kv or MemoryKeyValueStore()
        # Last value written (or read) per key, so saves only touch changed keys
        self._stored: dict[str, str] = {}
        self.is_fresh = True
        self.filters: FilterState = self._read_filters()
        self.cursor: CursorState = self._read_cursor()

    # -- read --

    def _get(self, key: str) -> str | None:
        try:
            raw = self.kv.get(key)
        except Exception as e:
            logger.warning("Could not read %s, using the default: %s", key, e)
            return None
        if raw is not None:
            self._stored[key] = raw
        return raw

    def _read_filters(self) -> FilterState:
        data: dict[str, Any] = {}
        for name in FilterState.model_fields:
            raw = self._get(filter_key(name))
            if raw is None:
                continue
            self.is_fresh = False
            try:
                data[name] = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Discarding unreadable %s", filter_key(name))

        try:
            return FilterState.model_validate(data)
        except ValidationError as e:
            bad = {err["loc"][0] for err in e.errors() if err["loc"]}
            logger.warning("Discarding invalid filter settings: %s", ", ".join(sorted(map(str, bad))))
            return FilterState.model_validate({k: v for k, v in data.items() if k not in bad})

    def _read_cursor(self) -> CursorState:
        raw = self._get(CURSOR_KEY)
        if raw is None:
            return CursorState()
        try:
            return CursorState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding invalid %s: %s", CURSOR_KEY, e.errors()[:1])
            return CursorState()

    # -- write --

    def _write(self, key: str, raw: str) -> bool:
        if self._stored.get(key) == raw:
            return True
        try:
            self.kv.set(key, raw)
        except Exception as e:
            logger.warning("Could not persist %s, keeping it in memory: %s", key, e)
            return False
        self._stored[key] = raw
        return True

    def _remove(self, key: str) -> None:
        self._stored.pop(key, None)
        try:
            self.kv.remove(key)
        except Exception as e:
            logger.warning("Could not remove %s: %s", key, e)

    def save_filters(self) -> bool:
        """Write every changed FilterState field. False if any write failed."""
        ok = True
        for name, value in self.filters.model_dump(mode="json").items():
            ok = self._write(filter_key(name), json.dumps(value)) and ok
        return ok

    def save_cursor(self) -> bool:
        return self._write(CURSOR_KEY, self.cursor.model_dump_json())

    def reset_filters(self) -> None:
        self.filters = FilterState()
        for name in FilterState.model_fields:
            self._remove(filter_key(name))

    def clear(self) -> None:
        """Forget everything, persisted copies included."""
        self.reset_filters()
        self.cursor = CursorState()
        self._remove(CURSOR_KEY)
