# -*- coding: utf-8 -*-

import json
import logging
import sqlite3
from typing import Any

from storage.repos import AppStateRepo

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""


class KeyValueStore:
    """
    Async get/set of JSON-serializable values over the app_state table.
    SQLite calls are quick and bound to the loop thread, so they run inline.
    """

    def __init__(self, state: AppStateRepo):
        self.state = state

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self.state.get(key)
        except sqlite3.Error as exc:
            raise StorageError(f"read {key!r} failed: {exc}") from exc
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"value under {key!r} is not JSON: {exc}") from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key!r} is not JSON-serializable: {exc}") from exc
        try:
            self.state.set(key, raw)
        except sqlite3.Error as exc:
            raise StorageError(f"write {key!r} failed: {exc}") from exc
        logger.debug("stored %s (%d bytes)", key, len(raw))

    async def delete(self, key: str) -> None:
        try:
            self.state.delete(key)
        except sqlite3.Error as exc:
            raise StorageError(f"delete {key!r} failed: {exc}") from exc
