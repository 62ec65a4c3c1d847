# -*- coding: utf-8 -*-

import asyncio
import datetime as dt
import logging
from typing import Callable, Dict, Optional

from core.observable import Subscribers
from storage.kv_store import KeyValueStore, StorageError
from utils.dates import parse_date_key, today
from utils.numbers import as_float, as_int, clamp, round_half_up

logger = logging.getLogger(__name__)

LEDGER_KEY = "focus_minutes_by_date"
TARGET_KEY = "focus_daily_target"

DEFAULT_TARGET = 60
MIN_TARGET = 1
MAX_TARGET = 1440


def clamp_target(value) -> int:
    minutes = as_int(value, default=DEFAULT_TARGET)
    if minutes == 0:
        return DEFAULT_TARGET
    return int(clamp(minutes, MIN_TARGET, MAX_TARGET))


def intensity(minutes: int, target: int) -> float:
    """Share of the daily target reached, capped at 1.0 (display only)."""
    if target <= 0:
        target = DEFAULT_TARGET
    return clamp(minutes / target, 0.0, 1.0)


def _clean_entries(raw) -> Dict[str, int]:
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("ledger blob is not a mapping, ignoring it")
        return {}
    entries: Dict[str, int] = {}
    for key, value in raw.items():
        if parse_date_key(key) is None:
            logger.warning("dropping ledger entry with bad date key %r", key)
            continue
        entries[str(key)] = max(0, as_int(value, default=0))
    return entries


class LedgerService:
    """
    Persisted date -> focused minutes, with live subscribers.
    The mapping is loaded lazily and written back whole on every change;
    changes are serialised so concurrent sessions cannot lose minutes.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.changes = Subscribers("ledger")
        self.target_changes = Subscribers("daily target")

        self._entries: Optional[Dict[str, int]] = None
        self._degraded = False
        self._lock = asyncio.Lock()

    # ----- Loading -----
    async def _load(self) -> Dict[str, int]:
        if self._entries is not None:
            return self._entries
        try:
            raw = await self.store.get(LEDGER_KEY, default={})
        except StorageError as exc:
            logger.warning("ledger read failed, using an in-memory ledger: %s", exc)
            self._degraded = True
            self._entries = {}
            return self._entries
        self._degraded = False
        self._entries = _clean_entries(raw)
        return self._entries

    def invalidate(self) -> None:
        """Forget the cached mapping; the next read goes back to the store."""
        self._entries = None
        self._degraded = False

    # ----- Reads -----
    async def get_for_date(self, date_key: str) -> int:
        entries = await self._load()
        return entries.get(str(date_key), 0)

    async def get_all(self) -> Dict[str, int]:
        return dict(await self._load())

    async def get_sum(self, last_n_days: Optional[int] = None,
                      today_date: Optional[dt.date] = None) -> int:
        entries = await self._load()
        if not last_n_days:
            return sum(entries.values())

        end = today_date or today()
        start = end - dt.timedelta(days=max(1, int(last_n_days)) - 1)
        total = 0
        for key, minutes in entries.items():
            day = parse_date_key(key)
            if day is not None and start <= day <= end:
                total += minutes
        return total

    # ----- Writes -----
    async def add_minutes(self, date_key: str, minutes) -> int:
        if parse_date_key(date_key) is None:
            raise ValueError(f"Invalid date key {date_key!r}. Use YYYY-MM-DD.")
        to_add = max(0, round_half_up(as_float(minutes, default=0.0)))

        async with self._lock:
            entries = dict(await self._load())
            entries[date_key] = entries.get(date_key, 0) + to_add
            if self._degraded:
                # never overwrite a ledger we could not read
                logger.warning("ledger unreadable, %s kept in memory only", date_key)
            else:
                try:
                    await self.store.set(LEDGER_KEY, entries)
                except StorageError as exc:
                    logger.warning("ledger write failed, keeping %s in memory: %s", date_key, exc)
            self._entries = entries
            fresh = dict(entries)

        logger.info("ledger %s += %d -> %d", date_key, to_add, fresh[date_key])
        self.changes.publish(fresh)
        return fresh[date_key]

    def subscribe(self, callback: Callable[[Dict[str, int]], None]) -> Callable[[], None]:
        return self.changes.subscribe(callback)

    # ----- Daily target -----
    async def get_target(self) -> int:
        try:
            raw = await self.store.get(TARGET_KEY)
        except StorageError as exc:
            logger.warning("target read failed, using %d: %s", DEFAULT_TARGET, exc)
            return DEFAULT_TARGET
        if raw is None:
            return DEFAULT_TARGET
        return clamp_target(raw)

    async def set_target(self, minutes) -> int:
        target = clamp_target(minutes)
        try:
            await self.store.set(TARGET_KEY, target)
        except StorageError as exc:
            logger.warning("target write failed: %s", exc)
        self.target_changes.publish(target)
        return target

    def subscribe_target(self, callback: Callable[[int], None]) -> Callable[[], None]:
        return self.target_changes.subscribe(callback)

    async def intensity_for_date(self, date_key: str) -> float:
        return intensity(await self.get_for_date(date_key), await self.get_target())
