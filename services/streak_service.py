# -*- coding: utf-8 -*-

import asyncio
import datetime as dt
import logging
from typing import Optional

from domain.models import StreakState
from storage.kv_store import KeyValueStore, StorageError
from utils.dates import to_date_string, today
from utils.numbers import as_int

logger = logging.getLogger(__name__)

STREAK_KEY = "focus_streak"
LAST_DATE_KEY = "last_focus_date"


class StreakService:
    """Consecutive calendar days with at least one session marked done."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def get_state(self) -> StreakState:
        try:
            count = await self.store.get(STREAK_KEY)
            last = await self.store.get(LAST_DATE_KEY)
        except StorageError as exc:
            logger.warning("streak read failed, treating as no streak: %s", exc)
            return StreakState(count=0, last_active_date="")
        return StreakState(
            count=max(0, as_int(count, default=0)),
            last_active_date=last if isinstance(last, str) else "",
        )

    async def get_streak(self) -> int:
        return (await self.get_state()).count

    async def update_streak(self, today_date: Optional[dt.date] = None) -> int:
        day = today_date or today()
        today_str = to_date_string(day)
        yesterday_str = to_date_string(day - dt.timedelta(days=1))

        async with self._lock:
            state = await self.get_state()
            if state.last_active_date == today_str:
                return state.count

            if state.last_active_date == yesterday_str:
                count = state.count + 1
            else:
                count = 1

            try:
                await self.store.set(STREAK_KEY, count)
                await self.store.set(LAST_DATE_KEY, today_str)
            except StorageError as exc:
                logger.warning("streak write failed: %s", exc)

        logger.info("streak is now %d (%s)", count, today_str)
        return count
