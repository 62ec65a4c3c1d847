# -*- coding: utf-8 -*-

import logging
from typing import Callable

from core.timer_engine import DEFAULT_MINUTES, clamp_duration
from domain.models import SessionConfig
from domain.sounds import SOUND_NONE, SoundCatalog
from services.ledger_service import LedgerService
from storage.kv_store import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

TIME_KEY = "settings_default_focus_time"
SOUND_KEY = "settings_default_sound"


class SettingsService:
    """
    Persisted defaults for new sessions. The daily target lives in the
    ledger; this service only forwards to it so there is one stored value.
    """

    def __init__(self, store: KeyValueStore, catalog: SoundCatalog, ledger: LedgerService):
        self.store = store
        self.catalog = catalog
        self.ledger = ledger

    async def get_default_time(self) -> int:
        try:
            raw = await self.store.get(TIME_KEY)
        except StorageError as exc:
            logger.warning("default time read failed: %s", exc)
            return DEFAULT_MINUTES
        return DEFAULT_MINUTES if raw is None else clamp_duration(raw)

    async def set_default_time(self, minutes) -> int:
        value = clamp_duration(minutes)
        try:
            await self.store.set(TIME_KEY, value)
        except StorageError as exc:
            logger.warning("default time write failed: %s", exc)
        return value

    async def get_default_sound(self) -> str:
        try:
            raw = await self.store.get(SOUND_KEY)
        except StorageError as exc:
            logger.warning("default sound read failed: %s", exc)
            return SOUND_NONE
        if not isinstance(raw, str) or not self.catalog.is_known(raw):
            return SOUND_NONE
        return raw

    async def set_default_sound(self, sound_id: str) -> str:
        sound_id = (sound_id or SOUND_NONE).strip().lower()
        if not self.catalog.is_known(sound_id):
            raise ValueError(f"Unknown sound {sound_id!r}.")
        try:
            await self.store.set(SOUND_KEY, sound_id)
        except StorageError as exc:
            logger.warning("default sound write failed: %s", exc)
        return sound_id

    async def get_daily_target(self) -> int:
        return await self.ledger.get_target()

    async def set_daily_target(self, minutes) -> int:
        return await self.ledger.set_target(minutes)

    def subscribe_daily_target(self, callback: Callable[[int], None]) -> Callable[[], None]:
        return self.ledger.subscribe_target(callback)

    async def session_config(self, volume: float = 0.7, muted: bool = False) -> SessionConfig:
        return SessionConfig(
            duration_minutes=await self.get_default_time(),
            sound_id=await self.get_default_sound(),
            volume=volume,
            muted=muted,
        )
