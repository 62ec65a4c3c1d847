# -*- coding: utf-8 -*-

import asyncio
import logging
from pathlib import Path
from typing import Optional

import pygame

from domain.sounds import SOUND_NONE, SoundCatalog
from utils.numbers import clamp

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_MS = 5000


class AudioError(RuntimeError):
    pass


class PygamePlayback:
    def __init__(self, sound: "pygame.mixer.Sound", channel: "pygame.mixer.Channel", path: Path):
        self.sound = sound
        self.channel = channel
        self.path = path

    def set_volume(self, volume: float) -> None:
        self.channel.set_volume(volume)

    def stop(self) -> None:
        self.channel.stop()


class PygamePlayer:
    """Opens sounds on the pygame mixer; each playback owns one channel."""

    def _ensure_mixer(self) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init()

    async def open(self, path: Path, loop: bool, volume: float) -> PygamePlayback:
        try:
            self._ensure_mixer()
        except pygame.error as exc:
            raise AudioError(f"mixer unavailable: {exc}") from exc
        if not Path(path).exists():
            raise AudioError(f"sound file missing: {path}")
        try:
            sound = await asyncio.to_thread(pygame.mixer.Sound, str(path))
        except pygame.error as exc:
            raise AudioError(f"cannot load {path}: {exc}") from exc
        channel = sound.play(loops=-1 if loop else 0)
        if channel is None:
            raise AudioError(f"no free mixer channel for {path}")
        channel.set_volume(volume)
        return PygamePlayback(sound, channel, Path(path))

    def shutdown(self) -> None:
        if pygame.mixer.get_init():
            pygame.mixer.quit()


class AudioService:
    """
    Owns at most one looping "main" playback and one one-shot "preview".
    Every opened playback is stopped exactly once; per-channel locks make a
    stop finish before the next start on the same channel.
    """

    def __init__(self, catalog: SoundCatalog, player=None, preview_ms: int = DEFAULT_PREVIEW_MS):
        self.catalog = catalog
        self.player = player if player is not None else PygamePlayer()
        self.preview_ms = preview_ms

        self._main = None
        self._preview = None
        self._preview_timer: Optional[asyncio.Task] = None

        self._main_lock = asyncio.Lock()
        self._preview_lock = asyncio.Lock()

    # ----- State -----
    @property
    def main_active(self) -> bool:
        return self._main is not None

    @property
    def preview_active(self) -> bool:
        return self._preview is not None

    # ----- Main loop -----
    async def play_main(self, sound_id: str, volume: float):
        path = self._resolve(sound_id)
        if path is None:
            return None

        async with self._main_lock:
            self._stop_main_locked()
            try:
                handle = await self.player.open(path, loop=True, volume=clamp(volume, 0.0, 1.0))
            except Exception as exc:  # noqa: BLE001
                logger.warning("main playback of %r failed, continuing silently: %s", sound_id, exc)
                return None
            self._main = handle
            logger.debug("main playback started: %s", sound_id)
            return handle

    async def stop_main(self) -> None:
        async with self._main_lock:
            self._stop_main_locked()

    def _stop_main_locked(self) -> None:
        handle, self._main = self._main, None
        if handle is not None:
            self._release(handle, "main")

    # ----- Preview -----
    async def preview(self, sound_id: str, duration_ms: Optional[int] = None, volume: float = 1.0):
        delay = (self.preview_ms if duration_ms is None else duration_ms) / 1000.0

        async with self._preview_lock:
            self._stop_preview_locked()
            path = self._resolve(sound_id)
            if path is None:
                return None
            try:
                handle = await self.player.open(path, loop=False, volume=clamp(volume, 0.0, 1.0))
            except Exception as exc:  # noqa: BLE001
                logger.warning("preview of %r failed: %s", sound_id, exc)
                return None
            self._preview = handle
            self._preview_timer = asyncio.create_task(self._auto_stop_preview(handle, delay))
            return handle

    async def stop_preview(self) -> None:
        async with self._preview_lock:
            self._stop_preview_locked()

    async def _auto_stop_preview(self, handle, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self._preview_lock:
            if self._preview is not handle:
                # superseded by a newer preview or an explicit stop
                return
            self._preview = None
            self._preview_timer = None
            self._release(handle, "preview")

    def _stop_preview_locked(self) -> None:
        timer, self._preview_timer = self._preview_timer, None
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
        handle, self._preview = self._preview, None
        if handle is not None:
            self._release(handle, "preview")

    # ----- Shared -----
    def set_volume(self, volume: float) -> None:
        volume = clamp(volume, 0.0, 1.0)
        for name, handle in (("main", self._main), ("preview", self._preview)):
            if handle is None:
                continue
            try:
                handle.set_volume(volume)
            except Exception as exc:  # noqa: BLE001
                logger.warning("setting %s volume failed: %s", name, exc)

    async def stop_all(self) -> None:
        await self.stop_main()
        await self.stop_preview()

    async def close(self) -> None:
        await self.stop_all()
        shutdown = getattr(self.player, "shutdown", None)
        if callable(shutdown):
            try:
                shutdown()
            except Exception as exc:  # noqa: BLE001
                logger.warning("audio backend shutdown failed: %s", exc)

    def _resolve(self, sound_id: str) -> Optional[Path]:
        path = self.catalog.resolve(sound_id)
        if path is None and sound_id and sound_id != SOUND_NONE:
            logger.warning("unknown sound id %r, playing nothing", sound_id)
        return path

    @staticmethod
    def _release(handle, name: str) -> None:
        try:
            handle.stop()
        except Exception as exc:  # noqa: BLE001
            logger.warning("stopping %s playback failed: %s", name, exc)
