from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from domain.sounds import SoundCatalog
from storage.db import Database
from storage.kv_store import KeyValueStore, StorageError
from storage.repos import AppStateRepo


def memory_db() -> Database:
    db = Database(db_path=":memory:")
    db.init_schema()
    return db


def memory_store(db: Database | None = None) -> KeyValueStore:
    return KeyValueStore(AppStateRepo(db or memory_db()))


class FailingStore(KeyValueStore):
    def __init__(self) -> None:
        super().__init__(state=None)

    async def get(self, key: str, default: Any = None) -> Any:
        raise StorageError(f"read {key!r} failed: disk unplugged")

    async def set(self, key: str, value: Any) -> None:
        raise StorageError(f"write {key!r} failed: disk unplugged")


class FakePlayback:
    def __init__(self, player: "FakePlayer", path: Path, loop: bool, volume: float) -> None:
        self.player = player
        self.path = path
        self.loop = loop
        self.volume = volume
        self.stop_calls = 0

    @property
    def active(self) -> bool:
        return self.stop_calls == 0

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def stop(self) -> None:
        self.stop_calls += 1
        self.player.events.append(("stop", self.path.stem))


class FakePlayer:
    """Records opens/stops in order; open() yields to the loop like a real load."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.opened: list[FakePlayback] = []
        self.events: list[tuple[str, str]] = []
        self.shutdown_calls = 0

    async def open(self, path: Path, loop: bool, volume: float) -> FakePlayback:
        await asyncio.sleep(0)
        if path.stem in self.fail_on:
            raise RuntimeError(f"cannot decode {path.name}")
        playback = FakePlayback(self, path, loop, volume)
        self.opened.append(playback)
        self.events.append(("open", path.stem))
        return playback

    def active(self, loop: bool | None = None) -> list[FakePlayback]:
        return [p for p in self.opened if p.active and (loop is None or p.loop == loop)]

    def shutdown(self) -> None:
        self.shutdown_calls += 1


class FakeNotifyBackend:
    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def notify(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


def fake_catalog() -> SoundCatalog:
    return SoundCatalog(Path("/sounds"))
