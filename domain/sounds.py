# -*- coding: utf-8 -*-

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

SOUND_NONE = "none"


@dataclass(frozen=True)
class SoundEntry:
    key: str
    label: str
    file: str
    free: bool = True


SOUNDS = [
    SoundEntry("rain", "Rain", "rain.mp3", free=True),
    SoundEntry("white", "White Noise", "white.mp3", free=True),
    SoundEntry("birds", "Birds", "birds.mp3", free=False),
    SoundEntry("river", "River", "river.mp3", free=False),
    SoundEntry("ambient", "Ambient", "ambient.mp3", free=False),
    SoundEntry("gong", "Gong", "gong.mp3", free=False),
]


class SoundCatalog:
    """Maps a sound id to an audio file under `sound_dir`. `none` is silence."""

    def __init__(self, sound_dir: Path, entries: Optional[List[SoundEntry]] = None):
        self.sound_dir = Path(sound_dir)
        self._entries = {e.key: e for e in (entries if entries is not None else SOUNDS)}

    def entries(self) -> List[SoundEntry]:
        return list(self._entries.values())

    def is_known(self, sound_id: str) -> bool:
        return sound_id == SOUND_NONE or sound_id in self._entries

    def label(self, sound_id: str) -> str:
        entry = self._entries.get(sound_id)
        return entry.label if entry else "None"

    def resolve(self, sound_id: Optional[str]) -> Optional[Path]:
        # None for silence and for ids the catalog does not carry
        if not sound_id or sound_id == SOUND_NONE:
            return None
        entry = self._entries.get(sound_id)
        if entry is None:
            return None
        return self.sound_dir / entry.file
