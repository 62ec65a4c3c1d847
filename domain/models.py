# -*- coding: utf-8 -*-

from dataclasses import dataclass

PHASE_IDLE = "idle"
PHASE_CONFIGURING = "configuring"
PHASE_RUNNING = "running"
PHASE_PAUSED = "paused"
PHASE_ENDED = "ended"


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    completed: bool = False
    created_date: str = ""  # yyyy-mm-dd


@dataclass(frozen=True)
class SessionConfig:
    duration_minutes: int = 25
    sound_id: str = "none"
    volume: float = 0.7
    muted: bool = False


@dataclass(frozen=True)
class SessionExit:
    mark_done: bool
    elapsed_minutes: int


@dataclass(frozen=True)
class StreakState:
    count: int
    last_active_date: str  # "Mon Oct 19 2026"
