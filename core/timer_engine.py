# -*- coding: utf-8 -*-

import math
from dataclasses import dataclass

from domain.models import (
    PHASE_CONFIGURING,
    PHASE_ENDED,
    PHASE_IDLE,
    PHASE_PAUSED,
    PHASE_RUNNING,
)
from utils.numbers import clamp, round_half_up

MIN_MINUTES = 1
MAX_MINUTES = 480
DEFAULT_MINUTES = 25
TIME_OPTIONS = (10, 15, 25, 45, 60, 90)


def clamp_duration(value) -> int:
    """
    Minutes for a session: numbers are clamped to [1, 480]; empty, zero and
    non-numeric input falls back to 25.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_MINUTES
    try:
        minutes = float(str(value).strip())
    except ValueError:
        return DEFAULT_MINUTES
    if math.isnan(minutes) or minutes == 0:
        return DEFAULT_MINUTES
    return int(clamp(minutes, MIN_MINUTES, MAX_MINUTES))


@dataclass(frozen=True)
class TimerSnapshot:
    phase: str  # idle | configuring | running | paused | ended
    total_sec: int
    remaining_sec: int

    @property
    def elapsed_sec(self) -> int:
        return self.total_sec - self.remaining_sec

    @property
    def progress(self) -> float:
        if self.total_sec <= 0:
            return 0.0
        return self.elapsed_sec / self.total_sec


class FocusTimer:
    """
    Pure countdown state machine (no I/O, no clock).
    The session service drives tick() once per second while running.
    """

    def __init__(self, minutes: int = DEFAULT_MINUTES):
        self.phase = PHASE_IDLE
        self.minutes = clamp_duration(minutes)
        self.total_sec = self.minutes * 60
        self.remaining_sec = self.total_sec

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self.phase,
            total_sec=self.total_sec,
            remaining_sec=self.remaining_sec,
        )

    @property
    def is_running(self) -> bool:
        return self.phase == PHASE_RUNNING

    def configure(self, minutes) -> bool:
        if self.phase not in (PHASE_IDLE, PHASE_CONFIGURING):
            return False
        self.minutes = clamp_duration(minutes)
        self.total_sec = self.minutes * 60
        self.remaining_sec = self.total_sec
        self.phase = PHASE_CONFIGURING
        return True

    def start(self, minutes=None) -> bool:
        if self.phase not in (PHASE_IDLE, PHASE_CONFIGURING):
            return False
        if minutes is not None:
            self.minutes = clamp_duration(minutes)
        self.total_sec = self.minutes * 60
        self.remaining_sec = self.total_sec
        self.phase = PHASE_RUNNING
        return True

    def pause(self) -> bool:
        if self.phase != PHASE_RUNNING:
            return False
        self.phase = PHASE_PAUSED
        return True

    def resume(self) -> bool:
        if self.phase != PHASE_PAUSED:
            return False
        self.phase = PHASE_RUNNING
        return True

    def prolong(self, extra_minutes: int) -> bool:
        if self.phase != PHASE_ENDED:
            return False
        extra = max(1, int(extra_minutes)) * 60
        self.total_sec += extra
        self.remaining_sec += extra
        self.phase = PHASE_RUNNING
        return True

    def tick(self) -> bool:
        """
        Returns True if this tick finished the countdown.
        """
        if self.phase != PHASE_RUNNING:
            return False

        if self.remaining_sec > 0:
            self.remaining_sec -= 1

        if self.remaining_sec <= 0:
            self.remaining_sec = 0
            self.phase = PHASE_ENDED
            return True

        return False

    def elapsed_minutes(self) -> int:
        return max(0, round_half_up((self.total_sec - self.remaining_sec) / 60))

    def reset(self) -> None:
        self.phase = PHASE_IDLE
        self.total_sec = self.minutes * 60
        self.remaining_sec = self.total_sec
