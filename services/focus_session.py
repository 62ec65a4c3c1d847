# -*- coding: utf-8 -*-

import asyncio
import logging
from typing import Callable, Optional, Set

from core.timer_engine import FocusTimer, TimerSnapshot
from domain.models import PHASE_PAUSED, PHASE_RUNNING, SessionConfig, SessionExit, Task
from domain.sounds import SOUND_NONE
from services.audio_service import AudioService
from services.notification_service import NotificationService
from utils.numbers import as_float, clamp

logger = logging.getLogger(__name__)

DEFAULT_PROLONG_MINUTES = 10
NOTIFY_DRAIN_SEC = 2.0


class FocusSession:
    """
    One focus session, from start to exit. Orchestrates:
    - FocusTimer state
    - the countdown driver (one tick per second while running)
    - ambient sound through AudioService
    - the end-of-countdown notification
    - callbacks for the host

    An instance is single-use: after exit() it is closed and a new session
    needs a new instance.
    """

    def __init__(
        self,
        audio: AudioService,
        notifier: NotificationService,
        volume: float = 0.7,
        muted: bool = False,
        tick_seconds: float = 1.0,
        prolong_minutes: int = DEFAULT_PROLONG_MINUTES,
    ):
        self.audio = audio
        self.notifier = notifier

        self.timer = FocusTimer()
        self.task: Optional[Task] = None
        self.sound_id = SOUND_NONE
        self.volume = clamp(as_float(volume, default=0.7), 0.0, 1.0)
        self.muted = bool(muted)
        self.tick_seconds = tick_seconds
        self.prolong_minutes = prolong_minutes
        self.closed = False

        self._driver: Optional[asyncio.Task] = None
        self._driver_gen = 0
        self._background: Set[asyncio.Task] = set()

        self._on_tick: Optional[Callable[[TimerSnapshot], None]] = None
        self._on_phase_change: Optional[Callable[[TimerSnapshot], None]] = None
        self._on_exit: Optional[Callable[[SessionExit], None]] = None

    # ----- Callbacks -----
    def set_on_tick(self, fn: Callable[[TimerSnapshot], None]) -> None:
        self._on_tick = fn

    def set_on_phase_change(self, fn: Callable[[TimerSnapshot], None]) -> None:
        self._on_phase_change = fn

    def set_on_exit(self, fn: Callable[[SessionExit], None]) -> None:
        self._on_exit = fn

    def _emit(self, fn, payload) -> None:
        if not fn:
            return
        try:
            fn(payload)
        except Exception:
            logger.warning("session callback %r failed", fn, exc_info=True)

    def _emit_tick(self) -> None:
        self._emit(self._on_tick, self.timer.snapshot())

    def _emit_phase_change(self) -> None:
        self._emit(self._on_phase_change, self.timer.snapshot())

    # ----- State -----
    def get_snapshot(self) -> TimerSnapshot:
        return self.timer.snapshot()

    @property
    def phase(self) -> str:
        return self.timer.phase

    @property
    def progress(self) -> float:
        return self.timer.snapshot().progress

    @property
    def effective_volume(self) -> float:
        return 0.0 if self.muted else self.volume

    @property
    def driver_active(self) -> bool:
        return self._driver is not None and not self._driver.done()

    # ----- Public API -----
    async def configure(self, minutes, sound_id: Optional[str] = None, preview: bool = True) -> bool:
        if self.closed or not self.timer.configure(minutes):
            return False
        if sound_id is not None:
            self.sound_id = sound_id
            if preview:
                await self.audio.preview(sound_id, volume=self._preview_volume())
        self._emit_phase_change()
        return True

    async def start(self, task: Task, config: SessionConfig) -> None:
        if self.closed:
            raise ValueError("Session already exited; start a new one.")
        if task is None or not task.id:
            raise ValueError("Task must be selected before starting a focus session.")
        if not self.timer.start(config.duration_minutes):
            raise ValueError("Session already started.")

        self.task = task
        self.sound_id = config.sound_id or SOUND_NONE
        self.volume = clamp(as_float(config.volume, default=self.volume), 0.0, 1.0)
        self.muted = bool(config.muted)

        self._start_driver()
        logger.info(
            "focus session started: task=%s minutes=%d sound=%s",
            task.id, self.timer.minutes, self.sound_id,
        )
        self._emit_phase_change()
        self._emit_tick()

        await self.audio.stop_preview()
        await self._play_main()

    async def tick(self) -> None:
        """
        Called once per second by the countdown driver.
        Finishing the countdown ends the session phase exactly once.
        """
        if not self.timer.is_running:
            return

        finished = self.timer.tick()
        self._emit_tick()

        if finished:
            await self._finish()

    async def pause(self) -> bool:
        if not self.timer.pause():
            return False
        self._cancel_driver()
        logger.info("focus session paused at %ds remaining", self.timer.remaining_sec)
        self._emit_phase_change()
        await self.audio.stop_all()
        return True

    async def resume(self) -> bool:
        if not self.timer.resume():
            return False
        self._start_driver()
        logger.info("focus session resumed at %ds remaining", self.timer.remaining_sec)
        self._emit_phase_change()
        await self._play_main()
        return True

    async def toggle_pause(self) -> bool:
        if self.timer.phase == PHASE_RUNNING:
            return await self.pause()
        if self.timer.phase == PHASE_PAUSED:
            return await self.resume()
        return False

    async def prolong(self, extra_minutes: Optional[int] = None) -> bool:
        extra = self.prolong_minutes if extra_minutes is None else extra_minutes
        if not self.timer.prolong(extra):
            return False
        self._start_driver()
        logger.info("focus session prolonged by %d min", extra)
        self._emit_phase_change()
        self._emit_tick()
        await self._play_main()
        return True

    async def set_volume(self, volume) -> float:
        # the audio service outlives this session; leave the next one alone
        if self.closed:
            return self.volume
        self.volume = clamp(as_float(volume, default=self.volume), 0.0, 1.0)
        self.audio.set_volume(self.effective_volume)
        return self.volume

    async def toggle_mute(self) -> bool:
        if self.closed:
            return self.muted
        self.muted = not self.muted
        self.audio.set_volume(self.effective_volume)
        return self.muted

    async def exit(self, mark_done: bool = False) -> Optional[SessionExit]:
        if self.closed:
            return None
        self.closed = True
        self._cancel_driver()

        outcome = SessionExit(
            mark_done=bool(mark_done),
            elapsed_minutes=self.timer.elapsed_minutes(),
        )
        self.timer.reset()
        logger.info(
            "focus session exited: done=%s elapsed=%d min",
            outcome.mark_done, outcome.elapsed_minutes,
        )

        await self.audio.stop_all()
        await self._drain_background()

        self._emit_phase_change()
        self._emit(self._on_exit, outcome)
        return outcome

    # ----- Internals -----
    async def _finish(self) -> None:
        self._cancel_driver()
        logger.info("focus session countdown finished")
        self._emit_phase_change()
        self._spawn(self.notifier.notify_session_complete(self.task))
        await self.audio.stop_main()

    async def _play_main(self) -> None:
        if self.closed or not self.timer.is_running:
            return
        await self.audio.play_main(self.sound_id, self.effective_volume)
        # left running while the sound was loading
        if self.closed or not self.timer.is_running:
            await self.audio.stop_main()

    def _preview_volume(self) -> float:
        if self.muted:
            return 0.0
        return min(1.0, self.volume + 0.1)

    def _start_driver(self) -> None:
        self._cancel_driver()
        self._driver = asyncio.create_task(self._run_driver(self._driver_gen))

    def _cancel_driver(self) -> None:
        # bumping the generation stops a driver that already woke up
        self._driver_gen += 1
        driver, self._driver = self._driver, None
        if driver is not None and driver is not asyncio.current_task():
            driver.cancel()

    async def _run_driver(self, gen: int) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while gen == self._driver_gen:
            next_at += self.tick_seconds
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if gen != self._driver_gen or not self.timer.is_running:
                return
            await self.tick()

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _drain_background(self) -> None:
        pending = [t for t in self._background if not t.done()]
        if not pending:
            return
        _, still_pending = await asyncio.wait(pending, timeout=NOTIFY_DRAIN_SEC)
        for task in still_pending:
            task.cancel()
