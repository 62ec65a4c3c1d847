from __future__ import annotations

import asyncio
import unittest

from domain.models import PHASE_CONFIGURING, PHASE_ENDED, PHASE_IDLE, PHASE_PAUSED, PHASE_RUNNING, SessionConfig, Task
from services.audio_service import AudioService
from services.focus_session import FocusSession
from services.notification_service import NotificationService
from tests.helpers import FakeNotifyBackend, FakePlayer, fake_catalog

TASK = Task(id="1", title="Write report")


class TestFocusSession(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.player = FakePlayer()
        self.audio = AudioService(fake_catalog(), player=self.player)
        self.backend = FakeNotifyBackend()
        self.notifier = NotificationService(backend=self.backend)
        # a slow driver keeps the countdown under manual control
        self.session = self._session(tick_seconds=3600)
        self.phases: list[str] = []
        self.session.set_on_phase_change(lambda snap: self.phases.append(snap.phase))

    async def asyncTearDown(self) -> None:
        await self.session.exit()
        await self.audio.close()

    def _session(self, **kwargs) -> FocusSession:
        return FocusSession(self.audio, self.notifier, **kwargs)

    async def _tick(self, n: int) -> None:
        for _ in range(n):
            await self.session.tick()

    async def test_start_sets_totals_and_plays_main_loop(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=25, sound_id="rain", volume=0.5))

        snap = self.session.get_snapshot()
        self.assertEqual(PHASE_RUNNING, snap.phase)
        self.assertEqual(1500, snap.total_sec)
        self.assertEqual(1500, snap.remaining_sec)
        self.assertTrue(self.session.driver_active)

        loops = self.player.active(loop=True)
        self.assertEqual(1, len(loops))
        self.assertEqual("rain", loops[0].path.stem)
        self.assertEqual(0.5, loops[0].volume)

    async def test_start_without_task_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            await self.session.start(None, SessionConfig())
        with self.assertRaises(ValueError):
            await self.session.start(Task(id="", title="nothing"), SessionConfig())
        self.assertEqual(PHASE_IDLE, self.session.phase)

    async def test_start_twice_is_rejected(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=5))
        with self.assertRaises(ValueError):
            await self.session.start(TASK, SessionConfig(duration_minutes=5))

    async def test_silent_session_plays_nothing(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=5, sound_id="none"))
        self.assertEqual([], self.player.opened)

    async def test_countdown_end_stops_sound_and_notifies_once(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=1, sound_id="rain"))
        await self._tick(59)
        self.assertEqual(PHASE_RUNNING, self.session.phase)

        await self._tick(1)
        self.assertEqual(PHASE_ENDED, self.session.phase)
        self.assertEqual(0, self.session.get_snapshot().remaining_sec)
        self.assertFalse(self.session.driver_active)
        self.assertEqual([], self.player.active())

        await self._tick(5)  # late ticks change nothing
        outcome = await self.session.exit()

        self.assertEqual(1, self.phases.count(PHASE_ENDED))
        self.assertEqual(1, len(self.backend.calls))
        self.assertEqual("Focus complete: Write report", self.backend.calls[0]["title"])
        self.assertEqual(1, outcome.elapsed_minutes)

    async def test_failed_notification_does_not_break_the_end(self) -> None:
        self.notifier.backend = FakeNotifyBackend(error=OSError("dbus gone"))
        await self.session.start(TASK, SessionConfig(duration_minutes=1))
        await self._tick(60)
        outcome = await self.session.exit()
        self.assertEqual(PHASE_IDLE, self.session.phase)
        self.assertEqual(1, outcome.elapsed_minutes)

    async def test_pause_stops_audio_and_driver(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=25, sound_id="rain"))
        await self._tick(100)

        self.assertTrue(await self.session.pause())
        self.assertEqual(PHASE_PAUSED, self.session.phase)
        self.assertFalse(self.session.driver_active)
        self.assertEqual([], self.player.active())

        await self._tick(10)
        self.assertEqual(1400, self.session.get_snapshot().remaining_sec)
        self.assertFalse(await self.session.pause())

    async def test_resume_keeps_remaining_and_restarts_sound(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=25, sound_id="rain"))
        await self._tick(100)
        await self.session.pause()

        self.assertTrue(await self.session.resume())
        self.assertEqual(PHASE_RUNNING, self.session.phase)
        self.assertEqual(1400, self.session.get_snapshot().remaining_sec)
        self.assertTrue(self.session.driver_active)
        self.assertEqual(1, len(self.player.active(loop=True)))

    async def test_toggle_pause(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=5))
        self.assertTrue(await self.session.toggle_pause())
        self.assertEqual(PHASE_PAUSED, self.session.phase)
        self.assertTrue(await self.session.toggle_pause())
        self.assertEqual(PHASE_RUNNING, self.session.phase)

    async def test_prolong_after_end_adds_minutes(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=1, sound_id="rain"))
        self.assertFalse(await self.session.prolong())
        await self._tick(60)

        self.assertTrue(await self.session.prolong())
        snap = self.session.get_snapshot()
        self.assertEqual(PHASE_RUNNING, snap.phase)
        self.assertEqual(660, snap.total_sec)
        self.assertEqual(600, snap.remaining_sec)
        self.assertTrue(self.session.driver_active)
        self.assertEqual(1, len(self.player.active(loop=True)))

        await self._tick(300)
        outcome = await self.session.exit(mark_done=True)
        self.assertEqual(6, outcome.elapsed_minutes)

    async def test_exit_reports_elapsed_once(self) -> None:
        exits = []
        self.session.set_on_exit(exits.append)
        await self.session.start(TASK, SessionConfig(duration_minutes=25, sound_id="rain"))
        await self._tick(1230)

        outcome = await self.session.exit(mark_done=True)
        self.assertTrue(outcome.mark_done)
        self.assertEqual(21, outcome.elapsed_minutes)
        self.assertEqual(PHASE_IDLE, self.session.phase)
        self.assertEqual([], self.player.active())

        self.assertIsNone(await self.session.exit(mark_done=True))
        self.assertEqual([outcome], exits)

        with self.assertRaises(ValueError):
            await self.session.start(TASK, SessionConfig())

    async def test_exit_before_any_tick_is_zero_minutes(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=25))
        outcome = await self.session.exit()
        self.assertFalse(outcome.mark_done)
        self.assertEqual(0, outcome.elapsed_minutes)

    async def test_volume_and_mute_reach_audio(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=5, sound_id="rain", volume=0.5))
        handle = self.player.active(loop=True)[0]

        self.assertEqual(0.3, await self.session.set_volume(0.3))
        self.assertEqual(0.3, handle.volume)

        self.assertTrue(await self.session.toggle_mute())
        self.assertEqual(0.0, handle.volume)
        self.assertEqual(0.0, self.session.effective_volume)

        self.assertFalse(await self.session.toggle_mute())
        self.assertEqual(0.3, handle.volume)

    async def test_exited_session_cannot_touch_next_sessions_sound(self) -> None:
        await self.session.start(TASK, SessionConfig(duration_minutes=5, sound_id="rain", volume=0.9))
        await self.session.exit()

        following = self._session(tick_seconds=3600)
        await following.start(TASK, SessionConfig(duration_minutes=5, sound_id="white", volume=0.5))
        handle = self.player.active(loop=True)[0]

        self.assertFalse(await self.session.toggle_mute())
        self.assertEqual(0.9, await self.session.set_volume(0.1))
        self.assertEqual(0.5, handle.volume)
        self.assertEqual(0.5, following.effective_volume)
        await following.exit()

    async def test_configure_previews_and_is_refused_once_started(self) -> None:
        self.session.volume = 0.5
        self.assertTrue(await self.session.configure(45, sound_id="birds"))
        self.assertEqual(PHASE_CONFIGURING, self.session.phase)

        previews = self.player.active(loop=False)
        self.assertEqual(1, len(previews))
        self.assertAlmostEqual(0.6, previews[0].volume)

        await self.session.start(TASK, SessionConfig(duration_minutes=45, sound_id="birds"))
        self.assertEqual([], self.player.active(loop=False))
        self.assertFalse(await self.session.configure(10))
        self.assertEqual(45 * 60, self.session.get_snapshot().total_sec)

    async def test_driver_runs_countdown_to_the_end(self) -> None:
        session = self._session(tick_seconds=0.001)
        ticks = []
        ended = asyncio.Event()
        session.set_on_tick(lambda snap: ticks.append(snap.remaining_sec))
        session.set_on_phase_change(lambda snap: snap.phase == PHASE_ENDED and ended.set())

        await session.start(TASK, SessionConfig(duration_minutes=1))
        await asyncio.wait_for(ended.wait(), timeout=5)

        self.assertEqual(0, session.get_snapshot().remaining_sec)
        self.assertEqual(list(range(60, -1, -1)), ticks)
        self.assertFalse(session.driver_active)
        outcome = await session.exit()
        self.assertEqual(1, outcome.elapsed_minutes)

    async def test_driver_does_not_tick_while_paused(self) -> None:
        session = self._session(tick_seconds=0.001)
        await session.start(TASK, SessionConfig(duration_minutes=25))
        await asyncio.sleep(0.02)
        await session.pause()
        remaining = session.get_snapshot().remaining_sec

        await asyncio.sleep(0.05)
        self.assertEqual(remaining, session.get_snapshot().remaining_sec)
        self.assertLess(remaining, 1500)
        await session.exit()


if __name__ == "__main__":
    unittest.main()
