#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path

from core.config import FocusConfig, load_focus_toml
from core.timer_engine import TimerSnapshot
from domain.models import PHASE_ENDED, SessionConfig
from domain.sounds import SoundCatalog
from services.audio_service import AudioService
from services.focus_session import FocusSession
from services.ledger_service import LedgerService, intensity
from services.notification_service import NotificationService
from services.session_recorder import SessionRecorder
from services.settings_service import SettingsService
from services.streak_service import StreakService
from services.task_service import TaskService
from storage.db import Database
from storage.kv_store import KeyValueStore
from storage.repos import AppStateRepo
from utils.dates import date_key
from utils.logger import setup_logger

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    m = max(0, seconds) // 60
    s = max(0, seconds) % 60
    return f"{m:02d}:{s:02d}"


def _resolve(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


class FocusApp:
    """Wires storage, services and devices from one config."""

    def __init__(self, cfg: FocusConfig, base_dir: Path):
        self.cfg = cfg
        self.db = Database(db_path=str(_resolve(base_dir, cfg.storage.db_path)))
        self.db.init_schema()

        self.store = KeyValueStore(AppStateRepo(self.db))
        self.catalog = SoundCatalog(_resolve(base_dir, cfg.sounds.dir))
        self.tasks = TaskService(self.db)
        self.ledger = LedgerService(self.store)
        self.streaks = StreakService(self.store)
        self.settings = SettingsService(self.store, self.catalog, self.ledger)
        self.recorder = SessionRecorder(self.tasks, self.ledger, self.streaks)
        self.notifier = NotificationService(
            app_name=cfg.notifications.app_name,
            enabled=cfg.notifications.enabled,
            timeout=cfg.notifications.timeout,
        )
        self._audio = None

    @property
    def audio(self) -> AudioService:
        # the mixer is only touched by commands that play sound
        if self._audio is None:
            self._audio = AudioService(self.catalog, preview_ms=self.cfg.sounds.preview_ms)
        return self._audio

    def new_session(self, volume: float, muted: bool) -> FocusSession:
        return FocusSession(
            self.audio,
            self.notifier,
            volume=volume,
            muted=muted,
            tick_seconds=self.cfg.session.tick_seconds,
            prolong_minutes=self.cfg.session.prolong_minutes,
        )

    async def close(self) -> None:
        if self._audio is not None:
            await self._audio.close()
        self.db.close()


# ----- Commands -----
async def cmd_focus(app: FocusApp, args) -> int:
    task = app.tasks.find_or_create(args.title)
    defaults = await app.settings.session_config(
        volume=app.cfg.session.default_volume if args.volume is None else args.volume,
        muted=args.mute,
    )
    config = SessionConfig(
        duration_minutes=defaults.duration_minutes if args.minutes is None else args.minutes,
        sound_id=defaults.sound_id if args.sound is None else args.sound,
        volume=defaults.volume,
        muted=defaults.muted,
    )

    session = app.new_session(volume=config.volume, muted=config.muted)
    ended = asyncio.Event()
    interrupted = asyncio.Event()

    def on_tick(snap: TimerSnapshot) -> None:
        print(f"\r{format_time(snap.remaining_sec)}  {snap.progress:4.0%}  {task.title}",
              end="", flush=True)

    def on_phase_change(snap: TimerSnapshot) -> None:
        if snap.phase == PHASE_ENDED:
            ended.set()

    session.set_on_tick(on_tick)
    session.set_on_phase_change(on_phase_change)

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, interrupted.set)

    try:
        await session.start(task, config)
        prolongs_left = max(0, args.prolong)
        while True:
            waiters = [asyncio.create_task(ended.wait()), asyncio.create_task(interrupted.wait())]
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            for waiter in waiters:
                waiter.cancel()
            if interrupted.is_set() or prolongs_left <= 0:
                break
            prolongs_left -= 1
            ended.clear()
            await session.prolong()
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    mark_done = args.done and not interrupted.is_set()
    outcome = await session.exit(mark_done)
    print()
    if outcome is None:
        return 1

    record = await app.recorder.record(task, outcome)
    print(f"Focused {outcome.elapsed_minutes} min on {task.title!r}; "
          f"today {record.total_for_date} min.")
    if record.streak is not None:
        print(f"Streak: {record.streak} day(s)")
    return 0


async def cmd_stats(app: FocusApp, args) -> int:
    today_minutes = await app.ledger.get_for_date(date_key())
    target = await app.ledger.get_target()
    print(f"Today:     {today_minutes}/{target} min ({intensity(today_minutes, target):.0%})")
    print(f"Last {args.days} d: {await app.ledger.get_sum(last_n_days=args.days)} min")
    print(f"All time:  {await app.ledger.get_sum()} min")
    print(f"Streak:    {await app.streaks.get_streak()} day(s)")
    for key, minutes in sorted((await app.ledger.get_all()).items(), reverse=True)[: args.days]:
        print(f"  {key}  {minutes:4d} min  {intensity(minutes, target):4.0%}")
    return 0


async def cmd_target(app: FocusApp, args) -> int:
    if args.minutes is not None:
        target = await app.settings.set_daily_target(args.minutes)
        print(f"Daily target set to {target} minutes")
    else:
        print(f"Daily target: {await app.settings.get_daily_target()} minutes")
    return 0


async def cmd_sounds(app: FocusApp, args) -> int:
    if args.preview:
        handle = await app.audio.preview(args.preview, volume=app.cfg.session.default_volume)
        if handle is None:
            print(f"Cannot preview {args.preview!r}")
            return 1
        await asyncio.sleep(app.cfg.sounds.preview_ms / 1000.0)
        return 0
    if args.default:
        try:
            await app.settings.set_default_sound(args.default)
        except ValueError as exc:
            print(exc)
            return 2
    current = await app.settings.get_default_sound()
    for entry in app.catalog.entries():
        mark = "*" if entry.key == current else " "
        print(f"{mark} {entry.key:8s} {entry.label}{'' if entry.free else '  (premium)'}")
    return 0


async def cmd_tasks(app: FocusApp, args) -> int:
    if args.add:
        task = app.tasks.create_task(args.add)
        print(f"Added {task.title!r}")
    for task in app.tasks.list_tasks():
        print(f"[{'x' if task.completed else ' '}] {task.title}  ({task.created_date})")
    return 0


COMMANDS = {
    "focus": cmd_focus,
    "stats": cmd_stats,
    "target": cmd_target,
    "sounds": cmd_sounds,
    "tasks": cmd_tasks,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focuscore", description="Focus sessions with a minutes ledger.")
    parser.add_argument("--config", default=os.environ.get("FOCUS_CONFIG", "focus.toml"),
                        help="path to focus.toml")
    sub = parser.add_subparsers(dest="command", required=True)

    focus = sub.add_parser("focus", help="run one focus session")
    focus.add_argument("title", help="task title (created when missing)")
    focus.add_argument("--minutes", help="session length, 1-480")
    focus.add_argument("--sound", help="sound id, or 'none'")
    focus.add_argument("--volume", type=float)
    focus.add_argument("--mute", action="store_true")
    focus.add_argument("--prolong", type=int, default=0, help="times to extend after the countdown ends")
    focus.add_argument("--done", action="store_true", help="mark the task done when the session ends")

    stats = sub.add_parser("stats", help="show focused minutes")
    stats.add_argument("--days", type=int, default=7)

    target = sub.add_parser("target", help="show or set the daily target")
    target.add_argument("minutes", nargs="?")

    sounds = sub.add_parser("sounds", help="list or preview sounds")
    sounds.add_argument("--preview")
    sounds.add_argument("--default", help="set the default sound for new sessions")

    tasks = sub.add_parser("tasks", help="list or add tasks")
    tasks.add_argument("--add")
    return parser


async def run(args) -> int:
    config_path = Path(args.config).expanduser()
    cfg, warning = load_focus_toml(config_path)
    base_dir = config_path.resolve().parent
    setup_logger(str(_resolve(base_dir, cfg.logging.file)), cfg.logging.level)
    if warning:
        logger.warning(warning)

    app = FocusApp(cfg, base_dir)
    try:
        return await COMMANDS[args.command](app, args)
    finally:
        await app.close()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
