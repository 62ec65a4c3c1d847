# -*- coding: utf-8 -*-

import logging
import sqlite3
from dataclasses import dataclass
from typing import Optional

from domain.models import SessionExit, Task
from services.ledger_service import LedgerService
from services.streak_service import StreakService
from services.task_service import TaskService
from utils.dates import date_key as today_key, parse_date_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    streak: Optional[int]  # None when the session was not marked done
    minutes_added: int
    total_for_date: int


class SessionRecorder:
    """
    Applies a finished session to the rest of the app:
    - done sessions complete the task and count toward the streak
    - elapsed minutes go into the ledger under the chosen day
    Each step stands alone; one failing does not skip the others.
    A bad date key is rejected before any step runs.
    """

    def __init__(self, tasks: TaskService, ledger: LedgerService, streaks: StreakService):
        self.tasks = tasks
        self.ledger = ledger
        self.streaks = streaks

    async def record(self, task: Task, outcome: SessionExit,
                     date_key: Optional[str] = None) -> SessionRecord:
        day = date_key or today_key()
        if parse_date_key(day) is None:
            raise ValueError(f"Invalid date key {day!r}. Use YYYY-MM-DD.")
        streak = None

        if outcome.mark_done:
            try:
                self.tasks.set_completed(task.id, True)
            except (ValueError, sqlite3.Error) as exc:
                logger.warning("could not complete task %s: %s", task.id, exc)
            streak = await self.streaks.update_streak()

        minutes_added = 0
        if outcome.elapsed_minutes > 0:
            await self.ledger.add_minutes(day, outcome.elapsed_minutes)
            minutes_added = outcome.elapsed_minutes

        return SessionRecord(
            streak=streak,
            minutes_added=minutes_added,
            total_for_date=await self.ledger.get_for_date(day),
        )
