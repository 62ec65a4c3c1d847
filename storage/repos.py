# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import datetime as dt
import time
import uuid
from typing import List, Optional

from domain.models import Task
from storage.db import Database


def _now_ts() -> int:
    return int(time.time())


def _row_to_task(r) -> Task:
    return Task(
        id=r["id"],
        title=r["title"],
        completed=bool(r["completed"]),
        created_date=r["created_date"] or "",
    )


class AppStateRepo:
    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        row = self.db.conn.execute(
            "SELECT value FROM app_state WHERE key=?",
            (key,),
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.db.conn.execute(
            """
            INSERT INTO app_state(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )
        self.db.conn.commit()

    def delete(self, key: str) -> None:
        self.db.conn.execute("DELETE FROM app_state WHERE key=?", (key,))
        self.db.conn.commit()


class TaskRepo:
    def __init__(self, db: Database):
        self.db = db

    def create(self, title: str, created_date: Optional[str] = None) -> Task:
        tid = str(uuid.uuid4())
        day = created_date or dt.date.today().isoformat()
        self.db.conn.execute(
            """
            INSERT INTO tasks(id, title, completed, created_date, updated_at)
            VALUES(?,?,?,?,?)
            """,
            (tid, title, 0, day, _now_ts()),
        )
        self.db.conn.commit()
        return self.get(tid)

    def list(self, completed: Optional[bool] = None) -> List[Task]:
        if completed is None:
            rows = self.db.conn.execute(
                """
                SELECT id, title, completed, created_date
                FROM tasks ORDER BY updated_at DESC
                """
            ).fetchall()
        else:
            rows = self.db.conn.execute(
                """
                SELECT id, title, completed, created_date
                FROM tasks WHERE completed=? ORDER BY updated_at DESC
                """,
                (1 if completed else 0,),
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def get(self, task_id: str) -> Optional[Task]:
        r = self.db.conn.execute(
            "SELECT id, title, completed, created_date FROM tasks WHERE id=?",
            (task_id,),
        ).fetchone()
        return _row_to_task(r) if r else None

    def find_by_title(self, title: str) -> Optional[Task]:
        r = self.db.conn.execute(
            """
            SELECT id, title, completed, created_date
            FROM tasks WHERE title=? COLLATE NOCASE
            ORDER BY updated_at DESC LIMIT 1
            """,
            (title,),
        ).fetchone()
        return _row_to_task(r) if r else None

    def set_completed(self, task_id: str, completed: bool) -> None:
        self.db.conn.execute(
            "UPDATE tasks SET completed=?, updated_at=? WHERE id=?",
            (1 if completed else 0, _now_ts(), task_id),
        )
        self.db.conn.commit()

    def delete_task(self, task_id: str) -> None:
        self.db.conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
        self.db.conn.commit()
