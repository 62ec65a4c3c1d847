# services/task_service.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import List, Optional

from domain.models import Task
from storage.db import Database
from storage.repos import TaskRepo


class TaskService:
    def __init__(self, db: Database):
        self.db = db
        self.tasks = TaskRepo(db)

    def create_task(self, title: str) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("Task title cannot be empty.")
        return self.tasks.create(title=title)

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.tasks.get(task_id)

    def find_or_create(self, title: str) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("Task title cannot be empty.")
        existing = self.tasks.find_by_title(title)
        return existing if existing is not None else self.tasks.create(title=title)

    def list_tasks(self, completed: Optional[bool] = None) -> List[Task]:
        return self.tasks.list(completed=completed)

    def set_completed(self, task_id: str, completed: bool = True) -> Task:
        if not self.tasks.get(task_id):
            raise ValueError("Task not found.")
        self.tasks.set_completed(task_id, completed)
        return self.tasks.get(task_id)

    def toggle(self, task_id: str) -> Task:
        task = self.tasks.get(task_id)
        if not task:
            raise ValueError("Task not found.")
        self.tasks.set_completed(task_id, not task.completed)
        return self.tasks.get(task_id)

    def delete_task(self, task_id: str) -> None:
        if not self.tasks.get(task_id):
            raise ValueError("Task not found.")
        self.tasks.delete_task(task_id)
