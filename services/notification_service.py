# -*- coding: utf-8 -*-

import asyncio
import logging
from typing import Optional

from plyer import notification

from domain.models import Task

logger = logging.getLogger(__name__)

COMPLETE_TITLE = "Focus session complete"
COMPLETE_BODY = "Your focus session has finished."


def completion_title(task: Optional[Task]) -> str:
    if task is not None and task.title:
        return f"Focus complete: {task.title}"
    return COMPLETE_TITLE


class NotificationService:
    """
    Local desktop notifications through plyer.
    Desktop platforms have no permission prompt: permission is the config
    switch, and a platform without a notification backend counts as denied
    for the rest of the process (no retry).
    """

    def __init__(self, app_name: str = "Focus Core", enabled: bool = True,
                 timeout: int = 5, backend=None):
        self.app_name = app_name
        self.timeout = timeout
        self.backend = backend if backend is not None else notification
        self._granted: Optional[bool] = None if enabled else False

    async def request_permission(self) -> bool:
        if self._granted is None:
            self._granted = True
        return self._granted

    async def notify(self, title: str, body: str) -> bool:
        if not await self.request_permission():
            logger.info("notification skipped, permission denied: %s", title)
            return False
        try:
            await asyncio.to_thread(
                self.backend.notify,
                title=title,
                message=body,
                app_name=self.app_name,
                timeout=self.timeout,
            )
        except NotImplementedError:
            logger.warning("no notification backend on this platform; disabling notifications")
            self._granted = False
            return False
        except Exception as exc:  # noqa: BLE001
            logger.warning("notification failed: %s", exc)
            return False
        logger.debug("notification sent: %s", title)
        return True

    async def notify_session_complete(self, task: Optional[Task]) -> bool:
        return await self.notify(completion_title(task), COMPLETE_BODY)
