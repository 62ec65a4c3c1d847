from __future__ import annotations

import unittest

from domain.models import Task
from services.notification_service import COMPLETE_BODY, COMPLETE_TITLE, NotificationService, completion_title
from tests.helpers import FakeNotifyBackend


class TestCompletionTitle(unittest.TestCase):
    def test_title_names_the_task(self) -> None:
        self.assertEqual("Focus complete: Read", completion_title(Task(id="1", title="Read")))
        self.assertEqual(COMPLETE_TITLE, completion_title(None))
        self.assertEqual(COMPLETE_TITLE, completion_title(Task(id="1", title="")))


class TestNotificationService(unittest.IsolatedAsyncioTestCase):
    async def test_sends_through_backend(self) -> None:
        backend = FakeNotifyBackend()
        notifier = NotificationService(app_name="Focus Test", timeout=3, backend=backend)

        self.assertTrue(await notifier.notify_session_complete(Task(id="1", title="Read")))
        self.assertEqual(
            [{"title": "Focus complete: Read", "message": COMPLETE_BODY,
              "app_name": "Focus Test", "timeout": 3}],
            backend.calls,
        )

    async def test_disabled_means_denied(self) -> None:
        backend = FakeNotifyBackend()
        notifier = NotificationService(enabled=False, backend=backend)
        self.assertFalse(await notifier.request_permission())
        self.assertFalse(await notifier.notify("t", "b"))
        self.assertEqual([], backend.calls)

    async def test_missing_platform_backend_is_not_retried(self) -> None:
        backend = FakeNotifyBackend(error=NotImplementedError())
        notifier = NotificationService(backend=backend)

        self.assertFalse(await notifier.notify("t", "b"))
        self.assertFalse(await notifier.notify("t", "b"))
        self.assertEqual(1, len(backend.calls))
        self.assertFalse(await notifier.request_permission())

    async def test_backend_errors_are_swallowed(self) -> None:
        backend = FakeNotifyBackend(error=OSError("no dbus session"))
        notifier = NotificationService(backend=backend)

        self.assertFalse(await notifier.notify("t", "b"))
        self.assertFalse(await notifier.notify("t", "b"))
        self.assertEqual(2, len(backend.calls))


if __name__ == "__main__":
    unittest.main()
