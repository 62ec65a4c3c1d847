# -*- coding: utf-8 -*-

import contextlib
import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class Subscribers:
    """
    Explicit listener set owned by one service instance.
    publish() calls every listener in registration order; a failing
    listener is logged and skipped.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, payload: Any) -> int:
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                logger.warning("%s listener %r failed", self.name, listener, exc_info=True)
                continue
            delivered += 1
        return delivered

    def clear(self) -> None:
        self._listeners.clear()
