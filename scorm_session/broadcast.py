"""Publish session snapshots to any number of subscribers."""

import threading
from typing import Callable, List

from scorm_session.domain import SessionSnapshot
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="broadcast")

Subscriber = Callable[[SessionSnapshot], None]


class StateBroadcaster:
    """Fan out the latest snapshot after each mutating session call."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback` and return a function that removes it again."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Session subscriber %r failed", callback)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
