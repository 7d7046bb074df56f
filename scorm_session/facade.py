"""Public surface of the SCO session: guarded LMS reads/writes plus connect/disconnect."""

import functools
import threading
from typing import Any, Callable, Dict, Optional

from scorm_session.broadcast import StateBroadcaster, Subscriber
from scorm_session.connection import ConnectionManager
from scorm_session.domain import CompletionStatus, OperationResult, SessionSnapshot
from scorm_session.runtime_api.base import RuntimeAPI
from scorm_session.state import SessionState
from scorm_session.suspend_data import SuspendDataStore
from utils.logging_utils import get_tagged_logger, log_diagnostic

logger = get_tagged_logger(__name__, tag="facade")


def _serialized(method):
    """Run `method` under the session lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class SessionFacade:
    """
    One LMS session for one SCO.

    Owns the session state and wires the connection manager and suspend-data
    store to the runtime API. Every read/write first checks that the session
    is connected and quietly does nothing (returns None) when it is not, so
    content keeps working without an LMS. Subscribers receive a fresh
    snapshot after each call that changed something.
    """

    def __init__(self, api: RuntimeAPI, debug: bool = False) -> None:
        self.api = api
        self.state = SessionState(debug=debug)
        self.broadcaster = StateBroadcaster()
        self.suspend_data = SuspendDataStore(api, self.state, on_change=self._publish)
        self.connection = ConnectionManager(api, self.state, self.suspend_data, on_change=self._publish)
        self._lock = threading.RLock()

    def _publish(self) -> None:
        self.broadcaster.publish(self.state.snapshot())

    def _diag(self, message: str, *args: Any) -> None:
        log_diagnostic(logger, self.state.debug, message, *args)

    @property
    def connected(self) -> bool:
        return self.state.connected

    # -- host entry points -------------------------------------------------

    @_serialized
    def connect(self, version: Optional[str] = None, debug: Optional[bool] = None) -> OperationResult:
        """Open the session; a no-op while already connected."""
        return self.connection.connect(version=version, debug=debug)

    @_serialized
    def disconnect(self) -> OperationResult:
        """Flush, commit and terminate; a no-op while disconnected."""
        return self.connection.disconnect()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self.state.snapshot()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Receive the snapshot after every change; returns an unsubscribe function."""
        return self.broadcaster.subscribe(callback)

    # -- guarded operations ------------------------------------------------

    @_serialized
    def get_suspend_data(self) -> Optional[Dict[str, Any]]:
        if not self.connected:
            return None
        return self.suspend_data.get()

    @_serialized
    def set_suspend_data(self, key: str, value: Any) -> None:
        if not self.connected:
            return None
        self.suspend_data.set(key, value)

    @_serialized
    def set_status(self, status: str) -> None:
        if not self.connected:
            return None
        self._set_status(status)

    def _set_status(self, status: str) -> OperationResult:
        parsed = CompletionStatus.parse(status)
        if parsed is None:
            return OperationResult.PRECONDITION_NOT_MET
        if not self.api.status("set", parsed.value):
            self._diag("Could not set the status provided (%s)", parsed.value)
            return OperationResult.REJECTED_BY_REMOTE
        self.state.completion_status = parsed
        self._publish()
        self.api.save()
        return OperationResult.APPLIED

    @_serialized
    def set(self, param: str, value: Any) -> None:
        if not self.connected:
            return None
        if self.api.set(param, value):
            self.api.save()
            self._publish()
        else:
            self._diag("Could not set %s to %r", param, value)

    @_serialized
    def get(self, param: str) -> Optional[str]:
        if not self.connected:
            return None
        return self.api.get(param)
