"""Connect/disconnect state machine for the LMS session."""

from typing import Any, Callable, Optional

from scorm_session.domain import (
    CompletionStatus,
    ConnectionState,
    OperationResult,
    ScormVersion,
    learner_name_field,
)
from scorm_session.runtime_api.base import RuntimeAPI
from scorm_session.state import SessionState
from scorm_session.suspend_data import SuspendDataStore
from utils.logging_utils import get_tagged_logger, log_diagnostic

logger = get_tagged_logger(__name__, tag="connection")


class ConnectionManager:
    """
    Drives DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED.

    Neither transition raises: a missing LMS (local preview, broken launch)
    leaves the session disconnected and every guarded call a no-op.
    """

    def __init__(
        self,
        api: RuntimeAPI,
        state: SessionState,
        suspend_data: SuspendDataStore,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.api = api
        self.state = state
        self.suspend_data = suspend_data
        self._on_change = on_change or (lambda: None)

    def _diag(self, message: str, *args: Any) -> None:
        log_diagnostic(logger, self.state.debug, message, *args)

    def _attempt(self, step: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one teardown step; an exception counts as a failed step."""
        try:
            return fn(*args)
        except Exception:
            logger.exception("Disconnect step '%s' raised", step)
            return False

    def _apply_options(self, version: Optional[str], debug: Optional[bool]) -> None:
        if version:
            try:
                self.api.version = ScormVersion(version).value
            except ValueError:
                self._diag("Ignoring unsupported SCORM version %r", version)
        if isinstance(debug, bool):
            self.api.debug = debug
            self.state.debug = debug

    def connect(self, version: Optional[str] = None, debug: Optional[bool] = None) -> OperationResult:
        """Open the LMS session, load learner/status and hydrate suspend data."""
        if self.state.connection is not ConnectionState.DISCONNECTED:
            return OperationResult.PRECONDITION_NOT_MET

        self._apply_options(version, debug)
        self.state.connection = ConnectionState.CONNECTING
        try:
            opened = self.api.init()
        except Exception:
            logger.exception("SCORM init raised")
            opened = False
        if not opened:
            self.state.connection = ConnectionState.DISCONNECTED
            self._diag("Could not create the SCORM API connection")
            return OperationResult.REJECTED_BY_REMOTE

        protocol_version = self.api.version
        learner_name = self.api.get(learner_name_field(protocol_version))
        raw_status = self.api.status("get")
        status = CompletionStatus.parse(raw_status)
        if status is None:
            self._diag("LMS reported status %r; treating it as incomplete", raw_status)
            status = CompletionStatus.INCOMPLETE

        self.state.protocol_version = protocol_version
        self.state.learner_name = learner_name or ""
        self.state.completion_status = status
        self.state.connection = ConnectionState.CONNECTED
        logger.info("Connected to LMS (SCORM %s)", protocol_version)
        self.suspend_data.hydrate()
        return OperationResult.APPLIED

    def disconnect(self) -> OperationResult:
        """
        Flush suspend data, write status, commit and terminate, in that order.

        Every step is attempted even when an earlier one fails. Only a
        successful terminate resets the session; otherwise it stays connected.
        """
        if not self.state.connected:
            return OperationResult.PRECONDITION_NOT_MET

        self._attempt("flush suspend data", self.suspend_data.flush)
        if not self._attempt("write status", self.api.status, "set", self.state.completion_status.value):
            self._diag("Could not write status %r before disconnecting", self.state.completion_status.value)
        if not self._attempt("commit", self.api.save):
            self._diag("Could not commit before disconnecting")
        if not self._attempt("terminate", self.api.quit):
            self._diag("Could not close the API connection")
            return OperationResult.REJECTED_BY_REMOTE

        self.state.reset()
        logger.info("Disconnected from LMS")
        self._on_change()
        return OperationResult.APPLIED
