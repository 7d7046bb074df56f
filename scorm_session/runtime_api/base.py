"""Interfaces for the SCORM runtime API and the adapter that implements it over a raw LMS backend."""

from __future__ import annotations

from typing import Optional, Protocol

from scorm_session.domain import CompletionStatus
from utils.logging_utils import get_tagged_logger, log_diagnostic

logger = get_tagged_logger(__name__, tag="runtime_api/adapter")

STATUS_FIELDS = {
    "1.2": "cmi.core.lesson_status",
    "2004": "cmi.completion_status",
}
SUCCESS_STATUS_FIELD = "cmi.success_status"
EXIT_FIELDS = {
    "1.2": "cmi.core.exit",
    "2004": "cmi.exit",
}
EXIT_VALUES = {
    "1.2": ("suspend", "logout"),
    "2004": ("suspend", "normal"),
}
# Statuses the adapter promotes to "incomplete" as soon as a session opens.
UNSTARTED_STATUSES = ("not attempted", "unknown")
FINISHED_STATUSES = (CompletionStatus.PASSED.value, CompletionStatus.COMPLETED.value)


class LMSBackend(Protocol):
    """Raw SCORM calls as an LMS exposes them (string in, string out)."""

    def detect_version(self) -> Optional[str]:
        """Return "1.2" or "2004" for the API the LMS exposes, or None if there is none."""
        ...

    def initialize(self, version: str) -> str:
        """LMSInitialize / Initialize; returns "true" or "false"."""
        ...

    def terminate(self) -> str:
        """LMSFinish / Terminate; returns "true" or "false"."""
        ...

    def get_value(self, element: str) -> str:
        """LMSGetValue / GetValue."""
        ...

    def set_value(self, element: str, value: str) -> str:
        """LMSSetValue / SetValue; returns "true" or "false"."""
        ...

    def commit(self) -> str:
        """LMSCommit / Commit; returns "true" or "false"."""
        ...

    def get_last_error(self) -> str:
        """Error code of the last call, "0" when it succeeded."""
        ...

    def get_error_string(self, code: str) -> str:
        """Human readable text for an error code."""
        ...


class RuntimeAPI(Protocol):
    """Capability the session layer calls through."""

    version: Optional[str]
    debug: bool

    def init(self) -> bool:
        ...

    def get(self, field: str) -> str:
        ...

    def set(self, field: str, value: str) -> bool:
        ...

    def status(self, mode: str, value: Optional[str] = None) -> str | bool:
        ...

    def save(self) -> bool:
        ...

    def quit(self) -> bool:
        ...


def _to_bool(value) -> bool:
    """Normalize the "true"/"false" strings LMS calls answer with."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


class ScormRuntimeAPI(RuntimeAPI):
    """
    Runtime API over an LMS backend.

    Handles version detection, the 1.2/2004 status and exit element names,
    promotion of unstarted attempts to "incomplete" on init, and setting the
    exit mode before terminate.
    """

    def __init__(
        self,
        backend: LMSBackend,
        version: Optional[str] = None,
        debug: bool = False,
        handle_completion_status: bool = True,
        handle_exit_mode: bool = True,
    ) -> None:
        self.backend = backend
        self.version = version
        self.debug = debug
        self.handle_completion_status = handle_completion_status
        self.handle_exit_mode = handle_exit_mode
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def _call(self, action: str, fn, *args) -> str:
        """Invoke a backend call, mapping transport errors to an empty answer."""
        try:
            result = fn(*args)
        except Exception as exc:
            logger.error("LMS %s raised: %s", action, exc)
            return ""
        return "" if result is None else str(result)

    def _report_error(self, action: str) -> None:
        code = self._call("GetLastError", self.backend.get_last_error)
        text = self._call("GetErrorString", self.backend.get_error_string, code) if code else ""
        log_diagnostic(logger, self.debug, "SCORM %s failed (error %s: %s)", action, code or "?", text or "unknown")

    def init(self) -> bool:
        if self._active:
            log_diagnostic(logger, self.debug, "SCORM init: connection already active")
            return True

        version = self.version or self._call("version detection", self.backend.detect_version)
        if not version:
            log_diagnostic(logger, self.debug, "SCORM init: no runtime API found")
            return False
        self.version = version

        if not _to_bool(self._call("Initialize", self.backend.initialize, version)):
            self._report_error("Initialize")
            return False
        self._active = True
        logger.debug("SCORM %s session initialized", version)

        if self.handle_completion_status:
            current = self.status("get")
            if current in UNSTARTED_STATUSES:
                if self.status("set", CompletionStatus.INCOMPLETE.value):
                    self.save()
        return True

    def get(self, field: str) -> str:
        if not self._active:
            log_diagnostic(logger, self.debug, "SCORM get(%s): connection not active", field)
            return ""
        value = self._call("GetValue", self.backend.get_value, field)
        if value == "":
            code = self._call("GetLastError", self.backend.get_last_error)
            if code not in ("", "0"):
                self._report_error(f"GetValue({field})")
        return value

    def set(self, field: str, value) -> bool:
        if not self._active:
            log_diagnostic(logger, self.debug, "SCORM set(%s): connection not active", field)
            return False
        if not isinstance(value, str):
            value = str(value)
        ok = _to_bool(self._call("SetValue", self.backend.set_value, field, value))
        if not ok:
            self._report_error(f"SetValue({field})")
        return ok

    def status(self, mode: str, value: Optional[str] = None) -> str | bool:
        status_field = STATUS_FIELDS.get(self.version or "2004", STATUS_FIELDS["2004"])
        if mode == "get":
            current = self.get(status_field)
            if self.version == "2004":
                success = self.get(SUCCESS_STATUS_FIELD)
                if success in ("passed", "failed"):
                    return success
            return current
        if mode == "set":
            if not value:
                log_diagnostic(logger, self.debug, "SCORM status(set): no status provided")
                return False
            if self.version == "2004" and value in ("passed", "failed"):
                return self.set(SUCCESS_STATUS_FIELD, value)
            return self.set(status_field, value)
        log_diagnostic(logger, self.debug, "SCORM status: unknown mode '%s'", mode)
        return False

    def save(self) -> bool:
        if not self._active:
            log_diagnostic(logger, self.debug, "SCORM save: connection not active")
            return False
        ok = _to_bool(self._call("Commit", self.backend.commit))
        if not ok:
            self._report_error("Commit")
        return ok

    def quit(self) -> bool:
        if not self._active:
            log_diagnostic(logger, self.debug, "SCORM quit: connection not active")
            return False

        if self.handle_exit_mode and self.version in EXIT_FIELDS:
            suspend, finished = EXIT_VALUES[self.version]
            exit_value = finished if self.status("get") in FINISHED_STATUSES else suspend
            self.set(EXIT_FIELDS[self.version], exit_value)
            self.save()

        ok = _to_bool(self._call("Terminate", self.backend.terminate))
        if ok:
            self._active = False
            logger.debug("SCORM session terminated")
        else:
            self._report_error("Terminate")
        return ok
