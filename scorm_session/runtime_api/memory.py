"""In-memory LMS emulation, intended for local preview and tests."""

import threading
from typing import Any, Dict, Optional

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="runtime_api/in_memory_lms")

SCORM_12_ERRORS = {
    "0": "No error",
    "101": "General exception",
    "201": "Invalid argument error",
    "301": "Not initialized",
    "401": "Not implemented error",
    "403": "Element is read only",
    "404": "Element is write only",
    "405": "Incorrect data type",
}

SCORM_2004_ERRORS = {
    "0": "No error",
    "101": "General exception",
    "103": "Already initialized",
    "112": "Termination before initialization",
    "122": "Retrieve data before initialization",
    "132": "Store data before initialization",
    "142": "Commit before initialization",
    "401": "Undefined data model element",
    "404": "Data model element is read only",
    "406": "Data model element type mismatch",
    "407": "Data model element value out of range",
}

# (1.2 code, 2004 code) per failure kind
_ERRORS = {
    "general": ("101", "101"),
    "already_initialized": ("101", "103"),
    "terminate_not_initialized": ("301", "112"),
    "get_not_initialized": ("301", "122"),
    "set_not_initialized": ("301", "132"),
    "commit_not_initialized": ("301", "142"),
    "undefined": ("401", "401"),
    "read_only": ("403", "404"),
    "type_mismatch": ("405", "406"),
    "out_of_range": ("405", "407"),
}

SUSPEND_DATA_LIMITS = {"1.2": 4096, "2004": 64000}

READ_ONLY_FIELDS = {
    "1.2": {
        "cmi.core.student_id",
        "cmi.core.student_name",
        "cmi.core.credit",
        "cmi.core.entry",
        "cmi.core.total_time",
        "cmi.core.lesson_mode",
        "cmi.launch_data",
    },
    "2004": {
        "cmi.learner_id",
        "cmi.learner_name",
        "cmi.credit",
        "cmi.entry",
        "cmi.total_time",
        "cmi.mode",
        "cmi.launch_data",
    },
}

VOCABULARIES = {
    "1.2": {
        "cmi.core.lesson_status": {"passed", "completed", "failed", "incomplete", "browsed", "not attempted"},
        "cmi.core.exit": {"time-out", "suspend", "logout", ""},
    },
    "2004": {
        "cmi.completion_status": {"completed", "incomplete", "not attempted", "unknown"},
        "cmi.success_status": {"passed", "failed", "unknown"},
        "cmi.exit": {"time-out", "suspend", "logout", "normal", ""},
    },
}

LOCATION_FIELDS = {"1.2": "cmi.core.lesson_location", "2004": "cmi.location"}
ENTRY_FIELDS = {"1.2": "cmi.core.entry", "2004": "cmi.entry"}


def default_cmi(version: str, learner_id: str, learner_name: str) -> Dict[str, str]:
    """Return a fresh CMI data model for a first launch."""
    if version == "1.2":
        return {
            "cmi.core.student_id": learner_id,
            "cmi.core.student_name": learner_name,
            "cmi.core.lesson_location": "",
            "cmi.core.credit": "credit",
            "cmi.core.lesson_status": "not attempted",
            "cmi.core.entry": "ab-initio",
            "cmi.core.score.raw": "",
            "cmi.core.total_time": "0000:00:00",
            "cmi.core.lesson_mode": "normal",
            "cmi.core.exit": "",
            "cmi.core.session_time": "",
            "cmi.suspend_data": "",
            "cmi.launch_data": "",
        }
    return {
        "cmi.learner_id": learner_id,
        "cmi.learner_name": learner_name,
        "cmi.location": "",
        "cmi.credit": "credit",
        "cmi.completion_status": "not attempted",
        "cmi.success_status": "unknown",
        "cmi.entry": "ab-initio",
        "cmi.score.raw": "",
        "cmi.total_time": "PT0H0M0S",
        "cmi.mode": "normal",
        "cmi.exit": "",
        "cmi.session_time": "",
        "cmi.suspend_data": "",
        "cmi.launch_data": "",
    }


class InMemoryLMS:
    """Thread-safe, dictionary-backed LMS speaking one SCORM version."""

    def __init__(
        self,
        version: str = "2004",
        learner_id: str = "preview-learner",
        learner_name: str = "Preview, Learner",
        cmi: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize the emulator; `cmi` overrides individual elements of the default model."""
        logger.debug("Initializing InMemoryLMS (SCORM %s)", version)
        if version not in SUSPEND_DATA_LIMITS:
            raise ValueError(f"Unsupported SCORM version '{version}'")
        self.version = version
        self.learner_id = learner_id
        self.learner_name = learner_name
        self._cmi: Dict[str, str] = default_cmi(version, learner_id, learner_name)
        for element, value in (cmi or {}).items():
            self._cmi[element] = str(value)
        self._initialized = False
        self._last_error = "0"
        self._lock = threading.RLock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def cmi(self) -> Dict[str, str]:
        """Copy of the current data model."""
        with self._lock:
            return dict(self._cmi)

    def _fail(self, kind: str) -> str:
        """Record the version-specific error code for `kind` and answer "false"."""
        code_12, code_2004 = _ERRORS[kind]
        self._last_error = code_12 if self.version == "1.2" else code_2004
        return "false"

    def _ok(self) -> str:
        self._last_error = "0"
        return "true"

    def _load(self) -> None:
        """Hook for persistent subclasses; called before a launch is initialized."""

    def _persist(self) -> bool:
        """Hook for persistent subclasses; called on commit and terminate."""
        return True

    def detect_version(self) -> Optional[str]:
        return self.version

    def initialize(self, version: str) -> str:
        with self._lock:
            if version != self.version:
                logger.debug("Initialize for SCORM %s refused by a %s LMS", version, self.version)
                return self._fail("general")
            if self._initialized:
                return self._fail("already_initialized")
            self._load()
            has_bookmark = bool(self._cmi.get("cmi.suspend_data") or self._cmi.get(LOCATION_FIELDS[self.version]))
            self._cmi[ENTRY_FIELDS[self.version]] = "resume" if has_bookmark else "ab-initio"
            self._initialized = True
            return self._ok()

    def terminate(self) -> str:
        with self._lock:
            if not self._initialized:
                return self._fail("terminate_not_initialized")
            if not self._persist():
                return self._fail("general")
            self._initialized = False
            return self._ok()

    def get_value(self, element: str) -> str:
        with self._lock:
            if not self._initialized:
                self._fail("get_not_initialized")
                return ""
            if element in self._cmi:
                self._last_error = "0"
                return self._cmi[element]
            if element.startswith(("cmi.", "adl.")):
                # collection elements (interactions, objectives) that were never written
                self._last_error = "0"
                return ""
            self._fail("undefined")
            return ""

    def set_value(self, element: str, value: str) -> str:
        with self._lock:
            if not self._initialized:
                return self._fail("set_not_initialized")
            if not element.startswith(("cmi.", "adl.")):
                return self._fail("undefined")
            if element in READ_ONLY_FIELDS[self.version]:
                return self._fail("read_only")
            allowed = VOCABULARIES[self.version].get(element)
            if allowed is not None and value not in allowed:
                return self._fail("type_mismatch")
            if element == "cmi.suspend_data" and len(value) > SUSPEND_DATA_LIMITS[self.version]:
                return self._fail("out_of_range")
            self._cmi[element] = value
            return self._ok()

    def commit(self) -> str:
        with self._lock:
            if not self._initialized:
                return self._fail("commit_not_initialized")
            if not self._persist():
                return self._fail("general")
            return self._ok()

    def get_last_error(self) -> str:
        return self._last_error

    def get_error_string(self, code: str) -> str:
        table = SCORM_12_ERRORS if self.version == "1.2" else SCORM_2004_ERRORS
        return table.get(str(code), "Unknown error")
