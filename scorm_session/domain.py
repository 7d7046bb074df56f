"""SCORM vocabulary and the session snapshot handed to consumers.

Enums, CMI field names and the read-only snapshot model live here. No LMS
calls are made from this module.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

SUSPEND_DATA_FIELD = "cmi.suspend_data"

LEARNER_NAME_FIELDS = {
    "1.2": "cmi.core.student_name",
    "2004": "cmi.learner_name",
}


class ScormVersion(str, Enum):
    """Runtime API generations the session can speak."""
    SCORM_12 = "1.2"
    SCORM_2004 = "2004"


class CompletionStatus(str, Enum):
    """Values that may be committed to the LMS status field."""
    PASSED = "passed"
    COMPLETED = "completed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    BROWSED = "browsed"
    NOT_ATTEMPTED = "not attempted"

    @classmethod
    def parse(cls, value: Any) -> "CompletionStatus | None":
        """Return the member for `value`, or None when it is not a valid status."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class ConnectionState(str, Enum):
    """Lifecycle of the LMS connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class OperationResult(str, Enum):
    """Outcome of a mutating call.

    The public facade reports all three as "nothing returned"; collaborators
    keep the distinction for logging and tests.
    """
    APPLIED = "applied"
    REJECTED_BY_REMOTE = "rejected_by_remote"
    PRECONDITION_NOT_MET = "precondition_not_met"


def learner_name_field(version: str | None) -> str:
    """CMI element holding the learner's name for `version` (2004 naming unless 1.2)."""
    return LEARNER_NAME_FIELDS["1.2"] if version == ScormVersion.SCORM_12.value else LEARNER_NAME_FIELDS["2004"]


class SessionSnapshot(BaseModel):
    """Immutable view of the session published to consumers.

    Serializes with camelCase keys (`apiConnected`, `learnerName`, ...) for
    UI consumers; Python code uses the snake_case attributes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    api_connected: bool = Field(default=False, alias="apiConnected")
    learner_name: str = Field(default="", alias="learnerName")
    completion_status: str = Field(default=CompletionStatus.INCOMPLETE.value, alias="completionStatus")
    suspend_data: Dict[str, Any] = Field(default_factory=dict, alias="suspendData")
    scorm_version: str = Field(default="", alias="scormVersion")
