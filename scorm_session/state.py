"""Mutable session record shared by the connection, suspend-data and facade layers."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from scorm_session.domain import CompletionStatus, ConnectionState, SessionSnapshot


@dataclass
class SessionState:
    """In-process state of the one LMS session."""
    connection: ConnectionState = ConnectionState.DISCONNECTED
    protocol_version: Optional[str] = None
    learner_name: str = ""
    completion_status: CompletionStatus = CompletionStatus.INCOMPLETE
    suspend_data: Dict[str, Any] = field(default_factory=dict)
    debug: bool = False

    @property
    def connected(self) -> bool:
        return self.connection is ConnectionState.CONNECTED

    def reset(self) -> None:
        """Return every session field to its disconnected default (debug is kept)."""
        self.connection = ConnectionState.DISCONNECTED
        self.protocol_version = None
        self.learner_name = ""
        self.completion_status = CompletionStatus.INCOMPLETE
        self.suspend_data = {}

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            api_connected=self.connected,
            learner_name=self.learner_name,
            completion_status=self.completion_status.value,
            suspend_data=copy.deepcopy(self.suspend_data),
            scorm_version=self.protocol_version or "",
        )
