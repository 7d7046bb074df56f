"""Suspend data: a JSON object stored in the single `cmi.suspend_data` string element."""

import copy
import json
from typing import Any, Callable, Dict, Optional

from scorm_session.domain import SUSPEND_DATA_FIELD, OperationResult
from scorm_session.runtime_api.base import RuntimeAPI
from scorm_session.state import SessionState
from utils.logging_utils import get_tagged_logger, log_diagnostic

logger = get_tagged_logger(__name__, tag="suspend_data")


def encode_suspend_data(data: Dict[str, Any]) -> str:
    """Serialize a mapping to compact, strict JSON text (no NaN or Infinity)."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def decode_suspend_data(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse suspend data text.

    Empty or missing text is an empty mapping. Raises ValueError when the text
    is not JSON or not a JSON object.
    """
    if not text:
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"suspend data must be a JSON object, got {type(data).__name__}")
    return data


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


class SuspendDataStore:
    """Owns the suspend data snapshot and its round trip through the LMS."""

    def __init__(self, api: RuntimeAPI, state: SessionState, on_change: Optional[Callable[[], None]] = None) -> None:
        self.api = api
        self.state = state
        self._on_change = on_change or (lambda: None)

    def _diag(self, message: str, *args: Any) -> None:
        log_diagnostic(logger, self.state.debug, message, *args)

    def hydrate(self) -> OperationResult:
        """Load the snapshot from the LMS; unreadable data is discarded in favour of {}."""
        if not self.state.connected:
            return OperationResult.PRECONDITION_NOT_MET
        raw = self.api.get(SUSPEND_DATA_FIELD)
        try:
            data = decode_suspend_data(raw)
        except ValueError as exc:
            self._diag("Discarding malformed suspend data (%d chars): %s", len(raw or ""), exc)
            data = {}
        self.state.suspend_data = data
        self._on_change()
        return OperationResult.APPLIED

    def get(self) -> Optional[Dict[str, Any]]:
        if not self.state.connected:
            return None
        return copy.deepcopy(self.state.suspend_data)

    def set(self, key: str, value: Any) -> OperationResult:
        """Merge `key` into the snapshot and write the whole object back in the same call."""
        if not self.state.connected:
            return OperationResult.PRECONDITION_NOT_MET
        if _is_missing(key) or _is_missing(value):
            self._diag("Ignoring suspend data write with missing key or value (key=%r)", key)
            return OperationResult.PRECONDITION_NOT_MET

        merged = {**self.state.suspend_data, key: value}
        try:
            text = encode_suspend_data(merged)
        except (TypeError, ValueError) as exc:
            self._diag("Suspend data value for %r is not JSON serializable: %s", key, exc)
            return OperationResult.PRECONDITION_NOT_MET

        if not self.api.set(SUSPEND_DATA_FIELD, text):
            self._diag("Could not set the suspend data provided (key=%r)", key)
            return OperationResult.REJECTED_BY_REMOTE

        # Keep exactly what the LMS holds, detached from the caller's objects.
        self.state.suspend_data = json.loads(text)
        self._on_change()
        self.api.save()
        return OperationResult.APPLIED

    def flush(self) -> OperationResult:
        """Write the current snapshot as is; the caller is responsible for committing."""
        if not self.state.connected:
            return OperationResult.PRECONDITION_NOT_MET
        if not self.api.set(SUSPEND_DATA_FIELD, encode_suspend_data(self.state.suspend_data)):
            self._diag("Could not flush suspend data before disconnecting")
            return OperationResult.REJECTED_BY_REMOTE
        return OperationResult.APPLIED
