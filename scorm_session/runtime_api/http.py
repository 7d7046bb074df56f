"""Thin client forwarding raw SCORM calls to a remote LMS runtime bridge over HTTP."""

from typing import Any, Optional

import requests

from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="runtime_api/http_lms")

METHOD_NAMES = {
    "1.2": {
        "initialize": "LMSInitialize",
        "terminate": "LMSFinish",
        "get_value": "LMSGetValue",
        "set_value": "LMSSetValue",
        "commit": "LMSCommit",
        "get_last_error": "LMSGetLastError",
        "get_error_string": "LMSGetErrorString",
    },
    "2004": {
        "initialize": "Initialize",
        "terminate": "Terminate",
        "get_value": "GetValue",
        "set_value": "SetValue",
        "commit": "Commit",
        "get_last_error": "GetLastError",
        "get_error_string": "GetErrorString",
    },
}

TRANSPORT_ERROR_CODE = "101"


class HttpLMS:
    """
    LMS backend for a bridge that exposes the runtime API as JSON over HTTP.

    Each call is POSTed to `url` as {"method": "LMSSetValue", "args": [...]}
    and answered with {"result": "true"}; `GET {url}/version` answers
    {"version": "1.2"}.
    """

    def __init__(self, url: str, version: Optional[str] = None, timeout: float = 10.0, session=None) -> None:
        """Initialize the client; `session` defaults to the requests module itself."""
        self.url = url.rstrip("/")
        self.version = version
        self.timeout = timeout
        self._http = session or requests
        self._transport_failed = False

    def _names(self) -> dict:
        return METHOD_NAMES.get(self.version or "2004", METHOD_NAMES["2004"])

    def _post(self, call: str, *args: Any, failure: str) -> str:
        """Send one runtime call; answers `failure` when the bridge is unreachable or misbehaves."""
        method = self._names()[call]
        payload = {"method": method, "args": list(args)}
        try:
            r = self._http.post(self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("LMS bridge %s failed: %s (url=%s)", method, exc, mask_url(self.url))
            self._transport_failed = True
            return failure

        if r.status_code != 200:
            logger.error(
                "LMS bridge %s returned status %s: %s (url=%s)",
                method,
                r.status_code,
                (r.text or "")[:200],
                mask_url(self.url),
            )
            self._transport_failed = True
            return failure

        try:
            data = r.json()
        except ValueError:
            logger.error("LMS bridge %s returned non-JSON response: %s", method, (r.text or "")[:200])
            self._transport_failed = True
            return failure

        self._transport_failed = False
        result = data.get("result", failure) if isinstance(data, dict) else failure
        return "" if result is None else str(result)

    def detect_version(self) -> Optional[str]:
        if self.version:
            return self.version
        try:
            r = self._http.get(f"{self.url}/version", timeout=self.timeout)
            if r.status_code != 200:
                logger.error("LMS bridge version probe returned status %s", r.status_code)
                return None
            version = (r.json() or {}).get("version")
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.error("LMS bridge version probe failed: %s (url=%s)", exc, mask_url(self.url))
            return None
        if version not in METHOD_NAMES:
            logger.error("LMS bridge reported unsupported version %r", version)
            return None
        return version

    def initialize(self, version: str) -> str:
        self.version = version
        return self._post("initialize", "", failure="false")

    def terminate(self) -> str:
        return self._post("terminate", "", failure="false")

    def get_value(self, element: str) -> str:
        return self._post("get_value", element, failure="")

    def set_value(self, element: str, value: str) -> str:
        return self._post("set_value", element, value, failure="false")

    def commit(self) -> str:
        return self._post("commit", "", failure="false")

    def get_last_error(self) -> str:
        if self._transport_failed:
            return TRANSPORT_ERROR_CODE
        return self._post("get_last_error", failure=TRANSPORT_ERROR_CODE)

    def get_error_string(self, code: str) -> str:
        if self._transport_failed:
            return "LMS bridge unreachable"
        return self._post("get_error_string", code, failure="")
