"""SCORM runtime API adapter and LMS backends."""

from .base import LMSBackend, RuntimeAPI, ScormRuntimeAPI
from .factory import build_backend, build_runtime_api
from .http import HttpLMS
from .memory import InMemoryLMS
from .redis import RedisLMS

__all__ = [
    "LMSBackend",
    "RuntimeAPI",
    "ScormRuntimeAPI",
    "build_backend",
    "build_runtime_api",
    "HttpLMS",
    "InMemoryLMS",
    "RedisLMS",
]
