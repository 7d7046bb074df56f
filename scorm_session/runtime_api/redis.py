"""Redis-persisted LMS emulation, so learner progress survives process reloads."""

import json
from typing import Any, Dict, Optional

from scorm_session.runtime_api.memory import InMemoryLMS
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="runtime_api/redis_lms")

# Elements that belong to one launch and are not carried into the next.
SESSION_SCOPED_FIELDS = ("cmi.core.session_time", "cmi.session_time", "cmi.core.exit", "cmi.exit")


class RedisLMS(InMemoryLMS):
    """In-memory LMS whose data model is stored in Redis as one JSON document per learner/course."""

    def __init__(
        self,
        client,
        version: str = "2004",
        learner_id: str = "preview-learner",
        learner_name: str = "Preview, Learner",
        course_id: str = "preview-course",
        prefix: str = "scorm:",
        cmi: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize with a Redis client; the key is derived from prefix, course and learner."""
        logger.debug("Initializing RedisLMS")
        super().__init__(version=version, learner_id=learner_id, learner_name=learner_name, cmi=cmi)
        self.client = client
        self.course_id = course_id
        self.prefix = prefix

    @property
    def key(self) -> str:
        """Return the Redis key holding this learner's data model."""
        return f"{self.prefix}{self.course_id}:{self.learner_id}:{self.version}"

    def _load(self) -> None:
        """Merge the stored data model, if any, into the current one."""
        try:
            raw = self.client.get(self.key)
        except Exception as exc:  # pragma: no cover
            logger.error("Failed to read data model from Redis: %s", exc)
            return
        if not raw:
            return
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            stored = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.error("Discarding unreadable data model at %s: %s", self.key, exc)
            return
        if not isinstance(stored, dict):
            logger.error("Discarding data model at %s: expected an object", self.key)
            return
        for element, value in stored.items():
            if element not in SESSION_SCOPED_FIELDS:
                self._cmi[element] = str(value)
        # the LMS owns learner identity; stored copies never override it
        if self.version == "1.2":
            self._cmi["cmi.core.student_id"] = self.learner_id
            self._cmi["cmi.core.student_name"] = self.learner_name
        else:
            self._cmi["cmi.learner_id"] = self.learner_id
            self._cmi["cmi.learner_name"] = self.learner_name

    def _persist(self) -> bool:
        """Write the data model to Redis, returning False if the write failed."""
        try:
            self.client.set(self.key, json.dumps(self._cmi).encode("utf-8"))
        except Exception as exc:  # pragma: no cover
            logger.error("Failed to write data model to Redis: %s", exc)
            return False
        return True

    def clear(self) -> None:
        """Delete the stored data model for this learner/course."""
        try:
            self.client.delete(self.key)
        except Exception as exc:  # pragma: no cover
            logger.error("Failed to delete data model from Redis: %s", exc)
