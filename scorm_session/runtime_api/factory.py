"""Factory helpers for choosing the LMS backend at startup."""

from __future__ import annotations

from scorm_session import config
from scorm_session.runtime_api.base import ScormRuntimeAPI
from scorm_session.runtime_api.memory import InMemoryLMS
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="runtime_api/factory")


DEFAULT_BACKEND_NAME = "memory"
DEFAULT_EMULATED_VERSION = "2004"


def build_backend(settings: config.Settings | None = None):
    """Instantiate the configured raw LMS backend."""
    settings = settings or config.settings
    backend = (settings.runtime_backend or DEFAULT_BACKEND_NAME).lower()
    emulated_version = settings.version or DEFAULT_EMULATED_VERSION

    if backend == "memory":
        logger.info("Using in-memory LMS emulation (SCORM %s)", emulated_version)
        return InMemoryLMS(
            version=emulated_version,
            learner_id=settings.learner_id,
            learner_name=settings.learner_name,
        )

    if backend == "redis":
        if not settings.redis_url:
            raise ValueError("redis_url must be set for the redis LMS backend")
        import redis

        from .redis import RedisLMS

        client = redis.Redis.from_url(settings.redis_url)
        logger.info("Using Redis-persisted LMS emulation", extra={"redis_url": mask_url(settings.redis_url)})
        return RedisLMS(
            client,
            version=emulated_version,
            learner_id=settings.learner_id,
            learner_name=settings.learner_name,
            course_id=settings.course_id,
            prefix=settings.redis_prefix,
        )

    if backend == "http":
        if not settings.runtime_url:
            raise ValueError("runtime_url must be set for the http LMS backend")
        from .http import HttpLMS

        logger.info("Using HTTP LMS bridge", extra={"runtime_url": mask_url(settings.runtime_url)})
        return HttpLMS(settings.runtime_url, version=settings.version, timeout=settings.runtime_timeout_seconds)

    raise ValueError(f"Unknown LMS backend '{backend}'")


def build_runtime_api(settings: config.Settings | None = None) -> ScormRuntimeAPI:
    """Build the runtime API the session talks to."""
    settings = settings or config.settings
    return ScormRuntimeAPI(build_backend(settings), version=settings.version, debug=settings.debug)
