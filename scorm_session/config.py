"""Service configuration pulled from environment variables via pydantic."""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

SUPPORTED_VERSIONS = ("1.2", "2004")


class Settings(BaseSettings):
    """Environment-driven configuration for the SCO session service."""
    model_config = SettingsConfigDict(env_prefix="SCORM_", extra="ignore")

    version: Optional[str] = None  # None lets the runtime API report its own version
    debug: bool = False
    runtime_backend: str = "memory"  # options: memory, redis, http
    runtime_url: Optional[str] = None
    runtime_timeout_seconds: float = 10.0
    redis_url: Optional[str] = None
    redis_prefix: str = "scorm:"
    learner_id: str = "preview-learner"
    learner_name: str = "Preview, Learner"
    course_id: str = "preview-course"
    auto_connect: bool = True
    api_key: Optional[str] = None

    @field_validator("version", mode="before")
    @classmethod
    def check_version(cls, v):
        """Accept only the SCORM versions the session knows how to talk to."""
        if v in (None, ""):
            return None
        v = str(v)
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported SCORM version '{v}'; expected one of {SUPPORTED_VERSIONS}")
        return v

    @field_validator("runtime_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Normalize the bridge URL to avoid double slashes."""
        return str(v).rstrip("/") if v else v


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
