import os

import uvicorn

from scorm_session.config import settings
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="server")


def log_runtime_target() -> None:
    """Log which LMS backend the session will talk to, without credentials."""
    target = settings.runtime_url or settings.redis_url
    logger.info(
        "Starting SCO session host: backend=%s version=%s target=%s",
        settings.runtime_backend,
        settings.version or "auto",
        mask_url(target) if target else "-",
    )


if __name__ == "__main__":
    log_runtime_target()

    uvicorn.run(
        "scorm_session.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
