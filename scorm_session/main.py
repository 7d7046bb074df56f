"""FastAPI application hosting one SCO session."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from . import session_manager
from .api import router as api_router
from .config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="sco_session")
logger = get_tagged_logger(__name__, tag="main")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Connect on startup and disconnect on shutdown, both on the threadpool."""
    session_manager.install_shutdown_hook()
    if settings.auto_connect:
        await run_in_threadpool(session_manager.connect)
    else:
        logger.info("auto_connect disabled; waiting for POST /v1/session/connect")
    yield
    await run_in_threadpool(session_manager.disconnect)


app = FastAPI(title="SCO Session Service", lifespan=lifespan)

app.include_router(api_router, prefix="/v1")
