"""HTTP API exposing the SCO session to a host page or preview tool."""

import hmac
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel

from . import session_manager
from .config import settings
from .domain import SessionSnapshot
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key, if any."""
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


class ConnectRequest(BaseModel):
    """Options applied to the runtime API before it is initialized."""
    version: Optional[Literal["1.2", "2004"]] = None
    debug: Optional[bool] = None


class SuspendDataRequest(BaseModel):
    """One key/value pair to merge into suspend data."""
    key: str
    value: Any = None


class SuspendDataResponse(BaseModel):
    """Suspend data, or null while no LMS session is open."""
    data: Optional[Dict[str, Any]] = None


class StatusRequest(BaseModel):
    """Requested completion status; values outside the SCORM vocabulary are ignored."""
    status: str


class ValueRequest(BaseModel):
    """Raw value for a CMI element."""
    value: str


class ValueResponse(BaseModel):
    """Raw CMI element read; value is null while no LMS session is open."""
    field: str
    value: Optional[str] = None


@router.get("/session", response_model=SessionSnapshot)
def read_session():
    """Return the current session snapshot."""
    return session_manager.get_state()


@router.post("/session/connect", response_model=SessionSnapshot)
def connect_session(req: ConnectRequest | None = None):
    """Open the LMS session (no-op when already connected)."""
    req = req or ConnectRequest()
    result = session_manager.connect(version=req.version, debug=req.debug)
    logger.info(f"connect -> {result.value}")
    return session_manager.get_state()


@router.post("/session/disconnect", response_model=SessionSnapshot)
def disconnect_session():
    """Flush, commit and terminate the LMS session (no-op when disconnected)."""
    result = session_manager.disconnect()
    logger.info(f"disconnect -> {result.value}")
    return session_manager.get_state()


@router.get("/session/suspend-data", response_model=SuspendDataResponse)
def read_suspend_data():
    """Return the suspend data snapshot."""
    return SuspendDataResponse(data=session_manager.get_suspend_data())


@router.put("/session/suspend-data", response_model=SessionSnapshot)
def write_suspend_data(req: SuspendDataRequest):
    """Merge one key into suspend data and write it to the LMS."""
    session_manager.set_suspend_data(req.key, req.value)
    return session_manager.get_state()


@router.put("/session/status", response_model=SessionSnapshot)
def write_status(req: StatusRequest):
    """Set the completion status."""
    session_manager.set_status(req.status)
    return session_manager.get_state()


@router.get("/session/values/{field}", response_model=ValueResponse)
def read_value(field: str):
    """Read a raw CMI element, e.g. cmi.location."""
    return ValueResponse(field=field, value=session_manager.get_value(field))


@router.put("/session/values/{field}", response_model=ValueResponse)
def write_value(field: str, req: ValueRequest):
    """Write a raw CMI element and commit on success."""
    session_manager.set_value(field, req.value)
    return ValueResponse(field=field, value=session_manager.get_value(field))
