"""Process-wide SCO session over the configured LMS backend."""
import atexit
from typing import Any, Callable, Dict, Optional

from scorm_session.config import settings
from scorm_session.domain import OperationResult, SessionSnapshot
from scorm_session.facade import SessionFacade
from scorm_session.runtime_api import InMemoryLMS, ScormRuntimeAPI, build_runtime_api
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_manager")

_shutdown_hook_installed = False


def _init_session() -> SessionFacade:
    """Build the session around the backend named in settings."""
    logger.debug(f"Initializing SCO session: backend='{settings.runtime_backend}', version='{settings.version or 'auto'}'")
    return SessionFacade(build_runtime_api(settings), debug=settings.debug)


_session: SessionFacade = _init_session()


def use_in_memory_runtime_for_tests(version: str = "2004", cmi: Optional[Dict[str, Any]] = None, **lms_kwargs) -> InMemoryLMS:
    """Swap in a fresh in-memory LMS for isolated tests; returns the emulator for inspection."""
    global _session
    backend = InMemoryLMS(version=version, cmi=cmi, **lms_kwargs)
    _session = SessionFacade(ScormRuntimeAPI(backend, version=version))
    return backend


def get_session_facade() -> SessionFacade:
    """Return the current process-wide session."""
    return _session


def install_shutdown_hook() -> None:
    """Disconnect at interpreter exit so an abrupt shutdown still flushes and terminates."""
    global _shutdown_hook_installed
    if _shutdown_hook_installed:
        return
    atexit.register(_disconnect_at_exit)
    _shutdown_hook_installed = True


def _disconnect_at_exit() -> None:
    if _session.connected:
        logger.info("Process exiting; disconnecting SCO session")
        _session.disconnect()


def connect(version: Optional[str] = None, debug: Optional[bool] = None) -> OperationResult:
    """Open the LMS session (no-op if already connected)."""
    return _session.connect(
        version=version or settings.version,
        debug=debug if debug is not None else settings.debug,
    )


def disconnect() -> OperationResult:
    """Close the LMS session (no-op if already disconnected)."""
    return _session.disconnect()


def get_state() -> SessionSnapshot:
    """Return the current session snapshot."""
    return _session.snapshot()


def subscribe(callback: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
    """Subscribe to session snapshots; returns an unsubscribe function."""
    return _session.subscribe(callback)


def get_suspend_data():
    return _session.get_suspend_data()


def set_suspend_data(key: str, value: Any) -> None:
    return _session.set_suspend_data(key, value)


def set_status(status: str) -> None:
    return _session.set_status(status)


def set_value(param: str, value: Any) -> None:
    return _session.set(param, value)


def get_value(param: str) -> Optional[str]:
    return _session.get(param)
