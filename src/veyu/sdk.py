"""
Module-level facade over a single default ``TelemetrySession``.

For hosts that prefer a static API:

    from veyu import sdk

    sdk.init("optional_session_id")
    sdk.log_event("jump", {"height": 2})
    await sdk.save()        # or: await sdk.upload()

Code that needs more than one session, or tests, should construct
``TelemetrySession`` directly.
"""

from concurrent.futures import Future
from typing import Any, Optional

from veyu.session.flush import FlushResult
from veyu.session.lifecycle import TelemetrySession
from veyu.upload import UploadOutcome

_active_session: Optional[TelemetrySession] = None


def get_active_session() -> TelemetrySession:
    """Return the default session, creating it on first use."""
    global _active_session
    if _active_session is None:
        _active_session = TelemetrySession()
    return _active_session


def reset_active_session(session: Optional[TelemetrySession] = None) -> None:
    """Replace the default session (None drops it; a new one is made lazily)."""
    global _active_session
    _active_session = session


def init(
    session_id: Optional[str] = None,
    flush_interval: Optional[float] = None,
    install_exit_hook: bool = True,
) -> TelemetrySession:
    """Initialize the default session. Later calls are no-ops."""
    session = get_active_session()
    session.init(session_id, flush_interval)
    if install_exit_hook:
        session.install_exit_hook()
    return session


def log_event(name: str, meta: Any = None) -> bool:
    return get_active_session().log_event(name, meta)


def log_input(name: str, meta: Any = None) -> bool:
    return get_active_session().log_input(name, meta)


def log_system(name: str, meta: Any = None) -> bool:
    return get_active_session().log_system(name, meta)


def maybe_flush(now: Optional[float] = None) -> Optional[Future]:
    return get_active_session().maybe_flush(now)


async def save() -> FlushResult:
    return await get_active_session().save()


async def upload() -> UploadOutcome:
    return await get_active_session().upload()


def shutdown(wait: bool = True) -> FlushResult:
    return get_active_session().shutdown(wait)
