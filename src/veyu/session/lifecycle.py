"""
Session lifecycle: init, buffered logging, periodic and final flushes.

A ``TelemetrySession`` owns one buffer and one JSON Lines file. Host code
creates it, calls ``init()`` once, logs from any thread, and ends the session
with ``await save()`` or ``await upload()``. A tick source (``FlushTicker`` or
the host's own loop) calls ``maybe_flush()``; the exit hook calls
``shutdown()``.

Flushes are serialized by a lock. Periodic flushes run on one dedicated
worker thread so the ticking caller never blocks on disk.
"""

import asyncio
import atexit
import platform
import re
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from veyu.config import VeyuConfig
from veyu.errors import (
    FlushIOError,
    NotInitializedError,
    UploadUnavailableError,
    VeyuError,
)
from veyu.logger import get_logger
from veyu.session.buffer import SessionBuffer
from veyu.session.entry import EntryKind, new_entry, utc_timestamp
from veyu.session.flush import FlushResult, flush_entries
from veyu.upload import PlaceholderUploader, UploadOutcome, UploadSink

logger = get_logger(__name__)

SESSION_FILE_PREFIX = "veyu_session_"
SESSION_FILE_SUFFIX = ".jsonl"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    SAVED = "saved"
    UPLOADED = "uploaded"


def generate_session_id() -> str:
    """Unique session id: ``veyu_<uuid4>_<local YYYYmmdd_HHMMSS>``."""
    return f"veyu_{uuid.uuid4()}_{datetime.now():%Y%m%d_%H%M%S}"


def session_file_name(session_id: str) -> str:
    safe_id = _UNSAFE_FILENAME_CHARS.sub("_", session_id)
    return f"{SESSION_FILE_PREFIX}{safe_id}{SESSION_FILE_SUFFIX}"


class TelemetrySession:
    """Buffers log entries for one session and persists them as JSON Lines."""

    def __init__(
        self,
        config: Optional[VeyuConfig] = None,
        uploader: Optional[UploadSink] = None,
        on_error: Optional[Callable[[VeyuError], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or VeyuConfig.from_env()
        self.uploader: UploadSink = uploader or PlaceholderUploader(
            self.config.upload_delay
        )
        self.flush_interval = self.config.flush_interval

        self._on_error = on_error
        self._clock = clock
        self._buffer = SessionBuffer()
        self._status = SessionStatus.UNINITIALIZED
        self._session_id: Optional[str] = None
        self._session_file_path: Optional[Path] = None

        self._state_lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._last_flush_at: Optional[float] = None
        self._last_result: Optional[FlushResult] = None
        self._last_error: Optional[str] = None
        self._exit_hook_installed = False

    # -- Properties ----------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_initialized(self) -> bool:
        return self._status is not SessionStatus.UNINITIALIZED

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def session_file_path(self) -> Optional[Path]:
        return self._session_file_path

    @property
    def pending_count(self) -> int:
        return len(self._buffer)

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    # -- Lifecycle -----------------------------------------------------------

    def init(
        self, session_id: Optional[str] = None, flush_interval: Optional[float] = None
    ) -> "TelemetrySession":
        """
        Start the session. A second call is a no-op.

        Args:
            session_id: Optional id used in the file name. Generated if omitted.
            flush_interval: Seconds between periodic flushes (default from config)
        """
        with self._state_lock:
            if self.is_initialized:
                logger.debug(f"Session {self._session_id} already initialized")
                return self

            if flush_interval is not None:
                if flush_interval < 0:
                    raise ValueError("flush_interval must not be negative")
                self.flush_interval = float(flush_interval)

            log_dir = self.config.log_dir
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self._report(FlushIOError(str(log_dir), 0, e))

            self._session_id = session_id or generate_session_id()
            self._session_file_path = log_dir / session_file_name(self._session_id)
            self._last_flush_at = self._clock()
            # session_start must be buffered before other threads see ACTIVE
            self._buffer.append(
                new_entry(
                    EntryKind.SYSTEM,
                    "session_start",
                    {
                        "build_version": self.config.build_version,
                        "platform": platform.system() or "unknown",
                        "python_version": platform.python_version(),
                        "timestamp": utc_timestamp(),
                    },
                )
            )
            self._status = SessionStatus.ACTIVE

        logger.info(
            f"Veyu session {self._session_id} started "
            f"(flush every {self.flush_interval}s, file: {self._session_file_path})"
        )
        return self

    def install_exit_hook(self) -> None:
        """Flush whatever is still buffered when the interpreter exits."""
        if self._exit_hook_installed:
            return
        atexit.register(self.shutdown)
        self._exit_hook_installed = True

    # -- Logging -------------------------------------------------------------

    def log(self, kind: EntryKind, name: str, meta: Any = None) -> bool:
        """Buffer one entry. Returns False if it was dropped."""
        if not self.is_initialized:
            kind_name = getattr(kind, "value", kind)
            self._report(NotInitializedError(f"log_{kind_name}", name))
            return False
        try:
            entry = new_entry(kind, name, meta)
        except ValueError as e:
            self._report(VeyuError(f"Invalid log entry '{name}': {e}"))
            return False
        self._buffer.append(entry)
        return True

    def log_event(self, name: str, meta: Any = None) -> bool:
        return self.log(EntryKind.EVENT, name, meta)

    def log_input(self, name: str, meta: Any = None) -> bool:
        return self.log(EntryKind.INPUT, name, meta)

    def log_system(self, name: str, meta: Any = None) -> bool:
        return self.log(EntryKind.SYSTEM, name, meta)

    # -- Flushing ------------------------------------------------------------

    def flush_now(self) -> FlushResult:
        """
        Drain the buffer and append it to the session file (blocking).

        The drained batch is dropped if the write fails.
        """
        with self._flush_lock:
            path = self._session_file_path
            if self._buffer.is_empty() or not path:
                return FlushResult(path=str(path) if path else None)

            entries = self._buffer.drain_all()
            result = flush_entries(path, entries, report=self._notify)
            self._last_result = result
            return result

    async def flush(self) -> FlushResult:
        """Run ``flush_now`` in a worker thread and wait for it."""
        return await asyncio.to_thread(self.flush_now)

    def maybe_flush(self, now: Optional[float] = None) -> Optional[Future]:
        """
        Tick entry point: start a background flush once the interval elapsed.

        Args:
            now: Current time from the same monotonic clock as the session's

        Returns:
            Future of the scheduled flush, or None if nothing was scheduled.
        """
        if not self.is_initialized:
            return None

        now = self._clock() if now is None else now
        with self._state_lock:
            if (
                self._last_flush_at is not None
                and now - self._last_flush_at <= self.flush_interval
            ):
                return None
            self._last_flush_at = now
            if self._buffer.is_empty():
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="veyu-flush"
                )
            return self._executor.submit(self._background_flush)

    def _background_flush(self) -> FlushResult:
        try:
            return self.flush_now()
        except Exception as e:
            logger.exception(f"Background flush crashed: {e}")
            self._last_error = str(e)
            return FlushResult(success=False, error=str(e))

    # -- Ending the session --------------------------------------------------

    async def save(self) -> FlushResult:
        """Append ``session_end``, flush, and mark the session saved."""
        if not self.is_initialized:
            error = NotInitializedError("save")
            self._report(error)
            return FlushResult(success=False, error=str(error))

        result = await self._end_session()
        self._status = SessionStatus.SAVED
        logger.info(f"Veyu: Session saved locally at {self._session_file_path}")
        return result

    async def upload(self) -> UploadOutcome:
        """
        Append ``session_end``, flush, then hand the file to the upload sink.

        With the default ``PlaceholderUploader`` nothing leaves the machine:
        the outcome is ``not_implemented`` with ``transmitted=False``.
        """
        if not self.is_initialized:
            error = NotInitializedError("upload")
            self._report(error)
            return UploadOutcome(success=False, status="skipped", detail=str(error))

        result = await self._end_session()
        path = str(self._session_file_path)
        if not result.success:
            return UploadOutcome(
                success=False, status="skipped", path=path, detail=result.error or ""
            )

        try:
            outcome = await self.uploader.upload(path)
        except Exception as e:
            self._report(VeyuError(f"Upload of {path} failed: {e}"))
            return UploadOutcome(success=False, status="failed", path=path, detail=str(e))

        if outcome.status == "not_implemented":
            self._report(
                UploadUnavailableError(f"Upload sink did not transmit {path}"),
                level="WARNING",
            )
        self._status = SessionStatus.UPLOADED
        return outcome

    async def _end_session(self) -> FlushResult:
        self.log_system("session_end", {"timestamp": utc_timestamp()})
        return await self.flush()

    def shutdown(self, wait: bool = True) -> FlushResult:
        """
        Exit hook: best-effort final flush, then stop the flush worker.

        No ``session_end`` entry is added here. Safe to call more than once.
        """
        result = FlushResult()
        try:
            if self.is_initialized:
                result = self.flush_now()
        except Exception as e:
            logger.error(f"Final flush failed: {e}")
            result = FlushResult(success=False, error=str(e))
        finally:
            with self._state_lock:
                executor, self._executor = self._executor, None
            if executor is not None:
                executor.shutdown(wait=wait)
        return result

    def get_status(self) -> dict:
        """Return a snapshot of the session's state."""
        last = self._last_result
        return {
            "status": self._status.value,
            "session_id": self._session_id,
            "session_file": str(self._session_file_path)
            if self._session_file_path
            else None,
            "flush_interval": self.flush_interval,
            "pending": len(self._buffer),
            "last_flush_written": last.written if last else 0,
            "last_flush_success": last.success if last else None,
            "last_error": self._last_error,
        }

    # -- Error channel -------------------------------------------------------

    def _report(self, error: VeyuError, level: str = "ERROR") -> None:
        logger.log(level, str(error))
        self._notify(error)

    def _notify(self, error: VeyuError) -> None:
        self._last_error = str(error)
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception as e:
            logger.warning(f"on_error callback raised: {e}")
