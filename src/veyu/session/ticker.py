"""
Flush ticker: a periodic tick source for hosts without their own frame loop.

Each tick calls ``session.maybe_flush()``; the session decides whether the
flush interval has elapsed. Ticking is cheap, so the tick interval can be
shorter than the flush interval.
"""

import asyncio
from datetime import datetime
from typing import Optional

from veyu.logger import get_logger
from veyu.session.flush import FlushResult
from veyu.session.lifecycle import TelemetrySession

logger = get_logger(__name__)


class FlushTicker:
    """Drives ``TelemetrySession.maybe_flush`` from an asyncio task."""

    def __init__(self, session: TelemetrySession, tick_interval: Optional[float] = None):
        self.session = session
        self.tick_interval = (
            tick_interval if tick_interval is not None else session.config.tick_interval
        )
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._ticks = 0
        self._last_tick_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the tick loop."""
        if self._running:
            return
        if self.tick_interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"FlushTicker started (every {self.tick_interval}s)")

    async def stop(self):
        """Stop the tick loop. Does not flush; call ``session.shutdown()`` for that."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("FlushTicker stopped.")

    async def trigger_now(self) -> FlushResult:
        """Flush immediately, regardless of the interval."""
        return await self.session.flush()

    def get_status(self) -> dict:
        return {
            "running": self._running,
            "tick_interval": self.tick_interval,
            "ticks": self._ticks,
            "last_tick_at": self._last_tick_at.isoformat() if self._last_tick_at else None,
            "last_error": self._last_error,
        }

    # -- Internal ------------------------------------------------------------

    async def _run_loop(self):
        """Main loop: tick, then sleep."""
        while self._running:
            try:
                self._tick()
            except Exception as e:
                logger.error(f"Flush tick error: {e}")
                self._last_error = str(e)

            try:
                await asyncio.sleep(self.tick_interval)
            except asyncio.CancelledError:
                break

    def _tick(self):
        self._ticks += 1
        self._last_tick_at = datetime.now()
        self.session.maybe_flush()
