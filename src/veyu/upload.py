"""
Upload sinks for finished session files.

There is no remote transport yet. ``PlaceholderUploader`` stands in for one:
it waits, logs, and reports ``not_implemented`` without sending anything.
Hosts can pass any object satisfying ``UploadSink`` to the session instead.
"""

import asyncio
from typing import Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from veyu.logger import get_logger

logger = get_logger(__name__)

UploadStatus = Literal["not_implemented", "uploaded", "failed", "skipped"]


class UploadOutcome(BaseModel):
    """Result of handing a session file to an upload sink."""

    success: bool
    status: UploadStatus
    path: Optional[str] = None
    transmitted: bool = False
    detail: str = ""


@runtime_checkable
class UploadSink(Protocol):
    """Receives a flushed session file for remote storage."""

    async def upload(self, path: str) -> UploadOutcome:
        """Upload the file at ``path`` and report what happened."""
        ...


class PlaceholderUploader:
    """Simulated upload. Does not transmit any data."""

    def __init__(self, delay_seconds: float = 0.5):
        self.delay_seconds = delay_seconds

    async def upload(self, path: str) -> UploadOutcome:
        logger.info(f"Veyu: Uploading session to cloud (not implemented) from {path}")
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        logger.info("Veyu: Upload complete (placeholder)")
        return UploadOutcome(
            success=True,
            status="not_implemented",
            path=path,
            transmitted=False,
            detail="Remote upload is not implemented; the file was only saved locally.",
        )
