"""
Caller-driven cancellation for in-flight requests and stream reads.

A ``CancellationToken`` is handed to the request issuer and the decoder. Work
that must be abortable runs inside ``token.scope()``: when the token fires, the
task running the scope is cancelled and the resulting ``asyncio.CancelledError``
surfaces as ``CancellationError`` at the scope boundary.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from jlama_chat.core.common.exceptions import CancellationError

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Request cancelled by caller"


class CancellationToken:
    """A one-shot cancellation signal shared between a caller and the client."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = DEFAULT_CANCEL_REASON
        self._tasks: set[asyncio.Task] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Subsequent calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        if reason:
            self._reason = reason
        logger.info("Cancellation requested: %s", self._reason)

        current = _current_task()
        for task in list(self._tasks):
            # The running task observes the flag at its next checkpoint instead.
            if task is not current and not task.done():
                task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError(self._reason)

    @contextlib.asynccontextmanager
    async def scope(self) -> AsyncIterator[CancellationToken]:
        """Run the enclosed block so that ``cancel()`` interrupts it."""
        self.raise_if_cancelled()
        task = asyncio.current_task()
        if task is None:
            raise RuntimeError("CancellationToken.scope() requires a running task")

        self._tasks.add(task)
        try:
            yield self
        except asyncio.CancelledError as exc:
            # Only translate cancellations we caused; outer cancellation keeps going.
            if self._cancelled and task.uncancel() == 0:
                raise CancellationError(self._reason) from exc
            raise
        finally:
            self._tasks.discard(task)


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
