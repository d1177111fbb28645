"""
Debouncer - coalesces rapid value changes into one commit

Used by the live preview: slider changes are submitted as they happen, and
only the latest value is committed once input has been quiet for the
debounce window. Earlier pending values are discarded, not queued.
"""

import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Latest-wins debouncer bound to the running event loop"""

    def __init__(
        self,
        initial: T,
        window_ms: int = 100,
        on_commit: Optional[Callable[[T], None]] = None,
    ):
        """
        Initialize Debouncer

        Args:
            initial: Value considered committed before any submission
            window_ms: Quiescence window in milliseconds
            on_commit: Called synchronously with each committed value
        """
        self.window_ms = window_ms
        self.on_commit = on_commit

        self._committed: T = initial
        self._pending: Optional[T] = None
        self._has_pending = False
        self._timer: Optional[asyncio.TimerHandle] = None

        self.submitted_revision = 0
        self.committed_revision = 0

    @property
    def committed(self) -> T:
        """Latest committed snapshot"""
        return self._committed

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def submit(self, value: T) -> int:
        """
        Submit a new value, restarting the quiescence window.

        Must be called from within the event loop.

        Returns:
            Revision number of the submitted value
        """
        loop = asyncio.get_running_loop()

        if self._timer is not None:
            self._timer.cancel()

        self._pending = value
        self._has_pending = True
        self.submitted_revision += 1
        self._timer = loop.call_later(self.window_ms / 1000.0, self._commit)

        return self.submitted_revision

    def flush(self) -> T:
        """Commit any pending value immediately and return the committed value."""
        if self._timer is not None:
            self._timer.cancel()
        if self._has_pending:
            self._commit()
        return self._committed

    def cancel(self) -> None:
        """Drop the pending value without committing it."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        self._has_pending = False

    def _commit(self) -> None:
        self._timer = None
        if not self._has_pending:
            return

        self._committed = self._pending
        self._pending = None
        self._has_pending = False
        self.committed_revision = self.submitted_revision

        logger.debug(f"Committed revision {self.committed_revision}")

        if self.on_commit is not None:
            try:
                self.on_commit(self._committed)
            except Exception as e:
                logger.error(f"Debounced commit handler failed: {e}", exc_info=True)
