"""
Message Buffer

Double buffer for ticker content. ``current`` is what is rendered and
measured; ``pending`` is the sequence produced by the last completed refresh
and waits for a safe point to replace it.
"""

import logging
import threading
from typing import Any, Dict, Optional

from ticker.messages import MessageSequence

logger = logging.getLogger(__name__)


class MessageBuffer:
    """Holds the displayed message sequence and the one queued to replace it."""

    def __init__(self):
        self._current: Optional[MessageSequence] = None
        self._pending: Optional[MessageSequence] = None
        self._lock = threading.RLock()

        self.stats = {
            'swaps': 0,
            'pending_replaced': 0,
        }

    @property
    def current(self) -> Optional[MessageSequence]:
        return self._current

    @property
    def pending(self) -> Optional[MessageSequence]:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def is_empty(self) -> bool:
        """True when nothing is displayed."""
        return self._current is None or self._current.is_empty

    def set_pending(self, sequence: MessageSequence) -> None:
        """
        Queue a sequence without disturbing the current one.

        A sequence still waiting from an earlier refresh is dropped.
        """
        with self._lock:
            if self._pending is not None:
                self.stats['pending_replaced'] += 1
                logger.debug("Replacing pending sequence that was never displayed")
            self._pending = sequence

    def commit_if_due(self, wrapped: bool, interrupt_mode: bool) -> bool:
        """
        Swap the pending sequence in if this is a safe point.

        Args:
            wrapped: The scroll pass just completed
            interrupt_mode: Pending content may replace current content mid-pass

        Returns:
            True if a swap happened
        """
        with self._lock:
            if self._pending is None:
                return False
            if not (wrapped or interrupt_mode or self.is_empty):
                return False

            self._current, self._pending = self._pending, None
            self.stats['swaps'] += 1
            logger.debug(
                "Swapped in pending sequence (%d messages, wrapped=%s, interrupt=%s)",
                len(self._current), wrapped, interrupt_mode
            )
            return True

    def replace(self, sequence: Optional[MessageSequence]) -> None:
        """Display ``sequence`` immediately, leaving any pending one queued."""
        with self._lock:
            self._current = sequence

    def clear(self) -> None:
        """Drop both the displayed and the pending sequence."""
        with self._lock:
            self._current = None
            self._pending = None
        logger.debug("Message buffer cleared")

    def get_status(self) -> Dict[str, Any]:
        """Get current buffer status for monitoring."""
        with self._lock:
            return {
                'current_count': len(self._current) if self._current is not None else 0,
                'has_pending': self._pending is not None,
                'stats': self.stats.copy(),
            }
