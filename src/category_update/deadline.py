"""
Cycle deadline shared by every database and bus operation of a cycle.
"""

import time

from .exceptions import CycleTimeoutError


class Deadline:
    """
    Point in monotonic time after which cycle operations must not run

    Usage:
        deadline = Deadline(300.0)
        cursor.execute(query)  # bounded by deadline.remaining()
    """

    def __init__(self, timeout: float, clock=time.monotonic):
        """
        Args:
            timeout: Seconds from now until the deadline
            clock: Monotonic clock function (overridable in tests)
        """
        self.timeout = timeout
        self._clock = clock
        self.started_at = clock()
        self.expires_at = self.started_at + timeout

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative"""
        return max(0.0, self.expires_at - self._clock())

    def elapsed(self) -> float:
        """Seconds since the deadline was created"""
        return self._clock() - self.started_at

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self, operation: str) -> float:
        """
        Ensure there is time left for an operation

        Args:
            operation: Name of the operation, used in the error message

        Returns:
            Remaining seconds

        Raises:
            CycleTimeoutError: If the deadline has passed
        """
        remaining = self.remaining()
        if remaining <= 0:
            raise CycleTimeoutError(
                f"Deadline of {self.timeout:.1f}s exceeded before {operation}"
            )
        return remaining
