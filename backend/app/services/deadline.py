"""
Caller-supplied deadlines for graph traversals.

Cycle detection and the CPM passes are the only operations whose cost grows
with the graph, so they poll a Deadline between node visits.
"""

import time

from app.exceptions import DeadlineExceededError


class Deadline:
    """A point on the monotonic clock after which traversals must stop."""

    def __init__(self, seconds: float):
        self.expires_at = time.monotonic() + seconds

    @classmethod
    def from_timeout(cls, seconds: float | None) -> "Deadline | None":
        if seconds is None:
            return None
        return cls(seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str) -> None:
        if self.expired():
            raise DeadlineExceededError(operation)


def check_deadline(deadline: Deadline | None, operation: str) -> None:
    if deadline is not None:
        deadline.check(operation)
