"""Domain service for queue-related business rules."""

from __future__ import annotations

from sayu_player.domain.music.entities import Queue
from sayu_player.domain.shared.exceptions import BusinessRuleViolationError, OutOfRangeError
from sayu_player.domain.shared.messages import ErrorMessages


class QueueDomainService:
    """Domain service for queue-related business rules."""

    DEFAULT_MAX_QUEUE_SIZE = 200

    def __init__(self, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE) -> None:
        self.max_queue_size = max_queue_size

    def ensure_capacity(self, queue: Queue) -> None:
        if len(queue) >= self.max_queue_size:
            raise BusinessRuleViolationError(
                rule="MAX_QUEUE_SIZE",
                message=ErrorMessages.QUEUE_FULL.format(max_size=self.max_queue_size),
            )

    @staticmethod
    def to_index(number: int, length: int) -> int:
        """Convert a 1-based position typed by a user into a queue index."""
        if number <= 0 or number > length:
            raise OutOfRangeError(number - 1, length)
        return number - 1
