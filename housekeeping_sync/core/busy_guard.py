"""Per-task busy marks preventing overlapping mutations on one record."""

import logging


logger = logging.getLogger(__name__)


class BusyGuard:
    """Set of task ids that currently have a mutation in flight."""

    def __init__(self) -> None:
        self._busy: set[int] = set()

    def try_acquire(self, task_id: int) -> bool:
        """Mark ``task_id`` busy.

        Returns:
            False if it was already busy, True otherwise
        """
        if task_id in self._busy:
            logger.debug("Task %s already busy", task_id)
            return False
        self._busy.add(task_id)
        return True

    def release(self, task_id: int) -> None:
        self._busy.discard(task_id)

    def is_busy(self, task_id: int) -> bool:
        return task_id in self._busy

    @property
    def busy_ids(self) -> frozenset[int]:
        return frozenset(self._busy)
