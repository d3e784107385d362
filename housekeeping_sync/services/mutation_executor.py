"""Optimistic mutation protocol: snapshot, patch, remote call, commit or roll back."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from housekeeping_sync.core.busy_guard import BusyGuard
from housekeeping_sync.core.config import settings
from housekeeping_sync.core.errors import BusyConflictError, MutationTimeoutError, SyncError
from housekeeping_sync.core.logging import log_with_task_context, span
from housekeeping_sync.core.task_cache import TaskPageCache
from housekeeping_sync.domain.intents import MutationIntent
from housekeeping_sync.domain.task import CleaningTask


if TYPE_CHECKING:
    from housekeeping_sync.interface.task_gateway import TaskGateway


logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationExecutor:
    """Runs one optimistic mutation per call, at most one per task id at a time."""

    def __init__(
        self,
        *,
        cache: TaskPageCache,
        guard: BusyGuard,
        gateway: "TaskGateway",
        timeout_seconds: float | None = None,
    ) -> None:
        self._cache = cache
        self._guard = guard
        self._gateway = gateway
        self._timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.mutation_timeout_seconds

    async def execute(
        self,
        task_id: int,
        patch_fn: Callable[[CleaningTask], CleaningTask],
        remote_call: Callable[[], Awaitable[T]],
    ) -> T:
        """Apply ``patch_fn`` to the cached record, then confirm with ``remote_call``.

        Every cached page holding the record is patched before this coroutine
        first suspends, so the change shows whichever page is on screen,
        including a placeholder. On failure each page gets back the record it
        had just before the patch, and only then is the error re-raised.

        Raises:
            BusyConflictError: ``task_id`` already has a mutation in flight;
                nothing was patched and no request was made
            SyncError: The remote call failed or timed out; the cache was restored
        """
        if not self._guard.try_acquire(task_id):
            log_with_task_context(logger, "info", "mutation_rejected_busy", task_id=task_id)
            raise BusyConflictError(task_id)

        try:
            patched = self._cache.begin_optimistic(task_id, patch_fn)
            log_with_task_context(logger, "debug", "mutation_patched", task_id=task_id, pages=len(patched))

            with span("mutation_executor.execute"):
                result = await self._call_remote(task_id, remote_call)
        except BaseException as e:
            # Cancellation on teardown also lands here; a closed cache makes the restore a no-op.
            restored = self._cache.end_optimistic(task_id, rollback=True)
            reason = e.kind.value if isinstance(e, SyncError) else type(e).__name__
            log_with_task_context(
                logger,
                "warning",
                "mutation_rolled_back",
                task_id=task_id,
                reason=reason,
                restored_pages=len(restored),
                error=str(e),
            )
            raise
        finally:
            self._guard.release(task_id)

        self._cache.end_optimistic(task_id, rollback=False)
        self._cache.invalidate()
        log_with_task_context(logger, "info", "mutation_committed", task_id=task_id)
        return result

    async def apply(self, task_id: int, intent: MutationIntent) -> CleaningTask:
        """Run a typed intent through :meth:`execute`."""
        return await self.execute(task_id, intent.apply, lambda: intent.send(self._gateway, task_id))

    async def _call_remote(self, task_id: int, remote_call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(remote_call(), timeout=self._timeout_seconds)
        except TimeoutError as e:
            raise MutationTimeoutError(task_id, self._timeout_seconds) from e
