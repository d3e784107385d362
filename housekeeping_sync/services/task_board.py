"""Housekeeping task board: one owner for cache, filters, busy marks and selection."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from housekeeping_sync.core.busy_guard import BusyGuard
from housekeeping_sync.core.errors import BusyConflictError
from housekeeping_sync.core.logging import log_with_task_context, span
from housekeeping_sync.core.task_cache import TaskPageCache
from housekeeping_sync.domain.intents import (
    AssignTo,
    Finalize,
    MutationIntent,
    Reopen,
    Reschedule,
    SetNotes,
    SetPriority,
)
from housekeeping_sync.domain.page import CachePage, FilterSignature, SortState
from housekeeping_sync.domain.task import CleaningTask, Priority, UserRef
from housekeeping_sync.services.mutation_executor import MutationExecutor
from housekeeping_sync.services.query_controller import QueryController, TaskBoardView
from housekeeping_sync.services.selection import SelectionManager


if TYPE_CHECKING:
    from housekeeping_sync.interface.task_gateway import TaskGateway


logger = logging.getLogger(__name__)


class TaskBoard:
    """Action surface used by UI clients.

    Every action runs on the caller's event loop. Mutating actions return the
    confirmed record, or raise a :class:`~housekeeping_sync.core.errors.SyncError`
    whose ``kind`` tells a busy conflict (nothing happened) apart from a
    remote failure (patched, then restored).
    """

    def __init__(
        self,
        gateway: "TaskGateway",
        *,
        initial_filters: FilterSignature | None = None,
        mutation_timeout_seconds: float | None = None,
        stale_after_seconds: float | None = None,
    ) -> None:
        self._gateway = gateway
        self.cache = TaskPageCache()
        self.guard = BusyGuard()
        self.selection = SelectionManager()
        self.query = QueryController(
            cache=self.cache,
            gateway=gateway,
            initial=initial_filters,
            stale_after_seconds=stale_after_seconds,
            on_page_installed=self._on_page_installed,
        )
        self.executor = MutationExecutor(
            cache=self.cache,
            guard=self.guard,
            gateway=gateway,
            timeout_seconds=mutation_timeout_seconds,
        )

    def _on_page_installed(self, page: CachePage, new_signature: bool) -> None:
        if new_signature:
            self.selection.clear()
        else:
            self.selection.prune(page.ids)

    # Query

    def view(self) -> TaskBoardView:
        view = self.query.view()
        return view.model_copy(
            update={
                "selected_ids": sorted(self.selection.selected),
                "busy_ids": sorted(self.guard.busy_ids),
            }
        )

    async def refresh(self, *, force: bool = False) -> CachePage | None:
        return await self.query.refresh(force=force)

    async def set_filter(self, **patch: Any) -> CachePage | None:
        return await self.query.set_filter(**patch)

    async def set_per_page(self, per_page: int) -> CachePage | None:
        return await self.query.set_per_page(per_page)

    async def goto_page(self, page: int) -> bool:
        return await self.query.goto_page(page)

    def set_sort(self, key: str) -> SortState:
        return self.query.set_sort(key)

    # Selection

    def toggle_one(self, task_id: int) -> bool:
        """Toggle a row on the visible page. Ids not on the page are ignored."""
        if task_id not in self.query.visible_ids():
            return False
        return self.selection.toggle_one(task_id)

    def toggle_all_on_page(self, ids: list[int] | None = None) -> frozenset[int]:
        visible = self.query.visible_ids()
        page_ids = visible if ids is None else [task_id for task_id in ids if task_id in visible]
        self.selection.toggle_all_on_page(page_ids)
        return self.selection.selected

    def clear_selection(self) -> None:
        self.selection.clear()

    # Mutations

    async def update(self, task_id: int, intent: MutationIntent) -> CleaningTask:
        """Apply any typed intent to the task on the active page."""
        return await self.executor.apply(task_id, intent)

    async def finalize(self, task_id: int, finished_at: datetime, notes: str | None = None) -> CleaningTask:
        return await self.update(task_id, Finalize(finished_at=finished_at, notes=notes))

    async def reopen(self, task_id: int) -> CleaningTask:
        return await self.update(task_id, Reopen())

    async def assign(self, task_id: int, assignee: UserRef | None) -> CleaningTask:
        return await self.update(task_id, AssignTo(assignee=assignee))

    async def set_priority(self, task_id: int, priority: Priority | None) -> CleaningTask:
        return await self.update(task_id, SetPriority(priority=priority))

    async def reschedule(self, task_id: int, started_at: datetime) -> CleaningTask:
        return await self.update(task_id, Reschedule(started_at=started_at))

    async def set_notes(self, task_id: int, notes: str | None) -> CleaningTask:
        return await self.update(task_id, SetNotes(notes=notes))

    async def delete(self, task_id: int) -> None:
        """Delete a task remotely, then refetch the active page.

        Not optimistic: removing a row changes pagination metadata, which only
        a fetch may set.
        """
        if not self.guard.try_acquire(task_id):
            raise BusyConflictError(task_id)
        try:
            with span("task_board.delete"):
                await self._gateway.delete_task(task_id)
        finally:
            self.guard.release(task_id)

        log_with_task_context(logger, "info", "task_deleted", task_id=task_id)
        self.cache.invalidate()
        await self.query.refresh(force=True)

    async def close(self) -> None:
        """Tear down: cancel fetches and make late writes no-ops."""
        await self.query.close()
        self.cache.close()
