"""Filter, pagination and sort state over the task page cache."""

import asyncio
import locale
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import StrEnum
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from housekeeping_sync.core.config import settings
from housekeeping_sync.core.errors import SyncError
from housekeeping_sync.core.logging import log_with_context, span
from housekeeping_sync.core.task_cache import TaskPageCache
from housekeeping_sync.domain.page import CachePage, FilterSignature, PageMeta, SortDirection, SortState
from housekeeping_sync.domain.task import CleaningTask


if TYPE_CHECKING:
    from housekeeping_sync.interface.task_gateway import TaskGateway


logger = logging.getLogger(__name__)

SORT_KEYS = frozenset(
    {"room", "status", "type", "floor", "assignee", "id", "name", "priority", "started_at", "finished_at", "notes"}
)


class Freshness(StrEnum):
    """Loading state of the active signature, used for loading-indicator policy."""

    FIRST_LOAD = "first_load"
    REVALIDATING = "revalidating"
    SETTLED = "settled"


class TaskBoardView(BaseModel):
    """Derived, render-ready state of the board."""

    records: list[CleaningTask] = Field(default_factory=list)
    pagination: PageMeta = Field(default_factory=PageMeta)
    freshness: Freshness = Freshness.FIRST_LOAD
    is_placeholder: bool = Field(default=False, description="Records belong to the previous signature")
    error: str | None = None
    filters: FilterSignature = Field(default_factory=FilterSignature)
    sort: SortState = Field(default_factory=SortState)
    selected_ids: list[int] = Field(default_factory=list)
    busy_ids: list[int] = Field(default_factory=list)


def _sort_value(task: CleaningTask, key: str) -> Any:
    if key == "room":
        return task.room.number if task.room else None
    if key == "status":
        return task.status.name
    if key == "type":
        return task.room.type_name if task.room else None
    if key == "floor":
        return task.room.floor if task.room else None
    if key == "assignee":
        return task.assignee.name if task.assignee else None
    return getattr(task, key, None)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def compare_values(a: Any, b: Any) -> int:
    """Numeric comparison when both values parse as numbers, locale collation otherwise."""
    num_a, num_b = _as_number(a), _as_number(b)
    if num_a is not None and num_b is not None:
        return (num_a > num_b) - (num_a < num_b)
    text_a, text_b = _as_text(a), _as_text(b)
    return locale.strcoll(text_a.casefold(), text_b.casefold()) or locale.strcoll(text_a, text_b)


def sort_records(records: Iterable[CleaningTask], sort: SortState) -> list[CleaningTask]:
    """Sort a page of records. Missing values come first in either direction."""
    sign = 1 if sort.direction is SortDirection.ASC else -1

    def compare(left: CleaningTask, right: CleaningTask) -> int:
        a, b = _sort_value(left, sort.key), _sort_value(right, sort.key)
        if a is None and b is None:
            return 0
        if a is None:
            return -1
        if b is None:
            return 1
        return compare_values(a, b) * sign

    return sorted(records, key=cmp_to_key(compare))


class QueryController:
    """Owns the active filter signature and sort, and keeps the cache fed.

    ``on_page_installed(page, new_signature)`` is called whenever a fetch for
    the active signature is installed; ``new_signature`` is True when it is
    the first page shown for that signature.
    """

    def __init__(
        self,
        *,
        cache: TaskPageCache,
        gateway: "TaskGateway",
        initial: FilterSignature | None = None,
        stale_after_seconds: float | None = None,
        on_page_installed: Callable[[CachePage, bool], None] | None = None,
    ) -> None:
        self._cache = cache
        self._gateway = gateway
        self._signature = initial or FilterSignature()
        self._sort = SortState()
        self._stale_after = (
            stale_after_seconds if stale_after_seconds is not None else settings.page_stale_after_seconds
        )
        self._on_page_installed = on_page_installed

        self._inflight: dict[FilterSignature, int] = {}
        self._pending: set[asyncio.Task[CachePage]] = set()
        self._displayed: FilterSignature | None = None
        self._last_meta: PageMeta | None = None
        self._last_error: str | None = None
        self._closed = False

    @property
    def signature(self) -> FilterSignature:
        return self._signature

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def freshness(self) -> Freshness:
        if self._cache.read(self._signature) is None:
            return Freshness.FIRST_LOAD
        if self._inflight.get(self._signature, 0) > 0:
            return Freshness.REVALIDATING
        return Freshness.SETTLED

    async def refresh(self, *, force: bool = False) -> CachePage | None:
        """Fetch the active signature unless a fresh page is already cached."""
        signature = self._signature
        if not force and not self._cache.is_stale(signature, self._stale_after):
            page = self._cache.read(signature)
            if page is not None:
                self._mark_displayed(signature, page)
            return page
        return await self._fetch(signature)

    async def set_filter(self, **patch: Any) -> CachePage | None:
        """Merge ``patch`` into the filters and go back to page 1."""
        patch.pop("page", None)
        self._switch_to(self._signature.merged(**patch, page=1))
        return await self.refresh()

    async def set_per_page(self, per_page: int) -> CachePage | None:
        self._switch_to(self._signature.merged(per_page=per_page, page=1))
        return await self.refresh()

    async def goto_page(self, page: int) -> bool:
        """Navigate to ``page`` if it lies within the last fetched page range.

        Returns:
            False, without any state change, when the request is out of range
            or nothing has been fetched yet
        """
        if self._last_meta is None or not 1 <= page <= self._last_meta.last_page:
            logger.debug("goto_page_ignored", extra={"page": page})
            return False
        self._signature = self._signature.merged(page=page)
        await self.refresh()
        return True

    def set_sort(self, key: str) -> SortState:
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        self._sort = self._sort.toggled(key)
        return self._sort

    def view(self) -> TaskBoardView:
        """Build the derived view for the active signature.

        While the first fetch for a new signature is in flight, the last
        displayed page is served as a placeholder.
        """
        page = self._cache.read(self._signature)
        is_placeholder = False
        if page is None and self._displayed is not None:
            page = self._cache.read(self._displayed)
            is_placeholder = page is not None

        pagination = (
            page.meta
            if page is not None and not is_placeholder
            else PageMeta(per_page=self._signature.per_page, current_page=self._signature.page)
        )
        return TaskBoardView(
            records=sort_records(page.records, self._sort) if page is not None else [],
            pagination=pagination,
            freshness=self.freshness,
            is_placeholder=is_placeholder,
            error=self._last_error,
            filters=self._signature,
            sort=self._sort,
        )

    def visible_ids(self) -> list[int]:
        page = self._cache.read(self._signature)
        return page.ids if page is not None else []

    async def close(self) -> None:
        """Cancel in-flight fetches; their results are dropped."""
        self._closed = True
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _fetch(self, signature: FilterSignature) -> CachePage | None:
        if self._closed:
            return None

        seq = self._cache.next_sequence()
        self._inflight[signature] = self._inflight.get(signature, 0) + 1
        fetch = asyncio.ensure_future(self._gateway.list_tasks(signature))
        self._pending.add(fetch)
        try:
            with span("query_controller.fetch"):
                page = await fetch
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._closed and current is not None and not current.cancelling():
                log_with_context(logger, "debug", "fetch_cancelled_on_close", signature=signature.key(), seq=seq)
                return None
            raise
        except SyncError as e:
            if signature == self._signature:
                self._last_error = str(e)
            log_with_context(logger, "warning", "fetch_failed", signature=signature.key(), seq=seq, error=str(e))
            raise
        finally:
            self._release_inflight(signature)
            self._pending.discard(fetch)

        installed = self._cache.read(signature) if self._cache.replace(signature, page, seq) else None
        if installed is None:
            return self._cache.read(signature)

        if signature == self._signature:
            self._last_error = None
            self._mark_displayed(signature, installed)
        return installed

    def _release_inflight(self, signature: FilterSignature) -> None:
        remaining = self._inflight.get(signature, 0) - 1
        if remaining > 0:
            self._inflight[signature] = remaining
        else:
            self._inflight.pop(signature, None)

    def _switch_to(self, signature: FilterSignature) -> None:
        # Page bounds belong to the previous filters until a page for the new ones is shown.
        if signature != self._signature:
            self._last_meta = None
        self._signature = signature

    def _mark_displayed(self, signature: FilterSignature, page: CachePage) -> None:
        new_signature = signature != self._displayed
        self._displayed = signature
        self._last_meta = page.meta
        if self._on_page_installed is not None:
            self._on_page_installed(page, new_signature)
