"""Cache page, filter signature and sort state models."""

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from housekeeping_sync.core.config import constants, settings
from housekeeping_sync.domain.task import CleaningTask, Priority


class PageMeta(BaseModel):
    """Pagination metadata as returned by the last successful fetch."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    current_page: int = 1
    last_page: int = 1
    per_page: int = Field(default_factory=lambda: settings.default_per_page)
    total: int = 0
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None


class CachePage(BaseModel):
    """An ordered page of tasks plus the metadata that produced it."""

    model_config = ConfigDict(frozen=True)

    records: tuple[CleaningTask, ...] = ()
    meta: PageMeta = Field(default_factory=PageMeta)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CachePage":
        """Build a page from a ``{data, current_page, last_page, ...}`` list response."""
        return cls(
            records=tuple(CleaningTask.model_validate(item) for item in payload.get("data") or []),
            meta=PageMeta.model_validate(payload),
        )

    @property
    def ids(self) -> list[int]:
        return [task.id for task in self.records]

    def index_of(self, task_id: int) -> int | None:
        for index, task in enumerate(self.records):
            if task.id == task_id:
                return index
        return None

    def find(self, task_id: int) -> CleaningTask | None:
        index = self.index_of(task_id)
        return None if index is None else self.records[index]

    def with_record_at(self, index: int, task: CleaningTask) -> "CachePage":
        """Return a copy with one record replaced, keeping order and metadata."""
        records = list(self.records)
        records[index] = task
        return self.model_copy(update={"records": tuple(records)})


class FilterSignature(BaseModel):
    """Canonical, hashable key identifying one cached page.

    Two signatures with equal field values are equal and hash the same, so the
    cache never depends on object identity.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default_factory=lambda: settings.default_per_page, ge=1)
    priority: Priority | None = None
    pending_only: bool | None = None
    room_id: int | None = None
    status_id: int | None = None
    date_from: date | None = None
    date_to: date | None = None

    def merged(self, **patch: Any) -> "FilterSignature":
        """Return a validated copy with ``patch`` applied."""
        return FilterSignature.model_validate({**self.model_dump(), **patch})

    def key(self) -> str:
        """Stable string form, e.g. ``page=2&per_page=10&priority=high``."""
        values = self.model_dump(mode="json", exclude_none=True)
        return "&".join(f"{name}={values[name]}" for name in sorted(values))

    def query_params(self) -> dict[str, str]:
        """Query string parameters understood by ``GET /tasks``."""
        raw: dict[str, Any] = {
            "per_page": self.per_page,
            "priority": self.priority,
            "pending": self.pending_only,
            "room_id": self.room_id,
            "estado_id": self.status_id,
            "desde": self.date_from,
            "hasta": self.date_to,
            "page": self.page,
        }
        return {name: _serialize_param(value) for name, value in raw.items() if value is not None}


def _serialize_param(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class SortState(BaseModel):
    """Client-side sort applied to the records of the current page."""

    model_config = ConfigDict(frozen=True)

    key: str = constants.DEFAULT_SORT_KEY
    direction: SortDirection = SortDirection.ASC

    def toggled(self, key: str) -> "SortState":
        """Flip direction when re-selecting the same key, otherwise sort ascending on ``key``."""
        if key == self.key:
            flipped = SortDirection.DESC if self.direction is SortDirection.ASC else SortDirection.ASC
            return SortState(key=key, direction=flipped)
        return SortState(key=key, direction=SortDirection.ASC)
