"""Cleaning task domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from housekeeping_sync.core.config import constants


class Priority(StrEnum):
    """Cleaning task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RoomRef(BaseModel):
    """Room a task belongs to (read-only for the board)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | None = Field(default=None, description="Room ID")
    number: str = Field(..., description="Room number as displayed")
    floor: str | int | None = Field(default=None, description="Floor the room is on")
    type_name: str | None = Field(default=None, description="Room type name")


class UserRef(BaseModel):
    """User a task is assigned to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")


class TaskStatus(BaseModel):
    """Room status derived from whether the task is finished."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


CLEAN_STATUS = TaskStatus(id=constants.STATUS_CLEAN_ID, name=constants.STATUS_CLEAN_NAME)
DIRTY_STATUS = TaskStatus(id=constants.STATUS_DIRTY_ID, name=constants.STATUS_DIRTY_NAME)


class CleaningTask(BaseModel):
    """Cleaning task record as held in the local cache.

    ``status`` is computed from ``finished_at`` so the two can never disagree;
    a ``status`` key in a server payload is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., validation_alias=AliasChoices("id", "id_limpieza"), description="Task ID")
    room: RoomRef | None = Field(default=None, description="Room being cleaned")
    name: str | None = Field(default=None, description="Short task name")
    description: str | None = Field(default=None, description="Task description")
    priority: Priority | None = Field(default=None, description="Task priority")
    assignee: UserRef | None = Field(default=None, description="User the task is assigned to")
    started_at: datetime = Field(..., description="When the task was opened")
    finished_at: datetime | None = Field(default=None, description="When the room was cleaned")
    notes: str | None = Field(default=None, max_length=constants.NOTES_MAX_LENGTH, description="Free-text notes")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> TaskStatus:
        return CLEAN_STATUS if self.finished_at is not None else DIRTY_STATUS
