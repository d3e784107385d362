"""Domain models and mutation intents."""

from housekeeping_sync.domain.intents import (
    AssignTo,
    Finalize,
    MutationIntent,
    Reopen,
    Reschedule,
    SetNotes,
    SetPriority,
    TaskPatch,
)
from housekeeping_sync.domain.page import CachePage, FilterSignature, PageMeta, SortDirection, SortState
from housekeeping_sync.domain.task import CLEAN_STATUS, DIRTY_STATUS, CleaningTask, Priority, RoomRef, TaskStatus, UserRef


__all__ = [
    "CLEAN_STATUS",
    "DIRTY_STATUS",
    "AssignTo",
    "CachePage",
    "CleaningTask",
    "FilterSignature",
    "Finalize",
    "MutationIntent",
    "PageMeta",
    "Priority",
    "Reopen",
    "Reschedule",
    "RoomRef",
    "SetNotes",
    "SetPriority",
    "SortDirection",
    "SortState",
    "TaskPatch",
    "TaskStatus",
    "UserRef",
]
