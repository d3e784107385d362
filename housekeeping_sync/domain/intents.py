"""Typed mutation intents for cleaning tasks.

Each intent is validated on construction and knows two things: how to patch
the cached record optimistically (``apply``) and which remote call confirms
it (``send``). Only the fields an intent names are ever touched.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from housekeeping_sync.core.config import constants
from housekeeping_sync.domain.task import CleaningTask, Priority, UserRef


if TYPE_CHECKING:
    from housekeeping_sync.interface.task_gateway import TaskGateway


class MutationIntent(BaseModel):
    """Base class for one optimistic change to a single task."""

    model_config = ConfigDict(frozen=True)

    def apply(self, task: CleaningTask) -> CleaningTask:
        """Return the optimistic replacement for ``task``."""
        raise NotImplementedError

    def remote_fields(self) -> dict[str, Any]:
        """JSON body sent with ``PATCH /tasks/{id}``."""
        raise NotImplementedError

    async def send(self, gateway: "TaskGateway", task_id: int) -> CleaningTask:
        """Confirm the change against the remote API."""
        return await gateway.update_task(task_id, self.remote_fields())


class AssignTo(MutationIntent):
    """Assign the task to a user, or unassign it with ``assignee=None``."""

    type: Literal["assign"] = "assign"
    assignee: UserRef | None

    def apply(self, task: CleaningTask) -> CleaningTask:
        return task.model_copy(update={"assignee": self.assignee})

    def remote_fields(self) -> dict[str, Any]:
        return {"assignee_id": self.assignee.id if self.assignee else None}


class SetPriority(MutationIntent):
    type: Literal["set_priority"] = "set_priority"
    priority: Priority | None

    def apply(self, task: CleaningTask) -> CleaningTask:
        return task.model_copy(update={"priority": self.priority})

    def remote_fields(self) -> dict[str, Any]:
        return {"priority": self.priority.value if self.priority else None}


class Reschedule(MutationIntent):
    type: Literal["reschedule"] = "reschedule"
    started_at: datetime

    def apply(self, task: CleaningTask) -> CleaningTask:
        return task.model_copy(update={"started_at": self.started_at})

    def remote_fields(self) -> dict[str, Any]:
        return {"started_at": self.started_at.isoformat()}


class SetNotes(MutationIntent):
    type: Literal["set_notes"] = "set_notes"
    notes: str | None = Field(default=None, max_length=constants.NOTES_MAX_LENGTH)

    def apply(self, task: CleaningTask) -> CleaningTask:
        return task.model_copy(update={"notes": self.notes})

    def remote_fields(self) -> dict[str, Any]:
        return {"notes": self.notes}


class Finalize(MutationIntent):
    """Mark the room clean.

    Finalizing releases the assignment. Notes are only overwritten when given.
    """

    type: Literal["finalize"] = "finalize"
    finished_at: datetime
    notes: str | None = Field(default=None, max_length=constants.NOTES_MAX_LENGTH)

    def apply(self, task: CleaningTask) -> CleaningTask:
        update: dict[str, Any] = {"finished_at": self.finished_at, "assignee": None}
        if self.notes is not None:
            update["notes"] = self.notes
        return task.model_copy(update=update)

    def remote_fields(self) -> dict[str, Any]:
        return {
            "finished_at": self.finished_at.isoformat(),
            "notes": self.notes,
            "status_id": constants.STATUS_CLEAN_ID,
        }

    async def send(self, gateway: "TaskGateway", task_id: int) -> CleaningTask:
        return await gateway.finalize_task(task_id, finished_at=self.finished_at, notes=self.notes)


class Reopen(MutationIntent):
    """Mark the room dirty again. The assignment is left untouched."""

    type: Literal["reopen"] = "reopen"

    def apply(self, task: CleaningTask) -> CleaningTask:
        return task.model_copy(update={"finished_at": None})

    def remote_fields(self) -> dict[str, Any]:
        return {"finished_at": None, "status_id": constants.STATUS_DIRTY_ID}


# Intents accepted by the generic ``PATCH /board/tasks/{id}`` endpoint.
TaskPatch = Annotated[AssignTo | SetPriority | Reschedule | SetNotes, Field(discriminator="type")]
