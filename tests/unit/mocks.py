"""In-memory stand-in for the remote task API used by unit tests."""

import asyncio
import copy
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import datetime
from typing import Any

from housekeeping_sync.core.errors import RemoteFailureError
from housekeeping_sync.domain.page import CachePage, FilterSignature
from housekeeping_sync.domain.task import CleaningTask


def make_task_payload(
    task_id: int,
    *,
    room_number: str = "101",
    floor: int | str | None = 1,
    room_type: str | None = "Doble",
    priority: str | None = None,
    assignee: dict[str, Any] | None = None,
    started_at: str = "2024-01-01T08:00:00Z",
    finished_at: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Build a task as the remote API would serialize it."""
    return {
        "id": task_id,
        "room": {"id": task_id * 10, "number": room_number, "floor": floor, "type_name": room_type},
        "priority": priority,
        "assignee": assignee,
        "started_at": started_at,
        "finished_at": finished_at,
        "notes": notes,
        "status": {"id": 4 if finished_at else 3, "name": "Limpia" if finished_at else "Sucia"},
    }


async def wait_until(predicate: Callable[[], bool], *, max_ticks: int = 100) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(max_ticks):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class FakeTaskGateway:
    """Pure Python task API.

    ``gate(op)`` queues an ``asyncio.Event`` the next ``op`` call waits on
    before answering, so tests can hold a request in flight. ``fail_next(op, exc)``
    makes the next ``op`` call raise ``exc`` (after its gate, if any).
    """

    def __init__(self, tasks: list[dict[str, Any]] | None = None) -> None:
        self.tasks: dict[int, dict[str, Any]] = {task["id"]: copy.deepcopy(task) for task in tasks or []}
        self.calls: list[tuple[str, Any]] = []
        self._gates: defaultdict[str, deque[asyncio.Event]] = defaultdict(deque)
        self._failures: defaultdict[str, deque[Exception]] = defaultdict(deque)

    def gate(self, op: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[op].append(event)
        return event

    def fail_next(self, op: str, exc: Exception) -> None:
        self._failures[op].append(exc)

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    async def _enter(self, op: str, arg: Any) -> None:
        self.calls.append((op, arg))
        if self._gates[op]:
            await self._gates[op].popleft().wait()
        if self._failures[op]:
            raise self._failures[op].popleft()

    def _get(self, task_id: int) -> dict[str, Any]:
        if task_id not in self.tasks:
            raise RemoteFailureError("Not found", status_code=404, body={"message": "Not found"}, task_id=task_id)
        return self.tasks[task_id]

    async def list_tasks(self, signature: FilterSignature) -> CachePage:
        await self._enter("list", signature)
        rows = sorted(self.tasks.values(), key=lambda task: task["id"])
        if signature.priority is not None:
            rows = [task for task in rows if task["priority"] == signature.priority.value]
        if signature.pending_only:
            rows = [task for task in rows if task["finished_at"] is None]
        if signature.room_id is not None:
            rows = [task for task in rows if task["room"]["id"] == signature.room_id]

        total = len(rows)
        per_page = signature.per_page
        last_page = max(1, -(-total // per_page))
        start = (signature.page - 1) * per_page
        chunk = rows[start : start + per_page]
        return CachePage.from_payload(
            {
                "data": copy.deepcopy(chunk),
                "current_page": signature.page,
                "last_page": last_page,
                "per_page": per_page,
                "total": total,
                "from": start + 1 if chunk else None,
                "to": start + len(chunk) if chunk else None,
            }
        )

    async def get_task(self, task_id: int) -> CleaningTask:
        await self._enter("get", task_id)
        return CleaningTask.model_validate(self._get(task_id))

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> CleaningTask:
        await self._enter("update", (task_id, fields))
        task = self._get(task_id)
        for name, value in fields.items():
            if name == "assignee_id":
                task["assignee"] = None if value is None else {"id": value, "name": f"User {value}"}
            elif name != "status_id":
                task[name] = value
        return CleaningTask.model_validate(task)

    async def finalize_task(self, task_id: int, *, finished_at: datetime, notes: str | None = None) -> CleaningTask:
        await self._enter("finalize", (task_id, finished_at, notes))
        task = self._get(task_id)
        task["finished_at"] = finished_at.isoformat()
        task["assignee"] = None
        if notes is not None:
            task["notes"] = notes
        return CleaningTask.model_validate(task)

    async def delete_task(self, task_id: int) -> None:
        await self._enter("delete", task_id)
        self._get(task_id)
        del self.tasks[task_id]
