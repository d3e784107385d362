"""Pytest configuration and fixtures for unit tests."""

import pytest

from housekeeping_sync.services.task_board import TaskBoard
from tests.unit.mocks import FakeTaskGateway, make_task_payload


@pytest.fixture
def two_tasks() -> list[dict]:
    """Record 7 is dirty and assigned, record 9 is already clean."""
    return [
        make_task_payload(
            7,
            room_number="204",
            priority="high",
            assignee={"id": 3, "name": "Ana"},
        ),
        make_task_payload(9, room_number="105", finished_at="2024-01-01T10:00:00Z"),
    ]


@pytest.fixture
def gateway(two_tasks) -> FakeTaskGateway:
    """Provides a fresh FakeTaskGateway for each test."""
    return FakeTaskGateway(two_tasks)


@pytest.fixture
async def board(gateway):
    """A board with the first page already loaded."""
    task_board = TaskBoard(gateway)
    await task_board.refresh()
    yield task_board
    await task_board.close()


@pytest.fixture
def many_tasks_gateway() -> FakeTaskGateway:
    """25 dirty tasks, i.e. three pages of 10."""
    return FakeTaskGateway([make_task_payload(task_id, room_number=str(100 + task_id)) for task_id in range(1, 26)])
