"""Tests for task domain models, filter signatures and mutation intents."""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from housekeeping_sync.domain.intents import AssignTo, Finalize, Reopen, Reschedule, SetNotes, SetPriority
from housekeeping_sync.domain.page import CachePage, FilterSignature, SortDirection, SortState
from housekeeping_sync.domain.task import CleaningTask, Priority, UserRef
from tests.unit.mocks import make_task_payload


FINISHED = datetime(2024, 1, 2, 9, 0, tzinfo=UTC)


@pytest.fixture
def dirty_task() -> CleaningTask:
    return CleaningTask.model_validate(make_task_payload(7, assignee={"id": 3, "name": "Ana"}, notes="towels"))


@pytest.mark.unit
class TestCleaningTask:
    def test_status_follows_finished_at(self, dirty_task):
        assert dirty_task.status.name == "Sucia"
        assert dirty_task.status.id == 3

        clean = dirty_task.model_copy(update={"finished_at": FINISHED})
        assert clean.status.name == "Limpia"
        assert clean.status.id == 4

    def test_inbound_status_is_ignored(self):
        payload = make_task_payload(1)
        payload["status"] = {"id": 4, "name": "Limpia"}

        task = CleaningTask.model_validate(payload)

        assert task.finished_at is None
        assert task.status.name == "Sucia"

    def test_status_is_serialized(self, dirty_task):
        dumped = dirty_task.model_dump(mode="json")
        assert dumped["status"] == {"id": 3, "name": "Sucia"}

    def test_accepts_legacy_id_key(self):
        payload = make_task_payload(1)
        payload["id_limpieza"] = payload.pop("id")

        assert CleaningTask.model_validate(payload).id == 1

    def test_notes_longer_than_limit_rejected(self):
        with pytest.raises(ValidationError):
            CleaningTask.model_validate(make_task_payload(1, notes="x" * 501))

    def test_started_at_required(self):
        payload = make_task_payload(1)
        del payload["started_at"]
        with pytest.raises(ValidationError):
            CleaningTask.model_validate(payload)


@pytest.mark.unit
class TestIntents:
    def test_finalize_sets_finished_and_clears_assignee(self, dirty_task):
        task = Finalize(finished_at=FINISHED).apply(dirty_task)

        assert task.finished_at == FINISHED
        assert task.assignee is None
        assert task.status.name == "Limpia"
        assert task.notes == "towels"

    def test_finalize_overwrites_notes_when_given(self, dirty_task):
        task = Finalize(finished_at=FINISHED, notes="done").apply(dirty_task)
        assert task.notes == "done"

    def test_finalize_twice_is_a_noop(self, dirty_task):
        intent = Finalize(finished_at=FINISHED, notes="done")
        once = intent.apply(dirty_task)
        assert intent.apply(once) == once

    def test_finalize_requires_finished_at(self):
        with pytest.raises(ValidationError):
            Finalize()  # type: ignore[call-arg]

    def test_reopen_keeps_assignee(self, dirty_task):
        clean = Finalize(finished_at=FINISHED).apply(dirty_task)
        assigned_clean = AssignTo(assignee=UserRef(id=5, name="Luis")).apply(clean)

        reopened = Reopen().apply(assigned_clean)

        assert reopened.finished_at is None
        assert reopened.status.name == "Sucia"
        assert reopened.assignee == UserRef(id=5, name="Luis")

    def test_reopen_remote_fields(self):
        assert Reopen().remote_fields() == {"finished_at": None, "status_id": 3}

    def test_assign_remote_fields(self):
        assert AssignTo(assignee=UserRef(id=5, name="Luis")).remote_fields() == {"assignee_id": 5}
        assert AssignTo(assignee=None).remote_fields() == {"assignee_id": None}

    def test_set_priority(self, dirty_task):
        task = SetPriority(priority=Priority.URGENT).apply(dirty_task)
        assert task.priority is Priority.URGENT
        assert SetPriority(priority=Priority.URGENT).remote_fields() == {"priority": "urgent"}

    def test_reschedule(self, dirty_task):
        new_start = datetime(2024, 3, 1, 7, 30, tzinfo=UTC)
        task = Reschedule(started_at=new_start).apply(dirty_task)
        assert task.started_at == new_start
        assert Reschedule(started_at=new_start).remote_fields() == {"started_at": "2024-03-01T07:30:00+00:00"}

    def test_set_notes_length_validated(self):
        with pytest.raises(ValidationError):
            SetNotes(notes="x" * 501)

    def test_intent_only_touches_its_fields(self, dirty_task):
        task = SetNotes(notes="new").apply(dirty_task)
        assert task.model_dump(exclude={"notes"}) == dirty_task.model_dump(exclude={"notes"})


@pytest.mark.unit
class TestFilterSignature:
    def test_structural_equality_and_hash(self):
        first = FilterSignature(page=2, per_page=10, priority=Priority.HIGH)
        second = FilterSignature(priority="high", per_page=10, page=2)

        assert first == second
        assert hash(first) == hash(second)
        assert {first: "page"}[second] == "page"

    def test_key_is_canonical(self):
        signature = FilterSignature(page=2, per_page=10, priority=Priority.HIGH, date_from=date(2024, 1, 1))
        assert signature.key() == "date_from=2024-01-01&page=2&per_page=10&priority=high"

    def test_query_params(self):
        signature = FilterSignature(
            page=3,
            per_page=20,
            priority=Priority.LOW,
            pending_only=True,
            room_id=12,
            status_id=3,
            date_from=date(2024, 1, 1),
            date_to=date(2024, 1, 31),
        )

        assert signature.query_params() == {
            "per_page": "20",
            "priority": "low",
            "pending": "1",
            "room_id": "12",
            "estado_id": "3",
            "desde": "2024-01-01",
            "hasta": "2024-01-31",
            "page": "3",
        }

    def test_query_params_skip_unset(self):
        assert FilterSignature(page=1, per_page=10).query_params() == {"per_page": "10", "page": "1"}

    def test_false_flag_is_sent_as_zero(self):
        assert FilterSignature(pending_only=False).query_params()["pending"] == "0"

    def test_merged_validates(self):
        with pytest.raises(ValidationError):
            FilterSignature().merged(page=0)


@pytest.mark.unit
class TestSortState:
    def test_same_key_toggles_direction(self):
        state = SortState(key="room")
        assert state.toggled("room").direction is SortDirection.DESC
        assert state.toggled("room").toggled("room").direction is SortDirection.ASC

    def test_new_key_resets_to_ascending(self):
        state = SortState(key="room", direction=SortDirection.DESC)
        toggled = state.toggled("floor")
        assert toggled.key == "floor"
        assert toggled.direction is SortDirection.ASC


@pytest.mark.unit
def test_cache_page_from_payload():
    page = CachePage.from_payload(
        {
            "data": [make_task_payload(1), make_task_payload(2)],
            "current_page": 1,
            "last_page": 4,
            "per_page": 2,
            "total": 8,
            "from": 1,
            "to": 2,
        }
    )

    assert page.ids == [1, 2]
    assert page.meta.last_page == 4
    assert page.meta.from_ == 1
    assert page.meta.model_dump(by_alias=True)["from"] == 1
    assert page.find(2) is not None
    assert page.find(3) is None
