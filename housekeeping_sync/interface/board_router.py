"""JSON endpoints exposing the task board to UI clients."""

import logging
from datetime import date, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from housekeeping_sync.core.config import constants
from housekeeping_sync.core.errors import (
    BusyConflictError,
    MutationTimeoutError,
    RemoteFailureError,
    SyncError,
    classify_sync_error,
)
from housekeeping_sync.domain.intents import TaskPatch
from housekeeping_sync.domain.task import CleaningTask, Priority
from housekeeping_sync.services.query_controller import TaskBoardView
from housekeeping_sync.services.task_board import TaskBoard


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/board", tags=["board"])


class FilterPatch(BaseModel):
    """Filter fields to merge; omitted fields keep their current value."""

    per_page: int | None = Field(default=None, ge=1)
    priority: Priority | None = None
    pending_only: bool | None = None
    room_id: int | None = None
    status_id: int | None = None
    date_from: date | None = None
    date_to: date | None = None


class FinalizeRequest(BaseModel):
    finished_at: datetime
    notes: str | None = Field(default=None, max_length=constants.NOTES_MAX_LENGTH)


class SelectAllRequest(BaseModel):
    ids: list[int] | None = None


class SelectionResponse(BaseModel):
    selected_ids: list[int]


def get_board(request: Request) -> TaskBoard:
    """Return the board created during application startup."""
    return request.app.state.board


def _status_for(error: SyncError) -> int:
    if isinstance(error, BusyConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, MutationTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(error, RemoteFailureError) and error.status_code == constants.HTTP_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, RemoteFailureError) and error.is_validation_error:
        return constants.HTTP_UNPROCESSABLE_ENTITY
    return status.HTTP_502_BAD_GATEWAY


def _to_http_error(error: SyncError) -> HTTPException:
    response = classify_sync_error(error)
    logger.info("board_action_failed", extra={"kind": response.kind, "code": response.code})
    return HTTPException(status_code=_status_for(error), detail=response.model_dump(mode="json"))


@router.get("", response_model=TaskBoardView)
async def get_view(board: TaskBoard = Depends(get_board)) -> TaskBoardView:
    return board.view()


@router.post("/refresh", response_model=TaskBoardView)
async def refresh(force: bool = False, board: TaskBoard = Depends(get_board)) -> TaskBoardView:
    try:
        await board.refresh(force=force)
    except SyncError as e:
        raise _to_http_error(e) from e
    return board.view()


@router.post("/filters", response_model=TaskBoardView)
async def set_filters(patch: FilterPatch, board: TaskBoard = Depends(get_board)) -> TaskBoardView:
    fields: dict[str, Any] = patch.model_dump(exclude_unset=True)
    try:
        await board.set_filter(**fields)
    except SyncError as e:
        raise _to_http_error(e) from e
    return board.view()


@router.post("/page/{page}", response_model=TaskBoardView)
async def goto_page(page: int, board: TaskBoard = Depends(get_board)) -> TaskBoardView:
    try:
        await board.goto_page(page)
    except SyncError as e:
        raise _to_http_error(e) from e
    return board.view()


@router.post("/sort/{key}", response_model=TaskBoardView)
async def set_sort(key: str, board: TaskBoard = Depends(get_board)) -> TaskBoardView:
    try:
        board.set_sort(key)
    except ValueError as e:
        raise HTTPException(status_code=constants.HTTP_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return board.view()


@router.post("/tasks/{task_id}/select", response_model=SelectionResponse)
async def toggle_one(task_id: int, board: TaskBoard = Depends(get_board)) -> SelectionResponse:
    board.toggle_one(task_id)
    return SelectionResponse(selected_ids=sorted(board.selection.selected))


@router.post("/select-all", response_model=SelectionResponse)
async def toggle_all(
    body: SelectAllRequest | None = None,
    board: TaskBoard = Depends(get_board),
) -> SelectionResponse:
    selected = board.toggle_all_on_page(body.ids if body else None)
    return SelectionResponse(selected_ids=sorted(selected))


@router.delete("/selection", status_code=status.HTTP_204_NO_CONTENT)
async def clear_selection(board: TaskBoard = Depends(get_board)) -> None:
    board.clear_selection()


@router.post("/tasks/{task_id}/finalize", response_model=CleaningTask)
async def finalize(task_id: int, body: FinalizeRequest, board: TaskBoard = Depends(get_board)) -> CleaningTask:
    try:
        return await board.finalize(task_id, body.finished_at, body.notes)
    except SyncError as e:
        raise _to_http_error(e) from e


@router.post("/tasks/{task_id}/reopen", response_model=CleaningTask)
async def reopen(task_id: int, board: TaskBoard = Depends(get_board)) -> CleaningTask:
    try:
        return await board.reopen(task_id)
    except SyncError as e:
        raise _to_http_error(e) from e


@router.patch("/tasks/{task_id}", response_model=CleaningTask)
async def update_task(
    task_id: int,
    intent: Annotated[TaskPatch, Body()],
    board: TaskBoard = Depends(get_board),
) -> CleaningTask:
    try:
        return await board.update(task_id, intent)
    except SyncError as e:
        raise _to_http_error(e) from e


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, board: TaskBoard = Depends(get_board)) -> None:
    try:
        await board.delete(task_id)
    except SyncError as e:
        raise _to_http_error(e) from e
