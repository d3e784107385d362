from housekeeping_sync.services.mutation_executor import MutationExecutor
from housekeeping_sync.services.query_controller import Freshness, QueryController, TaskBoardView
from housekeeping_sync.services.selection import SelectionManager
from housekeeping_sync.services.task_board import TaskBoard


__all__ = [
    "Freshness",
    "MutationExecutor",
    "QueryController",
    "SelectionManager",
    "TaskBoard",
    "TaskBoardView",
]
