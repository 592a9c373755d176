"""
Ordering engine: per-status positions for board tasks.

Positions inside a status partition are zero-based ranks. A reorder inside
one column renumbers that whole column to 0..n-1. A move to another column
appends the task to the destination; the source column is left as-is, so
its positions may become sparse until the next reorder there.

All functions return new lists and never mutate the tasks they are given.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .schema import Task, TaskStatus, DropTarget, ColumnTarget, TaskTarget


@dataclass(frozen=True)
class MoveInstruction:
    """Where a dragged task should end up.

    anchor_id is the id of the card the task was dropped on, or None for
    the end of the target column.
    """
    task_id: str
    target_status: TaskStatus
    anchor_id: Optional[str] = None


def find_task(tasks: Sequence[Task], task_id: str) -> Optional[Task]:
    for task in tasks:
        if task.task_id == task_id:
            return task
    return None


def partition(tasks: Sequence[Task], status: TaskStatus) -> List[Task]:
    """Tasks of one status in display order (stable on equal positions)."""
    return sorted((t for t in tasks if t.status == status), key=lambda t: t.position)


def array_move(items: Sequence, old_index: int, new_index: int) -> list:
    """Remove the item at old_index and reinsert it at new_index."""
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return moved


def next_position(tasks: Sequence[Task], status: TaskStatus) -> int:
    """Position for a task appended to a column."""
    return sum(1 for t in tasks if t.status == status)


def resolve_drop_target(tasks: Sequence[Task], drop_target_id: Optional[str]) -> Optional[DropTarget]:
    """Turn a raw drop id into a column or card target.

    Column ids are the status values; anything else must be a known task id.
    Returns None when the id matches neither.
    """
    if drop_target_id is None:
        return None
    target_id = str(drop_target_id)
    for status in TaskStatus:
        if status.value == target_id:
            return ColumnTarget(status)
    if find_task(tasks, target_id) is not None:
        return TaskTarget(target_id)
    return None


def build_move(tasks: Sequence[Task], task: Task, target: DropTarget) -> MoveInstruction:
    """Derive the target status and anchor for a drop on the given target."""
    if isinstance(target, ColumnTarget):
        return MoveInstruction(task.task_id, target.status, anchor_id=None)
    over = find_task(tasks, target.task_id)
    status = over.status if over is not None else task.status
    return MoveInstruction(task.task_id, status, anchor_id=target.task_id)


def is_noop(task: Task, move: MoveInstruction) -> bool:
    return move.anchor_id == task.task_id and move.target_status == task.status


def apply_move(tasks: List[Task], move: MoveInstruction) -> List[Task]:
    """Apply a move and return the resulting task list.

    The input list itself is returned when the move changes nothing
    (unknown task, or a task dropped onto itself in its own column).
    Only tasks whose status or position change are replaced.
    """
    task = find_task(tasks, move.task_id)
    if task is None or is_noop(task, move):
        return tasks

    if task.status != move.target_status:
        # Cross-column moves always append; the anchor's index is not used.
        moved = replace(task, status=move.target_status,
                        position=next_position(tasks, move.target_status))
        return [moved if t.task_id == task.task_id else t for t in tasks]

    column = partition(tasks, task.status)
    old_index = column.index(task)
    new_index = len(column) - 1
    if move.anchor_id is not None:
        anchor = find_task(column, move.anchor_id)
        if anchor is not None:
            new_index = column.index(anchor)
    reordered = array_move(column, old_index, new_index)
    return renumber(tasks, reordered)


def renumber(tasks: List[Task], column: Sequence[Task]) -> List[Task]:
    """Assign positions 0..n-1 to column in order, leaving other tasks alone."""
    ranks = {t.task_id: index for index, t in enumerate(column)}
    result = []
    for t in tasks:
        rank = ranks.get(t.task_id)
        if rank is None or rank == t.position:
            result.append(t)
        else:
            result.append(replace(t, position=rank))
    return result
