"""
Tests for the ordering engine: partitions, reorders, cross-column moves.
"""
import random

from taskboard.ordering import (
    MoveInstruction,
    apply_move,
    array_move,
    build_move,
    find_task,
    partition,
    resolve_drop_target,
)
from taskboard.schema import TaskStatus, ColumnTarget, TaskTarget

from conftest import make_task


def _order(tasks, status):
    return [t.task_id for t in partition(tasks, status)]


def _positions(tasks, status):
    return [t.position for t in partition(tasks, status)]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_array_move_preserves_relative_order():
    assert array_move(["a", "b", "c", "d"], 3, 0) == ["d", "a", "b", "c"]
    assert array_move(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert array_move(["a", "b"], 1, 1) == ["a", "b"]


def test_partition_sorts_by_position(board_tasks):
    shuffled = list(reversed(board_tasks))
    assert _order(shuffled, TaskStatus.TODO) == ["a", "b", "c"]
    assert _order(shuffled, TaskStatus.DONE) == ["e"]


def test_resolve_drop_target(board_tasks):
    assert resolve_drop_target(board_tasks, "done") == ColumnTarget(TaskStatus.DONE)
    assert resolve_drop_target(board_tasks, "in_progress") == ColumnTarget(TaskStatus.IN_PROGRESS)
    assert resolve_drop_target(board_tasks, "b") == TaskTarget("b")
    assert resolve_drop_target(board_tasks, "nope") is None
    assert resolve_drop_target(board_tasks, None) is None


def test_build_move_takes_status_of_card_under_cursor(board_tasks):
    a = find_task(board_tasks, "a")
    move = build_move(board_tasks, a, TaskTarget("d"))
    assert move == MoveInstruction("a", TaskStatus.IN_PROGRESS, anchor_id="d")

    move = build_move(board_tasks, a, ColumnTarget(TaskStatus.DONE))
    assert move == MoveInstruction("a", TaskStatus.DONE, anchor_id=None)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Same-column reorders
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_last_to_first(board_tasks):
    """A,B,C with C dropped on A gives C,A,B at 0,1,2."""
    result = apply_move(board_tasks, MoveInstruction("c", TaskStatus.TODO, anchor_id="a"))
    assert _order(result, TaskStatus.TODO) == ["c", "a", "b"]
    assert [find_task(result, i).position for i in ("c", "a", "b")] == [0, 1, 2]


def test_move_first_to_last(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("a", TaskStatus.TODO, anchor_id="c"))
    assert _order(result, TaskStatus.TODO) == ["b", "c", "a"]
    assert _positions(result, TaskStatus.TODO) == [0, 1, 2]


def test_reorder_leaves_other_columns_untouched(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("c", TaskStatus.TODO, anchor_id="a"))
    for task_id in ("d", "e"):
        assert find_task(result, task_id) is find_task(board_tasks, task_id)
    # Input list is not mutated
    assert [t.position for t in board_tasks] == [0, 1, 2, 0, 0]


def test_reorder_repairs_sparse_column():
    tasks = [
        make_task("x", TaskStatus.TODO, 3),
        make_task("y", TaskStatus.TODO, 7),
        make_task("z", TaskStatus.TODO, 9),
    ]
    result = apply_move(tasks, MoveInstruction("x", TaskStatus.TODO, anchor_id="y"))
    assert _order(result, TaskStatus.TODO) == ["y", "x", "z"]
    assert _positions(result, TaskStatus.TODO) == [0, 1, 2]


def test_drop_on_own_column_appends(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("a", TaskStatus.TODO, anchor_id=None))
    assert _order(result, TaskStatus.TODO) == ["b", "c", "a"]
    assert _positions(result, TaskStatus.TODO) == [0, 1, 2]


def test_random_reorders_keep_positions_dense():
    rng = random.Random(7)
    tasks = [make_task(f"t{i}", TaskStatus.IN_PROGRESS, i) for i in range(6)]
    ids = [t.task_id for t in tasks]
    for _ in range(50):
        source, anchor = rng.choice(ids), rng.choice(ids)
        expected = _order(tasks, TaskStatus.IN_PROGRESS)
        if source != anchor:
            expected = array_move(expected, expected.index(source), expected.index(anchor))
        tasks = apply_move(tasks, MoveInstruction(source, TaskStatus.IN_PROGRESS, anchor_id=anchor))
        assert _order(tasks, TaskStatus.IN_PROGRESS) == expected
        assert _positions(tasks, TaskStatus.IN_PROGRESS) == list(range(6))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Cross-column moves
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_to_done_appends(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("b", TaskStatus.DONE))
    moved = find_task(result, "b")
    assert moved.status == TaskStatus.DONE
    assert moved.position == 1  # one task was already done
    assert _order(result, TaskStatus.DONE) == ["e", "b"]


def test_cross_column_ignores_anchor_index(board_tasks):
    """Dropping onto a specific card in another column still appends."""
    result = apply_move(board_tasks, MoveInstruction("a", TaskStatus.IN_PROGRESS, anchor_id="d"))
    assert _order(result, TaskStatus.IN_PROGRESS) == ["d", "a"]
    assert find_task(result, "a").position == 1


def test_cross_column_leaves_source_sparse(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("a", TaskStatus.DONE))
    assert _order(result, TaskStatus.TODO) == ["b", "c"]
    assert _positions(result, TaskStatus.TODO) == [1, 2]
    assert find_task(result, "b") is find_task(board_tasks, "b")


def test_move_to_empty_column_gets_position_zero():
    tasks = [make_task("a", TaskStatus.TODO, 0)]
    result = apply_move(tasks, MoveInstruction("a", TaskStatus.IN_PROGRESS))
    assert find_task(result, "a").position == 0


def test_round_trip_does_not_restore_position(board_tasks):
    """Out and back appends at the end rather than restoring the old slot."""
    there = apply_move(board_tasks, MoveInstruction("a", TaskStatus.DONE))
    back = apply_move(there, MoveInstruction("a", TaskStatus.TODO))
    # b and c still sit at 1 and 2, so a lands at count(todo) == 2
    assert find_task(back, "a").position == 2
    assert find_task(back, "a").status == TaskStatus.TODO


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# No-ops
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_drop_on_itself_is_noop(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("b", TaskStatus.TODO, anchor_id="b"))
    assert result is board_tasks


def test_unknown_task_is_noop(board_tasks):
    result = apply_move(board_tasks, MoveInstruction("zz", TaskStatus.DONE))
    assert result is board_tasks
