#!/usr/bin/env python3
"""
Quick verification that the task board works end-to-end.
"""
import sys

from taskboard.celebration import Celebration
from taskboard.controller import BoardController
from taskboard.schema import TaskStatus
from taskboard.store import TaskStore, CategoryStore

DB_PATH = "/tmp/taskboard_verify.db"


def main(db_path: str = DB_PATH) -> int:
    print("=" * 60)
    print("Task Board Verification")
    print("=" * 60)

    # Create stores
    print("\n[1/6] Creating SQLite stores...")
    tasks = TaskStore(db_path, "verify")
    categories = CategoryStore(db_path, "verify")
    for t in tasks.list():
        tasks.delete(t.task_id)
    print("✅ Stores created")

    # Controller
    print("\n[2/6] Loading board (default categories)...")
    board = BoardController(tasks, categories, "verify",
                            confirm=lambda message: True,
                            celebration=Celebration(duration=0.1))
    if not board.load():
        print("❌ Load failed")
        return 1
    print(f"✅ {len(board.categories)} categories: {', '.join(c.name for c in board.categories)}")

    # Create tasks
    print("\n[3/6] Creating tasks...")
    work = next(c for c in board.categories if c.name == "Work")
    for title in ("Write report", "Review PR", "Book flights"):
        board.create_task({"title": title, "category_id": work.category_id})
    todo = board.columns[TaskStatus.TODO]
    print(f"✅ To Do: {[(t.title, t.position) for t in todo]}")

    # Reorder within a column
    print("\n[4/6] Dropping 'Book flights' onto 'Write report'...")
    board.complete_drag(todo[2].task_id, todo[0].task_id)
    board.load()
    print(f"   → {[(t.title, t.position) for t in board.columns[TaskStatus.TODO]]}")

    # Move across columns
    print("\n[5/6] Moving 'Review PR' to Done...")
    review = next(t for t in board.tasks if t.title == "Review PR")
    board.complete_drag(review.task_id, TaskStatus.DONE.value)
    print(f"   → Celebration visible: {board.celebration.visible}")
    board.load()
    print(f"   → Done: {[(t.title, t.position) for t in board.columns[TaskStatus.DONE]]}")

    # Stats
    print("\n[6/6] Board stats...")
    print(f"✅ {board.stats}")

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED")
    print("=" * 60)
    print(f"\nTest database: {db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:]))
