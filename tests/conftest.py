"""Shared test fixtures for task board tests."""

import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Ensure the repository root (taskboard/, board_server.py) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.celebration import Celebration
from taskboard.controller import BoardController
from taskboard.errors import StoreError
from taskboard.schema import Task, Category, TaskStatus, DEFAULT_CATEGORIES
from taskboard.store import TaskStore, CategoryStore


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeScheduler:
    """Collects scheduled callbacks instead of starting timers."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))
        return None

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


class FakeTaskStore:
    """In-memory TaskStore contract with switchable failures."""

    def __init__(self, tasks=None):
        self.rows = {t.task_id: replace(t) for t in (tasks or [])}
        self.fail_on = set()
        self.calls = []
        self._next = 1

    def _check(self, op):
        self.calls.append(op)
        if op in self.fail_on:
            raise StoreError(f"{op} failed")

    def list(self):
        self._check("list")
        return sorted((replace(t) for t in self.rows.values()), key=lambda t: t.position)

    def create(self, task):
        self._check("create")
        task = replace(task, task_id=task.task_id or f"new-{self._next}")
        self._next += 1
        self.rows[task.task_id] = task
        return replace(task)

    def update(self, task_id, fields):
        self._check("update")
        values = dict(fields)
        if "status" in values:
            values["status"] = TaskStatus(getattr(values["status"], "value", values["status"]))
        self.rows[task_id] = replace(self.rows[task_id], **values)
        return replace(self.rows[task_id])

    def update_status_and_position(self, task_id, status, position):
        self._check("update_status_and_position")
        self.rows[task_id] = replace(self.rows[task_id], status=status, position=position)

    def delete(self, task_id):
        self._check("delete")
        self.rows.pop(task_id, None)


class FakeCategoryStore:
    def __init__(self, categories=None):
        self.categories = list(categories or [])
        self.fail_on = set()

    def list(self):
        if "list" in self.fail_on:
            raise StoreError("list failed")
        return list(self.categories)

    def ensure_defaults(self, owner_id):
        if "ensure_defaults" in self.fail_on:
            raise StoreError("ensure_defaults failed")
        if any(c.owner_id == owner_id for c in self.categories):
            return
        for i, (name, color, icon) in enumerate(DEFAULT_CATEGORIES):
            self.categories.append(Category(f"cat-{i}", name, color, icon, owner_id))


def make_task(task_id, status=TaskStatus.TODO, position=0, **kwargs):
    title = kwargs.pop("title", task_id.upper())
    return Task(task_id=task_id, title=title, status=status, position=position,
                owner_id="alice", **kwargs)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "board.db")


@pytest.fixture
def task_store(db_path):
    return TaskStore(db_path, "alice")


@pytest.fixture
def category_store(db_path):
    return CategoryStore(db_path, "alice")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def celebration(clock, scheduler):
    return Celebration(duration=2.0, clock=clock, schedule=scheduler)


@pytest.fixture
def board_tasks():
    """A, B, C in todo; D in progress; E done."""
    return [
        make_task("a", TaskStatus.TODO, 0, description="Write the quarterly report"),
        make_task("b", TaskStatus.TODO, 1, category_id="cat-0"),
        make_task("c", TaskStatus.TODO, 2),
        make_task("d", TaskStatus.IN_PROGRESS, 0, description="Groceries for the week", category_id="cat-4"),
        make_task("e", TaskStatus.DONE, 0),
    ]


@pytest.fixture
def fake_tasks(board_tasks):
    return FakeTaskStore(board_tasks)


@pytest.fixture
def fake_categories():
    return FakeCategoryStore()


@pytest.fixture
def controller(fake_tasks, fake_categories, celebration):
    ctl = BoardController(fake_tasks, fake_categories, owner_id="alice",
                          confirm=lambda message: True, celebration=celebration)
    assert ctl.load()
    return ctl
