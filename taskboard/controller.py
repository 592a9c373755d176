"""
Board controller: owns the in-memory task list and runs the drag protocol.

A drag completes in two phases:
  1. the ordering engine computes a candidate list, which replaces the local
     list immediately (optimistic);
  2. one store call persists the moved task's status and position.
If phase 2 fails the candidate is discarded by reloading everything from
the store. The controller never tries to undo a candidate by hand.

No public method raises store or summarizer errors; failures are logged and
turned into a reload or a displayed message.
"""
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from .celebration import Celebration
from .errors import StoreError, SummarizationError
from .ordering import (
    apply_move,
    build_move,
    find_task,
    is_noop,
    next_position,
    partition,
    resolve_drop_target,
)
from .remote import BoardClient, RemoteCategoryStore, RemoteTaskStore
from .schema import Category, Task, TaskPriority, TaskStatus, STATUSES
from .store import CategoryStore, TaskStore
from .summarizer import Summary, SummarizationClient

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this task?"

FAILURE_CHECKLIST = (
    "Please check:\n"
    "- OpenAI API key is configured\n"
    "- Summarize endpoint is deployed\n"
    "- You have in-progress tasks"
)


def prioritize_failure_text(message: str) -> str:
    return f"Failed to prioritize tasks: {message}\n\n{FAILURE_CHECKLIST}"


class BoardController:
    """Single-user board state plus the operations the UI delegates to it."""

    def __init__(
        self,
        task_store,
        category_store,
        owner_id: str,
        summarizer=None,
        confirm: Optional[Callable[[str], bool]] = None,
        celebration: Optional[Celebration] = None,
    ):
        self.task_store = task_store
        self.category_store = category_store
        self.owner_id = owner_id
        self.summarizer = summarizer
        self.confirm = confirm or (lambda message: False)
        self.celebration = celebration or Celebration()

        self.tasks: List[Task] = []
        self.categories: List[Category] = []
        self.active_task: Optional[Task] = None
        self.search = ""
        self.category_filter = ""
        self.summary: Optional[Summary] = None
        self.is_loading = False
        self.is_loading_summary = False
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks

    @classmethod
    def from_config(cls, config, confirm: Optional[Callable[[str], bool]] = None) -> "BoardController":
        """Wire stores, summarizer and celebration from a Config."""
        if config.board_url:
            client = BoardClient(config.board_url, config.api_secret, config.request_timeout)
            task_store, category_store = RemoteTaskStore(client), RemoteCategoryStore(client)
        else:
            task_store = TaskStore(config.db_path, config.owner_id)
            category_store = CategoryStore(config.db_path, config.owner_id)
        summarizer = None
        if config.summarize_url:
            summarizer = SummarizationClient(config.summarize_url, config.api_secret, config.request_timeout)
        return cls(
            task_store,
            category_store,
            config.owner_id,
            summarizer=summarizer,
            confirm=confirm,
            celebration=Celebration(duration=config.celebration_secs),
        )

    # ── Events ───────────────────────────────────────────────────────────────

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback: board_changed, celebrate, summary_ready."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")

    # ── Loading ──────────────────────────────────────────────────────────────

    def load(self) -> bool:
        """Replace local state with the store's. Returns False on failure."""
        self.is_loading = True
        try:
            if self.owner_id:
                self.category_store.ensure_defaults(self.owner_id)
            tasks = self.task_store.list()
            categories = self.category_store.list()
        except StoreError as e:
            logger.error(f"Error loading data: {e}")
            return False
        finally:
            self.is_loading = False
        self.tasks = tasks
        self.categories = categories
        self._emit("board_changed")
        return True

    # ── Drag and drop ────────────────────────────────────────────────────────

    def begin_drag(self, task_id: str) -> None:
        self.active_task = find_task(self.tasks, task_id)

    def complete_drag(self, task_id: str, drop_target_id: Optional[str]) -> bool:
        """Finish a drag. Returns True when a move was applied and persisted."""
        self.active_task = None

        task = find_task(self.tasks, task_id)
        target = resolve_drop_target(self.tasks, drop_target_id)
        if task is None or target is None:
            return False

        move = build_move(self.tasks, task, target)
        if is_noop(task, move):
            return False

        candidate = apply_move(self.tasks, move)
        if candidate is self.tasks:
            return False

        if task.status != TaskStatus.DONE and move.target_status == TaskStatus.DONE:
            self.celebration.trigger()
            self._emit("celebrate", task_id=task_id, celebration=self.celebration.to_dict())

        # Phase 1: optimistic
        self.tasks = candidate
        self._emit("board_changed")

        # Phase 2: authoritative
        moved = find_task(candidate, task_id)
        try:
            self.task_store.update_status_and_position(task_id, moved.status, moved.position)
        except StoreError as e:
            logger.error(f"Error updating task position: {e}")
            self.load()
            return False
        return True

    # ── CRUD ─────────────────────────────────────────────────────────────────

    def create_task(self, fields: Dict[str, Any]) -> Optional[Task]:
        """Create a task appended to its column, then reload."""
        title = (fields.get("title") or "").strip()
        if not title:
            logger.error("Error creating task: title is required")
            return None
        status = TaskStatus.from_str(_enum_value(fields.get("status") or "todo"))
        task = Task(
            task_id="",
            title=title,
            description=fields.get("description") or "",
            status=status,
            priority=TaskPriority.from_str(_enum_value(fields.get("priority") or "medium")),
            category_id=fields.get("category_id") or None,
            due_date=fields.get("due_date") or None,
            position=next_position(self.tasks, status),
            owner_id=self.owner_id,
        )
        try:
            created = self.task_store.create(task)
        except StoreError as e:
            logger.error(f"Error creating task: {e}")
            return None
        self.load()
        return created

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Apply an edit from the task form, then reload."""
        changes = {k: fields[k] for k in
                   ("title", "description", "status", "priority", "category_id", "due_date")
                   if k in fields}
        if "title" in changes and not (changes["title"] or "").strip():
            logger.error(f"Error updating task {task_id}: title is required")
            return None
        current = find_task(self.tasks, task_id)
        if current is not None and "status" in changes:
            status = TaskStatus.from_str(_enum_value(changes["status"]))
            if status != current.status:
                # A new column means a new slot at its end
                changes["position"] = next_position(self.tasks, status)
        if "category_id" in changes:
            changes["category_id"] = changes["category_id"] or None
        try:
            updated = self.task_store.update(task_id, changes)
        except StoreError as e:
            logger.error(f"Error updating task {task_id}: {e}")
            return None
        self.load()
        return updated

    def delete_task(self, task_id: str) -> bool:
        """Delete after explicit confirmation; local list is filtered, not reloaded."""
        if not self.confirm(DELETE_PROMPT):
            return False
        try:
            self.task_store.delete(task_id)
        except StoreError as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            return False
        self.tasks = [t for t in self.tasks if t.task_id != task_id]
        self._emit("board_changed")
        return True

    # ── Filters and derived views ────────────────────────────────────────────

    def set_search(self, text: str) -> None:
        self.search = text or ""
        self._emit("board_changed")

    def set_category_filter(self, category_id: Optional[str]) -> None:
        self.category_filter = category_id or ""
        self._emit("board_changed")

    @property
    def filtered_tasks(self) -> List[Task]:
        return [
            t for t in self.tasks
            if t.matches(self.search)
            and (not self.category_filter or t.category_id == self.category_filter)
        ]

    @property
    def columns(self) -> Dict[TaskStatus, List[Task]]:
        visible = self.filtered_tasks
        return {status: partition(visible, status) for status in STATUSES}

    @property
    def stats(self) -> Dict[str, int]:
        total = len(self.tasks)
        done = sum(1 for t in self.tasks if t.status == TaskStatus.DONE)
        return {
            "total": total,
            "in_progress": sum(1 for t in self.tasks if t.status == TaskStatus.IN_PROGRESS),
            "done": done,
            "completion_rate": math.floor(done / total * 100 + 0.5) if total else 0,
        }

    # ── Prioritize ───────────────────────────────────────────────────────────

    @property
    def can_prioritize(self) -> bool:
        return not self.is_loading_summary and bool(self.columns[TaskStatus.IN_PROGRESS])

    def prioritize(self) -> Optional[Summary]:
        """Ask the summarizer to rank the visible in-progress tasks."""
        in_progress = self.columns[TaskStatus.IN_PROGRESS]
        if not in_progress or self.is_loading_summary:
            return None
        self.is_loading_summary = True
        try:
            if self.summarizer is None:
                raise SummarizationError("Summarization is not configured")
            self.summary = self.summarizer.prioritize(in_progress)
        except SummarizationError as e:
            logger.error(f"Error prioritizing tasks: {e}")
            self.summary = Summary(text=prioritize_failure_text(str(e)), task_count=0)
        finally:
            self.is_loading_summary = False
        self._emit("summary_ready", summary=self.summary)
        return self.summary

    def dismiss_summary(self) -> None:
        self.summary = None

    # ── Session ──────────────────────────────────────────────────────────────

    def sign_out(self) -> None:
        """Forget all local state (authentication itself lives elsewhere)."""
        self.tasks = []
        self.categories = []
        self.active_task = None
        self.search = ""
        self.category_filter = ""
        self.summary = None
        self._emit("board_changed")


def _enum_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)
