"""
Task board schema.

Board columns:
  To Do → In Progress → Done

A task lives in exactly one status column; its position is its zero-based
rank inside that column.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Union


class TaskStatus(Enum):
    """Board columns, in display order."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "TaskStatus":
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            return cls.TODO

    @property
    def title(self) -> str:
        return COLUMN_TITLES[self]


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_str(cls, value: str) -> "TaskPriority":
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            return cls.MEDIUM


STATUSES: List[TaskStatus] = [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE]

COLUMN_TITLES: Dict[TaskStatus, str] = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}

# (name, color, icon) created for every new owner
DEFAULT_CATEGORIES = [
    ("Work", "#3B82F6", "briefcase"),
    ("Personal", "#10B981", "user"),
    ("Health", "#EF4444", "heart"),
    ("Learning", "#F59E0B", "book-open"),
    ("Shopping", "#a13c87", "shopping-cart"),
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, datetime) else value


@dataclass
class Category:
    """Display label a task can be tagged with."""
    category_id: str
    name: str
    color: str = "#D1D5DB"
    icon: str = "tag"
    owner_id: str = ""
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "owner_id": self.owner_id,
            "created_at": _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            category_id=data.get("category_id", ""),
            name=data.get("name", ""),
            color=data.get("color") or "#D1D5DB",
            icon=data.get("icon") or "tag",
            owner_id=data.get("owner_id", ""),
            created_at=_parse_datetime(data.get("created_at")) or utc_now(),
        )


@dataclass
class Task:
    """One card on the board."""

    # Identifiers
    task_id: str

    # Content
    title: str
    description: str = ""

    # Board placement
    status: TaskStatus = TaskStatus.TODO
    position: int = 0

    # Classification & scheduling
    priority: TaskPriority = TaskPriority.MEDIUM
    category_id: Optional[str] = None
    category: Optional[Category] = None   # joined on read, None when unset or orphaned
    due_date: Optional[datetime] = None

    # Metadata
    owner_id: str = ""
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def matches(self, search: str) -> bool:
        """Case-insensitive substring match against title or description."""
        needle = search.lower()
        return needle in self.title.lower() or needle in (self.description or "").lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "position": self.position,
            "priority": self.priority.value,
            "category_id": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "due_date": _format_datetime(self.due_date),
            "owner_id": self.owner_id,
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        category = data.get("category")
        return cls(
            task_id=data.get("task_id", ""),
            title=data.get("title", ""),
            description=data.get("description") or "",
            status=TaskStatus.from_str(data.get("status", "todo")),
            position=int(data.get("position") or 0),
            priority=TaskPriority.from_str(data.get("priority", "medium")),
            category_id=data.get("category_id") or None,
            category=Category.from_dict(category) if isinstance(category, dict) else None,
            due_date=_parse_datetime(data.get("due_date")),
            owner_id=data.get("owner_id", ""),
            created_at=_parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=_parse_datetime(data.get("updated_at")) or utc_now(),
        )


# ── Drop targets ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ColumnTarget:
    """Released over a column's empty area."""
    status: TaskStatus


@dataclass(frozen=True)
class TaskTarget:
    """Released over another card (or the dragged card itself)."""
    task_id: str


DropTarget = Union[ColumnTarget, TaskTarget]
