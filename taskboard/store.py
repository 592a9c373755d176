"""
Task and category storage backend (SQLite).

Provides the CRUD operations the board controller consumes. Every store is
scoped to a single owner. Failures surface as StoreError.
"""
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import List, Optional, Dict, Any

from .errors import StoreError
from .schema import Task, Category, TaskStatus, TaskPriority, DEFAULT_CATEGORIES, utc_now

logger = logging.getLogger(__name__)

# Columns callers may change through TaskStore.update()
UPDATABLE_FIELDS = ("title", "description", "status", "priority", "category_id", "due_date", "position")


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with FK enforcement and WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_position(value: Any) -> int:
    try:
        position = int(value)
    except (TypeError, ValueError):
        raise StoreError(f"Invalid position: {value!r}")
    if position < 0:
        raise StoreError(f"Invalid position: {position}")
    return position


def _strict_enum(enum_cls, value: Any):
    """Parse a status/priority value, rejecting unknown names."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise StoreError(f"Invalid {enum_cls.__name__}: {value!r}")


def init_schema(db_path: str) -> None:
    """Create tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    try:
        with _connect(db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    category_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    color TEXT NOT NULL DEFAULT '#D1D5DB',
                    icon TEXT NOT NULL DEFAULT 'tag',
                    owner_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (owner_id, name)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    task_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'todo',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    category_id TEXT,
                    due_date TEXT,
                    position INTEGER NOT NULL DEFAULT 0,
                    owner_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (category_id) REFERENCES categories(category_id)
                        ON DELETE SET NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_owner_status "
                "ON tasks(owner_id, status, position)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_categories_owner ON categories(owner_id)")
            conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Cannot initialize database {db_path}: {e}") from e


class _SQLiteStore:
    """Shared connection handling for the owner-scoped stores."""

    def __init__(self, db_path: str, owner_id: str):
        self.db_path = db_path
        self.owner_id = owner_id
        init_schema(db_path)

    def _category_row_to_category(self, row: sqlite3.Row) -> Category:
        return Category.from_dict(dict(row))


class CategoryStore(_SQLiteStore):
    """SQLite-backed store for one owner's categories."""

    def list(self) -> List[Category]:
        """All categories of the owner, ordered by name."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT * FROM categories WHERE owner_id = ? ORDER BY name ASC",
                    (self.owner_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Error listing categories: {e}") from e
        return [self._category_row_to_category(row) for row in rows]

    def get(self, category_id: str) -> Optional[Category]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM categories WHERE category_id = ? AND owner_id = ?",
                    (category_id, self.owner_id)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Error retrieving category {category_id}: {e}") from e
        return self._category_row_to_category(row) if row else None

    def create(self, name: str, color: str = "#D1D5DB", icon: str = "tag") -> Category:
        category = Category(
            category_id=_new_id(),
            name=name,
            color=color,
            icon=icon,
            owner_id=self.owner_id,
        )
        try:
            with _connect(self.db_path) as conn:
                self._insert(conn, category)
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Category '{name}' already exists") from e
        except sqlite3.Error as e:
            raise StoreError(f"Error creating category {name}: {e}") from e
        return category

    def _insert(self, conn: sqlite3.Connection, category: Category) -> None:
        data = category.to_dict()
        conn.execute(
            "INSERT INTO categories (category_id, name, color, icon, owner_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (data["category_id"], data["name"], data["color"], data["icon"],
             data["owner_id"], data["created_at"]),
        )

    def ensure_defaults(self, owner_id: Optional[str] = None) -> None:
        """Create the default category set unless the owner has any category."""
        owner_id = owner_id or self.owner_id
        try:
            with _connect(self.db_path) as conn:
                existing = conn.execute(
                    "SELECT category_id FROM categories WHERE owner_id = ? LIMIT 1",
                    (owner_id,)
                ).fetchone()
                if existing:
                    return
                for name, color, icon in DEFAULT_CATEGORIES:
                    self._insert(conn, Category(
                        category_id=_new_id(), name=name, color=color,
                        icon=icon, owner_id=owner_id,
                    ))
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Error creating default categories for {owner_id}: {e}") from e
        logger.info(f"Created {len(DEFAULT_CATEGORIES)} default categories for {owner_id}")

    def update(self, category_id: str, fields: Dict[str, Any]) -> Category:
        allowed = {k: v for k, v in fields.items() if k in ("name", "color", "icon")}
        if allowed:
            assignments = ", ".join(f"{k} = ?" for k in allowed)
            try:
                with _connect(self.db_path) as conn:
                    conn.execute(
                        f"UPDATE categories SET {assignments} WHERE category_id = ? AND owner_id = ?",
                        (*allowed.values(), category_id, self.owner_id),
                    )
                    conn.commit()
            except sqlite3.IntegrityError as e:
                raise StoreError(f"Category '{allowed.get('name')}' already exists") from e
            except sqlite3.Error as e:
                raise StoreError(f"Error updating category {category_id}: {e}") from e
        category = self.get(category_id)
        if category is None:
            raise StoreError(f"Category {category_id} not found")
        return category

    def delete(self, category_id: str) -> None:
        """Delete a category. Tasks keep existing with no category."""
        try:
            with _connect(self.db_path) as conn:
                conn.execute(
                    "DELETE FROM categories WHERE category_id = ? AND owner_id = ?",
                    (category_id, self.owner_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Error deleting category {category_id}: {e}") from e


class TaskStore(_SQLiteStore):
    """SQLite-backed store for one owner's tasks."""

    _SELECT = """
        SELECT t.*,
               c.name AS c_name, c.color AS c_color, c.icon AS c_icon,
               c.created_at AS c_created_at
        FROM tasks t
        LEFT JOIN categories c
               ON c.category_id = t.category_id AND c.owner_id = t.owner_id
    """

    def list(self) -> List[Task]:
        """All tasks of the owner, ordered by position ascending."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute(
                    self._SELECT + " WHERE t.owner_id = ? ORDER BY t.position ASC, t.created_at ASC",
                    (self.owner_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Error listing tasks: {e}") from e
        return [self._row_to_task(row) for row in rows]

    def get(self, task_id: str) -> Optional[Task]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    self._SELECT + " WHERE t.task_id = ? AND t.owner_id = ?",
                    (task_id, self.owner_id)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Error retrieving task {task_id}: {e}") from e
        return self._row_to_task(row) if row else None

    def create(self, task: Task) -> Task:
        """Insert a task. A missing id is generated; owner is always this store's."""
        if not task.title or not task.title.strip():
            raise StoreError("Task title is required")
        task.position = _check_position(task.position)
        now = utc_now()
        task.task_id = task.task_id or _new_id()
        task.owner_id = self.owner_id
        task.created_at = now
        task.updated_at = now
        data = task.to_dict()
        try:
            with _connect(self.db_path) as conn:
                self._check_category(conn, data["category_id"])
                conn.execute("""
                    INSERT INTO tasks
                    (task_id, title, description, status, priority, category_id,
                     due_date, position, owner_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    data["task_id"],
                    data["title"],
                    data["description"],
                    data["status"],
                    data["priority"],
                    data["category_id"],
                    data["due_date"],
                    data["position"],
                    data["owner_id"],
                    data["created_at"],
                    data["updated_at"],
                ))
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Error creating task {task.title!r}: {e}") from e
        return self.get(task.task_id)

    def update(self, task_id: str, fields: Dict[str, Any]) -> Task:
        """Patch the given fields and bump updated_at."""
        values = self._normalize_fields(fields)
        if "title" in values and not str(values["title"]).strip():
            raise StoreError("Task title is required")
        values["updated_at"] = utc_now().isoformat()
        assignments = ", ".join(f"{k} = ?" for k in values)
        try:
            with _connect(self.db_path) as conn:
                if "category_id" in values:
                    self._check_category(conn, values["category_id"])
                cursor = conn.execute(
                    f"UPDATE tasks SET {assignments} WHERE task_id = ? AND owner_id = ?",
                    (*values.values(), task_id, self.owner_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Error updating task {task_id}: {e}") from e
        if cursor.rowcount == 0:
            raise StoreError(f"Task {task_id} not found")
        return self.get(task_id)

    def update_status_and_position(self, task_id: str, status: TaskStatus, position: int) -> None:
        self.update(task_id, {"status": status, "position": position})

    def delete(self, task_id: str) -> None:
        try:
            with _connect(self.db_path) as conn:
                conn.execute(
                    "DELETE FROM tasks WHERE task_id = ? AND owner_id = ?",
                    (task_id, self.owner_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Error deleting task {task_id}: {e}") from e

    def _check_category(self, conn: sqlite3.Connection, category_id: Optional[str]) -> None:
        """A set category must exist and belong to the same owner."""
        if not category_id:
            return
        row = conn.execute(
            "SELECT 1 FROM categories WHERE category_id = ? AND owner_id = ?",
            (category_id, self.owner_id)
        ).fetchone()
        if not row:
            raise StoreError(f"Unknown category {category_id}")

    @staticmethod
    def _normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Keep updatable columns and convert enums/datetimes to column values."""
        values = {}
        for key in UPDATABLE_FIELDS:
            if key not in fields:
                continue
            value = fields[key]
            if hasattr(value, "value"):           # TaskStatus / TaskPriority
                value = value.value
            elif hasattr(value, "isoformat"):     # due_date
                value = value.isoformat()
            if key == "category_id" and not value:
                value = None
            if key == "position":
                value = _check_position(value)
            elif key == "status":
                value = _strict_enum(TaskStatus, value).value
            elif key == "priority":
                value = _strict_enum(TaskPriority, value).value
            values[key] = value
        return values

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        """Convert a joined database row to a Task with its category."""
        data = dict(row)
        if data.get("c_name") is not None:
            data["category"] = {
                "category_id": data["category_id"],
                "name": data["c_name"],
                "color": data["c_color"],
                "icon": data["c_icon"],
                "owner_id": data["owner_id"],
                "created_at": data["c_created_at"],
            }
        else:
            data["category"] = None
        return Task.from_dict(data)
