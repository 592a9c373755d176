#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the task board's SQLite stores, plus the prioritize endpoint
that asks a language model to rank in-progress tasks.

Usage:
    python board_server.py
    python board_server.py --host 0.0.0.0 --port 3000 --db ./board.db

API:
    GET    /api/tasks                  → { tasks, count }   (ordered by position)
    POST   /api/tasks                  → 201 { task }
    PUT    /api/tasks/<id>             → { task }
    POST   /api/tasks/<id>/position    → { ok }   body: { status, position }
    DELETE /api/tasks/<id>             → { ok }
    GET    /api/categories             → { categories }
    POST   /api/categories             → 201 { category }
    POST   /api/categories/defaults    → { categories }
    PUT    /api/categories/<id>        → { category }
    DELETE /api/categories/<id>        → { ok }
    GET    /api/board                  → { columns, stats, categories }
    POST   /api/summarize              → { summary, taskCount }   body: { tasks }
    GET    /health

Write endpoints require an X-API-Key header matching TASKBOARD_API_SECRET.
"""

import hmac
import logging
import os
import sys
from functools import wraps
from pathlib import Path

from flask import Flask, jsonify, request

from taskboard.config import Config
from taskboard.dates import format_due_date, is_overdue, is_upcoming
from taskboard.errors import StoreError, SummarizationError
from taskboard.ordering import next_position, partition
from taskboard.prioritizer import prioritize
from taskboard.schema import Task, TaskPriority, TaskStatus, STATUSES
from taskboard.store import TaskStore, CategoryStore

app = Flask(__name__)
logger = logging.getLogger("board_server")

CONFIG = Config.load(os.environ.get("TASKBOARD_CONFIG"))

# ── Auth ─────────────────────────────────────────────────────────────────────

API_SECRET = CONFIG.api_secret


def require_api_key(f):
    """Decorator: reject requests without a valid X-API-Key header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not API_SECRET:
            return jsonify({"error": "API_SECRET not set"}), 503
        provided = request.headers.get("X-API-Key", "").strip()
        if not hmac.compare_digest(provided, API_SECRET):
            code = 401 if not provided else 403
            return jsonify({"error": "Unauthorized"}), code
        return f(*args, **kwargs)
    return decorated


# ── Stores ───────────────────────────────────────────────────────────────────

def get_db_path() -> Path:
    env = os.environ.get("TASKBOARD_DB")
    if env:
        return Path(env)
    return Path(CONFIG.db_path)


def get_owner() -> str:
    return os.environ.get("TASKBOARD_OWNER") or CONFIG.owner_id


def task_store() -> TaskStore:
    return TaskStore(str(get_db_path()), get_owner())


def category_store() -> CategoryStore:
    return CategoryStore(str(get_db_path()), get_owner())


@app.errorhandler(StoreError)
def handle_store_error(e):
    logger.error(f"Store error on {request.method} {request.path}: {e}")
    return jsonify({"error": str(e)}), 500


def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _task_input_error(data: dict, creating: bool = False):
    """Return an error message for a bad task body, or None."""
    if creating or "title" in data:
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return "title is required"
    if "status" in data and not _is_member(TaskStatus, data["status"]):
        return f"Invalid status: {data['status']!r}"
    if "priority" in data and not _is_member(TaskPriority, data["priority"]):
        return f"Invalid priority: {data['priority']!r}"
    if "position" in data:
        position = data["position"]
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            return "position must be a non-negative integer"
    return None


def _is_member(enum_cls, value) -> bool:
    return isinstance(value, str) and value.strip().lower() in {m.value for m in enum_cls}


def _board_task(task: Task) -> dict:
    """Task dict plus due date labels for card rendering."""
    data = task.to_dict()
    data["due_label"] = format_due_date(task.due_date)
    data["overdue"] = is_overdue(task.due_date)
    data["upcoming"] = is_upcoming(task.due_date)
    return data


# ── Tasks ────────────────────────────────────────────────────────────────────

@app.route("/api/tasks", methods=["GET"])
def api_tasks():
    status = request.args.get("status")
    category = request.args.get("category")
    tasks = task_store().list()
    if status:
        tasks = [t for t in tasks if t.status.value == status]
    if category:
        tasks = [t for t in tasks if t.category_id == category]
    return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)})


@app.route("/api/tasks", methods=["POST"])
@require_api_key
def api_create_task():
    data = _body()
    error = _task_input_error(data, creating=True)
    if error:
        return jsonify({"error": error}), 400

    store = task_store()
    try:
        task = Task.from_dict({**data, "title": data["title"].strip(), "task_id": ""})
    except (TypeError, ValueError) as e:
        return jsonify({"error": f"Invalid task: {e}"}), 400
    if "position" not in data:
        task.position = next_position(store.list(), task.status)
    created = store.create(task)
    logger.info(f"Created task {created.task_id} in {created.status.value}")
    return jsonify({"task": created.to_dict()}), 201


@app.route("/api/tasks/<task_id>", methods=["PUT"])
@require_api_key
def api_update_task(task_id):
    data = _body()
    store = task_store()
    current = store.get(task_id)
    if current is None:
        return jsonify({"error": "Task not found"}), 404
    error = _task_input_error(data)
    if error:
        return jsonify({"error": error}), 400

    if "status" in data:
        status = TaskStatus(data["status"].strip().lower())
        if status != current.status and "position" not in data:
            # A new column means a new slot at its end
            data = {**data, "position": next_position(store.list(), status)}
    updated = store.update(task_id, data)
    return jsonify({"task": updated.to_dict()})


@app.route("/api/tasks/<task_id>/position", methods=["POST"])
@require_api_key
def api_move_task(task_id):
    data = _body()
    status = (data.get("status") or "").strip().lower()
    try:
        target_status = TaskStatus(status)
        position = int(data.get("position"))
    except (TypeError, ValueError, AttributeError):
        return jsonify({"error": "status and a non-negative position are required"}), 400
    if position < 0:
        return jsonify({"error": "status and a non-negative position are required"}), 400

    store = task_store()
    if store.get(task_id) is None:
        return jsonify({"error": "Task not found"}), 404
    store.update_status_and_position(task_id, target_status, position)
    return jsonify({"ok": True})


@app.route("/api/tasks/<task_id>", methods=["DELETE"])
@require_api_key
def api_delete_task(task_id):
    task_store().delete(task_id)
    return jsonify({"ok": True})


# ── Categories ───────────────────────────────────────────────────────────────

@app.route("/api/categories", methods=["GET"])
def api_categories():
    return jsonify({"categories": [c.to_dict() for c in category_store().list()]})


@app.route("/api/categories", methods=["POST"])
@require_api_key
def api_create_category():
    data = _body()
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "name is required"}), 400
    category = category_store().create(
        name,
        color=data.get("color") or "#D1D5DB",
        icon=data.get("icon") or "tag",
    )
    return jsonify({"category": category.to_dict()}), 201


@app.route("/api/categories/defaults", methods=["POST"])
@require_api_key
def api_ensure_default_categories():
    store = category_store()
    store.ensure_defaults(get_owner())
    return jsonify({"categories": [c.to_dict() for c in store.list()]})


@app.route("/api/categories/<category_id>", methods=["PUT"])
@require_api_key
def api_update_category(category_id):
    store = category_store()
    if store.get(category_id) is None:
        return jsonify({"error": "Category not found"}), 404
    category = store.update(category_id, _body())
    return jsonify({"category": category.to_dict()})


@app.route("/api/categories/<category_id>", methods=["DELETE"])
@require_api_key
def api_delete_category(category_id):
    category_store().delete(category_id)
    return jsonify({"ok": True})


# ── Board ────────────────────────────────────────────────────────────────────

@app.route("/api/board")
def api_board():
    try:
        tasks = task_store().list()
        categories = category_store().list()
    except StoreError as e:
        app.logger.warning(f"api_board error: {e}")
        tasks, categories = [], []

    columns = {s.value: [_board_task(t) for t in partition(tasks, s)] for s in STATUSES}
    done = len(columns[TaskStatus.DONE.value])
    stats = {
        "total": len(tasks),
        "in_progress": len(columns[TaskStatus.IN_PROGRESS.value]),
        "done": done,
        "completion_rate": int(done * 100 / len(tasks) + 0.5) if tasks else 0,
    }
    return jsonify({
        "columns": columns,
        "titles": {s.value: s.title for s in STATUSES},
        "stats": stats,
        "categories": [c.to_dict() for c in categories],
    })


# ── Prioritize ───────────────────────────────────────────────────────────────

@app.route("/api/summarize", methods=["POST"])
@require_api_key
def api_summarize():
    data = _body()
    tasks = data.get("tasks")
    try:
        result = prioritize(
            tasks if isinstance(tasks, list) else [],
            api_key=CONFIG.openai_api_key,
            url=CONFIG.openai_url,
            model=CONFIG.openai_model,
            max_tokens=CONFIG.openai_max_tokens,
        )
    except SummarizationError as e:
        logger.error(f"Error in summarize: {e}")
        return jsonify({"error": str(e)}), 500
    return jsonify(result)


@app.route("/health")
def health():
    return jsonify({"status": "ok", "db": str(get_db_path()), "owner": get_owner()})


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    import argparse

    global CONFIG, API_SECRET

    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to the board database (overrides TASKBOARD_DB)")
    args = parser.parse_args(argv)

    if args.config:
        CONFIG = Config.load(args.config)
        API_SECRET = CONFIG.api_secret
    if args.db:
        os.environ["TASKBOARD_DB"] = args.db
    host = args.host or CONFIG.host
    port = args.port or CONFIG.port

    logging.basicConfig(
        level=getattr(logging, CONFIG.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger.info(f"Task board on http://{host}:{port} (db={get_db_path()}, owner={get_owner()})")
    if not API_SECRET:
        logger.warning("TASKBOARD_API_SECRET is not set; write endpoints will answer 503")

    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
