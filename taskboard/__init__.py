# Task board: kanban tracking with ordered columns and optimistic drag updates
#
# Components:
#   schema.py      - Data model (Task, Category, TaskStatus, TaskPriority, DropTarget)
#   store.py       - SQLite persistence layer (TaskStore, CategoryStore)
#   remote.py      - HTTP store client for a running board_server
#   ordering.py    - Ordering engine: per-status positions, reorder and move
#   controller.py  - Board controller: drag protocol, reconcile, filters
#   celebration.py - One-shot timed "task done" flag
#   summarizer.py  - Client for the prioritize endpoint
#   prioritizer.py - LLM prompt/call behind the prioritize endpoint
#   dates.py       - Due date display helpers
#   config.py      - YAML + environment configuration
