"""Exceptions shared across the task board package."""


class TaskBoardError(Exception):
    """Base class for task board errors."""
    pass


class StoreError(TaskBoardError):
    """Raised when a task or category store call fails."""
    pass


class SummarizationError(TaskBoardError):
    """Raised when the prioritize endpoint cannot produce a summary."""
    pass


class ConfigError(TaskBoardError):
    """Raised when configuration is invalid or incomplete."""
    pass
