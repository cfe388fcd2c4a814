"""runner/__init__.py"""
from .errors import ExecutorResolutionError, RunnerError, UnknownTaskError
from .plugin import resolve_executor
from .runner import TaskRunner

__all__ = [
    "TaskRunner",
    "resolve_executor",
    "RunnerError",
    "UnknownTaskError",
    "ExecutorResolutionError",
]
