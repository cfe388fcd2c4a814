"""
runner/plugin.py

Resolves the executor plugin named in settings at startup.

Accepted forms:
    ""                          → a fresh TaskRunner
    "package.module:attribute"  → attribute looked up on the imported module
    "package.module.attribute"  → same, split on the last dot

Classes are instantiated with no arguments; the resolved object must be
callable with a single merged sequence.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Any, Callable

from .errors import ExecutorResolutionError
from .runner import TaskRunner

logger = logging.getLogger(__name__)


def resolve_executor(path: str | None) -> Callable[[list[Any]], Any]:
    path = (path or "").strip()
    if not path:
        return TaskRunner()

    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ExecutorResolutionError(f"expected 'module:attribute', got {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ExecutorResolutionError(f"cannot import {module_name!r}: {exc}") from exc

    try:
        obj = getattr(module, attr)
    except AttributeError as exc:
        raise ExecutorResolutionError(f"{module_name!r} has no attribute {attr!r}") from exc

    if inspect.isclass(obj):
        try:
            obj = obj()
        except Exception as exc:
            raise ExecutorResolutionError(f"failed to instantiate {path!r}: {exc}") from exc

    if not callable(obj):
        raise ExecutorResolutionError(f"{path!r} resolved to non-callable {type(obj).__name__}")

    logger.info("Resolved executor %r → %r", path, obj)
    return obj
