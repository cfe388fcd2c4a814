"""
runner/runner.py

TaskRunner - default executor that runs named tasks strictly in order.

Changes vs a plain loop over callables:
  1. Unknown task names are rejected up-front (UnknownTaskError), before
     anything is scheduled; the trailing callback is still released
  2. Runs are serialised with an asyncio.Lock - two merged sequences never
     execute at the same time
  3. The first failing task aborts the rest of its sequence; the trailing
     callback is still invoked so event sources are always released
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Iterable

from ..sequence import Callback, Element, Step, as_sequence, step_names
from .errors import UnknownTaskError

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Any]

_SLOW_TASK_MS = 1_000.0


class TaskRunner:
    """
    Registry of named tasks plus an ordered executor for merged sequences.

    Tasks are zero-argument callables; coroutine functions (or any callable
    returning an awaitable) are awaited. Synchronous tasks run inline on the
    event loop.

    Usage:
        runner = TaskRunner()

        @runner.task()
        async def build():
            ...

        aggregator = Aggregator(executor=runner)
    """

    def __init__(self, tasks: dict[str, TaskFn] | None = None) -> None:
        self._tasks: dict[str, TaskFn] = {}
        for name, fn in (tasks or {}).items():
            self.add(name, fn)
        self._lock = asyncio.Lock()
        self._background: set[asyncio.Task] = set()

        self.stats: dict[str, int] = {
            "runs": 0,
            "completed": 0,
            "failed": 0,
            "steps_run": 0,
            "callback_errors": 0,
        }

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add(self, name: str, fn: TaskFn) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"task name must be a non-empty string, got {name!r}")
        if not callable(fn):
            raise TypeError(f"task {name!r} must be callable, got {type(fn).__name__}")
        if name in self._tasks:
            logger.debug("Replacing task %r", name)
        self._tasks[name] = fn

    def task(self, name: str | None = None) -> Callable[[TaskFn], TaskFn]:
        """Decorator form of add(); the function name is used when `name` is None."""
        def decorator(fn: TaskFn) -> TaskFn:
            self.add(name or fn.__name__, fn)
            return fn
        return decorator

    @property
    def tasks(self) -> list[str]:
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def validate(self, sequence: Iterable[Any]) -> list[Element]:
        elements = as_sequence(sequence)
        missing = [n for n in step_names(elements) if n not in self._tasks]
        if missing:
            raise UnknownTaskError(missing)
        return elements

    def _prepare(self, sequence: Iterable[Any]) -> list[Element]:
        """validate(), releasing the trailing callback if the sequence is rejected."""
        elements = as_sequence(sequence)
        try:
            return self.validate(elements)
        except UnknownTaskError:
            if elements and isinstance(elements[-1], Callback):
                self._invoke(elements[-1])
            raise

    def execute(self, sequence: Iterable[Any]) -> Any:
        """
        Fire-and-forget execution of a merged sequence.

        Inside a running event loop the run is scheduled as a task and that
        task is returned. Without one the sequence is run to completion
        with asyncio.run() and its boolean result returned.
        """
        elements = self._prepare(sequence)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.run(elements))

        task = loop.create_task(self.run(elements), name=f"runwindow:{'+'.join(step_names(elements))}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    __call__ = execute

    async def run(self, sequence: Iterable[Any]) -> bool:
        """
        Run every step in order, then the trailing callback.

        Returns:
            True if every step succeeded, False if one raised.
        """
        elements = self._prepare(sequence)
        steps = [e for e in elements if isinstance(e, Step)]
        callback = elements[-1] if elements and isinstance(elements[-1], Callback) else None

        async with self._lock:
            self.stats["runs"] += 1
            ok = True
            try:
                for step in steps:
                    ok = await self._run_step(step)
                    if not ok:
                        self.stats["failed"] += 1
                        break
                else:
                    self.stats["completed"] += 1
            finally:
                if callback is not None:
                    self._invoke(callback)
            return ok

    async def _run_step(self, step: Step) -> bool:
        logger.info("Starting %r", step.name)
        t0 = time.monotonic()
        try:
            result = self._tasks[step.name]()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.exception("Task %r failed - aborting remaining steps: %s", step.name, exc)
            return False
        elapsed_ms = (time.monotonic() - t0) * 1000
        self.stats["steps_run"] += 1
        if elapsed_ms > _SLOW_TASK_MS:
            logger.warning("Task %r took %.1fms", step.name, elapsed_ms)
        else:
            logger.info("Finished %r after %.1fms", step.name, elapsed_ms)
        return True

    def _invoke(self, callback: Callback) -> None:
        for fn in callback.callables():
            try:
                fn()
            except Exception as exc:
                self.stats["callback_errors"] += 1
                logger.exception("Completion callback %r raised: %s", fn, exc)

    def __repr__(self) -> str:
        return f"<TaskRunner tasks={self.tasks}>"
