"""
tests/test_runner.py

Tests for the TaskRunner executor and executor plugin resolution.
Verifies ordering, error isolation, run serialisation and callback release.
"""

from __future__ import annotations

import asyncio

import pytest

from runwindow.runner import (
    ExecutorResolutionError,
    TaskRunner,
    UnknownTaskError,
    resolve_executor,
)
from runwindow.sequence import merge


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def recording_runner(*names: str) -> tuple[TaskRunner, list[str]]:
    order: list[str] = []
    runner = TaskRunner()
    for name in names:
        runner.add(name, lambda name=name: order.append(name))
    return runner, order


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestTaskRegistry:

    def test_add_and_contains(self):
        runner, _ = recording_runner("build")
        assert "build" in runner
        assert "deploy" not in runner
        assert runner.tasks == ["build"]

    def test_decorator_uses_function_name(self):
        runner = TaskRunner()

        @runner.task()
        def lint():
            pass

        @runner.task("unit-tests")
        def run_tests():
            pass

        assert runner.tasks == ["lint", "unit-tests"]

    def test_constructor_mapping(self):
        runner = TaskRunner({"a": lambda: None, "b": lambda: None})
        assert runner.tasks == ["a", "b"]

    @pytest.mark.parametrize("name", ["", None, 3])
    def test_invalid_name(self, name):
        with pytest.raises(ValueError):
            TaskRunner().add(name, lambda: None)

    def test_non_callable_task(self):
        with pytest.raises(TypeError):
            TaskRunner().add("a", "not callable")


# ---------------------------------------------------------------------------
# Running sequences
# ---------------------------------------------------------------------------

class TestTaskRunnerRun:

    @pytest.mark.asyncio
    async def test_runs_in_order(self):
        runner, order = recording_runner("clean", "build", "test")
        ok = await runner.run(["clean", "build", "test"])
        assert ok is True
        assert order == ["clean", "build", "test"]
        assert runner.stats["completed"] == 1
        assert runner.stats["steps_run"] == 3

    @pytest.mark.asyncio
    async def test_async_tasks_awaited(self):
        order = []
        runner = TaskRunner()

        @runner.task()
        async def slow():
            await asyncio.sleep(0.01)
            order.append("slow")

        runner.add("fast", lambda: order.append("fast"))
        await runner.run(["slow", "fast"])
        assert order == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_failure_aborts_but_releases_callback(self):
        order = []
        released = []
        runner = TaskRunner()
        runner.add("a", lambda: order.append("a"))
        runner.add("b", lambda: 1 / 0)
        runner.add("c", lambda: order.append("c"))

        ok = await runner.run(merge(["a", "b", "c", lambda: released.append(True)]))
        assert ok is False
        assert order == ["a"]
        assert released == [True]
        assert runner.stats["failed"] == 1
        assert runner.stats["completed"] == 0

    @pytest.mark.asyncio
    async def test_callback_invoker_called_once_each(self):
        runner, _ = recording_runner("a")
        calls = []
        sequence = merge(["a", lambda: calls.append(1)], ["a", lambda: calls.append(2)])
        await runner.run(sequence)
        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_callback_error_isolated(self):
        runner, _ = recording_runner("a")
        calls = []

        def bad():
            raise RuntimeError("listener gone")

        sequence = merge(["a", bad], ["a", lambda: calls.append("next")])
        assert await runner.run(sequence) is True
        assert calls == ["next"]
        assert runner.stats["callback_errors"] == 1

    @pytest.mark.asyncio
    async def test_runs_are_serialised(self):
        events = []
        runner = TaskRunner()

        async def job(label):
            events.append(f"{label}:start")
            await asyncio.sleep(0.01)
            events.append(f"{label}:end")

        runner.add("one", lambda: job("one"))
        runner.add("two", lambda: job("two"))

        first = runner.execute(["one"])
        second = runner.execute(["two"])
        await asyncio.gather(first, second)
        assert events == ["one:start", "one:end", "two:start", "two:end"]


# ---------------------------------------------------------------------------
# execute()
# ---------------------------------------------------------------------------

class TestTaskRunnerExecute:

    @pytest.mark.asyncio
    async def test_execute_returns_task(self):
        runner, order = recording_runner("a", "b")
        task = runner(["a", "b"])
        assert isinstance(task, asyncio.Task)
        assert order == []          # fire-and-forget: nothing ran yet
        assert await task is True
        assert order == ["a", "b"]

    def test_execute_without_loop_runs_to_completion(self):
        runner, order = recording_runner("a")
        assert runner.execute(["a"]) is True
        assert order == ["a"]

    def test_unknown_task_rejected_up_front(self):
        runner, order = recording_runner("a")
        with pytest.raises(UnknownTaskError) as info:
            runner.execute(["a", "missing", "other"])
        assert info.value.names == ["missing", "other"]
        assert info.value.code == "UNKNOWN_TASK"
        assert order == []

    def test_unknown_task_still_releases_callback(self):
        runner, order = recording_runner("build")
        released = []
        with pytest.raises(UnknownTaskError):
            runner.execute(merge(["build", "typo", lambda: released.append(True)]))
        assert released == [True]
        assert order == []

    @pytest.mark.asyncio
    async def test_unknown_task_in_run_releases_callback(self):
        runner, _ = recording_runner("build")
        released = []
        with pytest.raises(UnknownTaskError):
            await runner.run(merge(["typo", lambda: released.append(True)]))
        assert released == [True]
        assert runner.stats["runs"] == 0


# ---------------------------------------------------------------------------
# resolve_executor()
# ---------------------------------------------------------------------------

class TestResolveExecutor:

    def test_empty_path_gives_task_runner(self):
        assert isinstance(resolve_executor(""), TaskRunner)
        assert isinstance(resolve_executor(None), TaskRunner)

    def test_colon_path_instantiates_class(self):
        assert isinstance(resolve_executor("runwindow.runner.runner:TaskRunner"), TaskRunner)

    def test_dotted_path(self):
        assert isinstance(resolve_executor("runwindow.runner.TaskRunner"), TaskRunner)

    def test_function_returned_as_is(self):
        assert resolve_executor("runwindow.sequence.merge:merge") is merge

    @pytest.mark.parametrize("path", [
        "nocolon",
        "runwindow_missing_module:thing",
        "runwindow.config:missing_attribute",
        "runwindow.config:DEFAULT_WINDOW_MILLIS",
    ])
    def test_bad_paths(self, path):
        with pytest.raises(ExecutorResolutionError):
            resolve_executor(path)
