"""runner/errors.py"""

from __future__ import annotations


class RunnerError(RuntimeError):
    """Executor-side failure carrying a stable reason code."""

    code: str = "RUNNER_ERROR"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = f"{self.code}:{detail}" if detail else self.code
        super().__init__(message)


class UnknownTaskError(RunnerError):
    code = "UNKNOWN_TASK"

    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"task(s) not registered: {', '.join(self.names)}")


class ExecutorResolutionError(RunnerError):
    code = "EXECUTOR_RESOLUTION"
