"""
sequence/errors.py

Error taxonomy for sequence ingestion and merging.

Every error is raised synchronously to whoever called merge() or
Aggregator.enqueue(); none of them are retried internally.
"""

from __future__ import annotations

from typing import Any


class SequenceError(ValueError):
    """Base class carrying a stable reason code."""

    code: str = "SEQUENCE_ERROR"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = f"{self.code}:{detail}" if detail else self.code
        super().__init__(message)


class OrderingConflictError(SequenceError):
    """Two sequences disagree about the relative order of a shared step."""

    code = "ORDERING_CONFLICT"

    def __init__(self, step: Any, placed: list[Any]) -> None:
        self.step = step
        self.placed = list(placed)
        super().__init__(
            f"step {step!r} would have to move backwards; "
            f"the order of elements must be compatible between sequences "
            f"(merged so far: {self.placed!r})"
        )


class MisplacedCallbackError(SequenceError):
    """A callback appeared somewhere other than the end of its sequence."""

    code = "MISPLACED_CALLBACK"

    def __init__(self, position: int, length: int) -> None:
        self.position = position
        self.length = length
        super().__init__(
            f"callbacks are only permitted as the final element "
            f"(found at index {position} of {length})"
        )


class InvalidElementError(SequenceError, TypeError):
    """An element is neither a step name nor a callable."""

    code = "INVALID_ELEMENT"

    def __init__(self, element: Any) -> None:
        self.element = element
        super().__init__(
            f"elements must be a step name or a callable, "
            f"got {type(element).__name__}: {element!r}"
        )
