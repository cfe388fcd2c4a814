"""
sequence/models.py

Element types that flow through merge() and the Aggregator.

Step             - a named unit of external work (equality by name)
Callback         - terminal element invoked once a flushed sequence completes
FunctionCallback - wraps one zero-argument callable supplied by a caller
CallbackInvoker  - synthetic terminal element produced by merge(); calls every
                   collected callable once, in first-seen order

Callers normally pass plain strings and callables; as_element() coerces them
and rejects anything else with InvalidElementError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Union

from .errors import InvalidElementError, MisplacedCallbackError


# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Step:
    """Opaque named step. Never created or destroyed by the scheduler itself."""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidElementError(self.name)

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------

class Callback(ABC):
    """
    Base for terminal elements.

    A callback may only be the last element of a sequence. Identity for
    de-duplication is the identity of the wrapped callables, exposed through
    callables().
    """

    __slots__ = ()

    @abstractmethod
    def callables(self) -> tuple[Callable[[], Any], ...]:
        ...

    def __call__(self) -> None:
        for fn in self.callables():
            fn()


@dataclass(frozen=True, slots=True, eq=False)
class FunctionCallback(Callback):
    fn: Callable[[], Any]

    def callables(self) -> tuple[Callable[[], Any], ...]:
        return (self.fn,)

    def __repr__(self) -> str:
        return f"FunctionCallback({getattr(self.fn, '__qualname__', self.fn)!r})"


@dataclass(frozen=True, slots=True, eq=False)
class CallbackInvoker(Callback):
    """Calls every collected callable once, in the order they were first seen."""

    fns: tuple[Callable[[], Any], ...]

    def callables(self) -> tuple[Callable[[], Any], ...]:
        return self.fns

    def __repr__(self) -> str:
        return f"CallbackInvoker(n={len(self.fns)})"


Element = Union[Step, Callback]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def as_element(value: Any) -> Element:
    """Coerce a raw value (str / callable / Step / Callback) into an Element."""
    if isinstance(value, (Step, Callback)):
        return value
    if isinstance(value, str):
        return Step(value)
    if callable(value):
        return FunctionCallback(value)
    raise InvalidElementError(value)


def as_sequence(values: Iterable[Any]) -> list[Element]:
    """
    Coerce every value and check that a callback, if any, comes last.
    A bare string is a one-step sequence, not a sequence of characters.

    Raises:
        InvalidElementError:    an element is neither a step nor a callable.
        MisplacedCallbackError: a callback is followed by another element.
    """
    elements = [as_element(v) for v in iter_sequence(values)]
    last = len(elements) - 1
    for i, element in enumerate(elements):
        if isinstance(element, Callback) and i < last:
            raise MisplacedCallbackError(i, len(elements))
    return elements


def iter_sequence(values: Iterable[Any]) -> list[Any]:
    """Materialise a sequence argument; a lone str is treated as one step."""
    if isinstance(values, str):
        return [values]
    return list(values)


def step_names(sequence: Iterable[Element]) -> list[str]:
    """Names of the steps in a sequence, ignoring any trailing callback."""
    return [e.name for e in sequence if isinstance(e, Step)]
