"""
sequence/merge.py

Deterministic merge of partially-ordered step sequences.

Each input sequence is walked in order while tracking a per-sequence
watermark (`last_match`) - the position in the merged output of the most
recently placed element of *that* sequence:

  - unseen step  → inserted right after the watermark, which then moves to it
  - seen step    → the watermark advances to it; if it sits *before* the
                   watermark the two sequences disagree → OrderingConflictError
  - callback     → only allowed as the final element; collected (de-duplicated)
                   and emitted as a single trailing CallbackInvoker

Example:
    merge(["clean", "build", "test"], ["build", "test", "deploy"])
    → [Step("clean"), Step("build"), Step("test"), Step("deploy")]
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from .errors import MisplacedCallbackError, OrderingConflictError
from .models import CallbackInvoker, Element, Step, as_element, iter_sequence

logger = logging.getLogger(__name__)


def merge(*sequences: Iterable[Any]) -> list[Element]:
    """
    Merge any number of sequences into one order compatible with all of them.

    Args:
        *sequences: Iterables of step names / Steps, each optionally ending
                    in a callable or Callback.

    Returns:
        The merged list of Steps, followed by one CallbackInvoker when any
        input carried a callback.

    Raises:
        OrderingConflictError:  two sequences order a shared step differently.
        MisplacedCallbackError: a callback is not the last element.
        InvalidElementError:    an element is neither a step nor a callable.
    """
    results: list[Step] = []
    fns: list[Callable[[], Any]] = []

    for sequence in sequences:
        elements = iter_sequence(sequence)
        last_match = -1
        for i, raw in enumerate(elements):
            element = as_element(raw)

            if isinstance(element, Step):
                try:
                    index = results.index(element)
                except ValueError:
                    last_match += 1
                    results.insert(last_match, element)
                    continue
                if index < last_match:
                    raise OrderingConflictError(element.name, [s.name for s in results])
                last_match = index

            else:
                # as_element() only returns Step or Callback
                if i < len(elements) - 1:
                    raise MisplacedCallbackError(i, len(elements))
                for fn in element.callables():
                    if fn not in fns:
                        fns.append(fn)

    merged: list[Element] = list(results)
    if fns:
        merged.append(CallbackInvoker(tuple(fns)))

    logger.debug(
        "Merged %d sequence(s) → %d step(s), %d callback(s)",
        len(sequences),
        len(results),
        len(fns),
    )
    return merged
