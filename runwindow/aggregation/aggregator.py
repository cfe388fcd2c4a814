"""
aggregation/aggregator.py

Aggregator - debounces repeatedly-triggered step sequences into one run.

Every enqueue() merges the new sequence into the pending queue and restarts
the aggregation window; when the window elapses without further enqueues the
merged queue is flushed through the executor exactly once.

Scheduling:
  - Exactly one live timer per Aggregator; it is always cancelled before a
    new one is armed, so each enqueue restarts the *full* window
  - Manual flush() cancels the timer too; a timer that still fires finds an
    empty queue and does nothing
  - The executor is fire-and-forget - flush() never awaits it

State machine:
    IDLE ──enqueue──▶ PENDING ──flush (timer or manual)──▶ IDLE
                      PENDING ──enqueue──▶ PENDING (window restarted)

Stats dict:
    enqueued      - successful enqueue() calls
    merge_errors  - enqueue() calls rejected by merge()
    flushes       - flushes that found a non-empty queue
    executions    - sequences handed to the executor
    flush_errors  - flushes where post_process or the executor raised
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable

from ..config import Settings, coerce_window_millis, settings
from ..runner import resolve_executor
from ..sequence import (
    Callback,
    Element,
    MisplacedCallbackError,
    SequenceError,
    as_sequence,
    merge,
    step_names,
)
from .scheduler import LoopScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Executor = Callable[[list[Element]], Any]
PostProcess = Callable[..., "Iterable[Any] | None"]
Handler = Callable[[Any, "Callable[[], Any] | None"], None]


class AggregatorState(str, Enum):
    IDLE    = "IDLE"
    PENDING = "PENDING"


class Aggregator:
    """
    Coalesces sequences enqueued within one window into a single merged run.

    Args:
        executor:      Called with the final merged sequence. None resolves
                       settings.EXECUTOR (a TaskRunner by default).
        window_millis: Debounce window. None uses settings.WINDOW_MILLIS;
                       non-numeric or non-positive values fall back to 500 ms.
        post_process:  Optional hook called as post_process(*queue) right
                       before execution. A non-empty return value replaces
                       the queue; None or empty runs the queue unchanged.
        scheduler:     Timer source; defaults to the running asyncio loop.
                       With the default, enqueue() must be called from
                       inside that loop; synchronous callers should pass
                       ManualScheduler or LoopScheduler(loop=...).
    """

    def __init__(
        self,
        executor: Executor | None = None,
        window_millis: Any = None,
        post_process: PostProcess | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        if window_millis is None:
            window_millis = settings.WINDOW_MILLIS
        self._window_millis = coerce_window_millis(window_millis)

        if post_process is not None and not callable(post_process):
            logger.warning("Ignoring non-callable post_process %r", post_process)
            post_process = None
        self._post_process = post_process

        self._executor = executor if executor is not None else resolve_executor(settings.EXECUTOR)
        self._scheduler = scheduler if scheduler is not None else LoopScheduler()

        self._queue: list[Element] = []
        self._timer: TimerHandle | None = None

        self.stats: dict[str, int] = {
            "enqueued": 0,
            "merge_errors": 0,
            "flushes": 0,
            "executions": 0,
            "flush_errors": 0,
        }
        logger.debug(
            "Aggregator initialised - window=%.0fms executor=%r",
            self._window_millis,
            self._executor,
        )

    @classmethod
    def from_settings(cls, config: Settings, **overrides: Any) -> "Aggregator":
        """Build an Aggregator from a Settings instance; keyword overrides win."""
        if overrides.get("window_millis") is None:
            overrides["window_millis"] = config.WINDOW_MILLIS
        if overrides.get("executor") is None:
            overrides["executor"] = resolve_executor(config.EXECUTOR)
        return cls(**overrides)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, *elements: Any) -> list[Element]:
        """
        Merge `elements` (one sequence) into the pending queue and restart the window.

        The merged result is computed before anything is committed, so a
        rejected sequence leaves both queue and timer untouched.

        Returns:
            A copy of the pending queue after the merge.

        Raises:
            OrderingConflictError, MisplacedCallbackError, InvalidElementError
        """
        try:
            merged = merge(self._queue, elements)
        except SequenceError as exc:
            self.stats["merge_errors"] += 1
            logger.warning("Rejected sequence %r: %s", elements, exc)
            raise

        timer = (
            self._scheduler.call_later(self._window_millis / 1000.0, self._on_timer)
            if merged
            else None
        )
        self._cancel_timer()
        self._timer = timer
        self._queue = merged
        self.stats["enqueued"] += 1

        logger.debug(
            "Enqueued %d element(s) - queue=%s pending=%s",
            len(elements),
            step_names(merged),
            timer is not None,
        )
        return list(merged)

    def flush(self) -> None:
        """
        Drain the queue now and hand it to the executor.

        A no-op on an empty queue. The queue is reset even if post_process
        or the executor raises; their errors propagate to the caller.
        """
        self._cancel_timer()
        queue, self._queue = self._queue, []
        if not queue:
            logger.debug("flush() on empty queue - nothing to run")
            return

        self.stats["flushes"] += 1
        try:
            sequence = self._apply_post_process(queue)
            if sequence:
                logger.info("Flushing %d step(s): %s", len(step_names(sequence)), step_names(sequence))
                self._executor(sequence)
                self.stats["executions"] += 1
        except Exception:
            self.stats["flush_errors"] += 1
            raise

    def get_handler(self, *sequence: Any) -> Handler:
        """
        Build an event-source handler for `sequence`.

        The returned handler(payload, done) ignores `payload` and enqueues
        `sequence` followed by `done` as its completion callback, so each call
        site keeps its own callback while sharing this aggregation window.
        """
        steps = as_sequence(sequence)
        for i, element in enumerate(steps):
            if isinstance(element, Callback):
                # `done` is always appended after the sequence
                raise MisplacedCallbackError(i, len(steps) + 1)

        def handler(payload: Any = None, done: Callable[[], Any] | None = None) -> None:
            if done is None:
                self.enqueue(*steps)
            else:
                self.enqueue(*steps, done)

        return handler

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def queue(self) -> list[Element]:
        return list(self._queue)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def state(self) -> AggregatorState:
        return AggregatorState.PENDING if self._queue else AggregatorState.IDLE

    @property
    def window_millis(self) -> float:
        return self._window_millis

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply_post_process(self, queue: list[Element]) -> list[Element]:
        if self._post_process is None:
            return queue
        filtered = self._post_process(*queue)
        if filtered is None:
            return queue
        filtered = as_sequence(filtered)
        if not filtered:
            return queue
        logger.debug("post_process replaced %s with %s", step_names(queue), step_names(filtered))
        return filtered

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        """Timer expiry - nobody is left to receive errors, so log them."""
        self._timer = None
        try:
            self.flush()
        except Exception:
            logger.exception("Scheduled flush failed")

    def __repr__(self) -> str:
        return (
            f"<Aggregator window={self._window_millis:.0f}ms "
            f"state={self.state.value} queue={step_names(self._queue)}>"
        )
