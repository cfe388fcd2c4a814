"""
runwindow

Coalesces rapidly-triggered, ordered task sequences over a sliding window
and runs the merged sequence at most once per window.

    from runwindow import Aggregator, TaskRunner

    runner = TaskRunner({"build": build, "test": test})
    agg = Aggregator(executor=runner, window_millis=300)
    on_change = agg.get_handler("build", "test")   # handler(payload, done)
"""

from .aggregation import Aggregator, AggregatorState, LoopScheduler, ManualScheduler
from .config import DEFAULT_WINDOW_MILLIS, Settings, settings
from .runner import ExecutorResolutionError, TaskRunner, UnknownTaskError, resolve_executor
from .sequence import (
    Callback,
    CallbackInvoker,
    InvalidElementError,
    MisplacedCallbackError,
    OrderingConflictError,
    SequenceError,
    Step,
    merge,
)

__all__ = [
    "Aggregator",
    "AggregatorState",
    "LoopScheduler",
    "ManualScheduler",
    "TaskRunner",
    "resolve_executor",
    "merge",
    "Step",
    "Callback",
    "CallbackInvoker",
    "Settings",
    "settings",
    "DEFAULT_WINDOW_MILLIS",
    "SequenceError",
    "OrderingConflictError",
    "MisplacedCallbackError",
    "InvalidElementError",
    "UnknownTaskError",
    "ExecutorResolutionError",
]
