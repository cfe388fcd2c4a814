"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .aggregator import Aggregator, AggregatorState
from .scheduler import LoopScheduler, ManualScheduler, ManualTimer, Scheduler, TimerHandle

__all__ = [
    "Aggregator",
    "AggregatorState",
    "Scheduler",
    "TimerHandle",
    "LoopScheduler",
    "ManualScheduler",
    "ManualTimer",
]
