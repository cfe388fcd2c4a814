"""
sequence/__init__.py

Public API for the sequence sub-package.
"""

from .errors import (
    InvalidElementError,
    MisplacedCallbackError,
    OrderingConflictError,
    SequenceError,
)
from .merge import merge
from .models import (
    Callback,
    CallbackInvoker,
    Element,
    FunctionCallback,
    Step,
    as_element,
    as_sequence,
    step_names,
)

__all__ = [
    "merge",
    "Step",
    "Callback",
    "FunctionCallback",
    "CallbackInvoker",
    "Element",
    "as_element",
    "as_sequence",
    "step_names",
    "SequenceError",
    "OrderingConflictError",
    "MisplacedCallbackError",
    "InvalidElementError",
]
