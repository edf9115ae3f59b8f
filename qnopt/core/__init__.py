"""Core abstractions: objectives, bounds, run status, termination and the driver."""

from .abort_signal import AbortSignal, AtomicAbortSignal, CtrlCAbortSignal, NopAbortSignal
from .bounds import Bound, Bounds, as_bounds
from .minimizer import Algorithm, Minimizer, validate_problem
from .objective import BoundedObjective, FunctionObjective, Objective
from .status import Status, Verdict
from .terminator import StopDecision, Terminator, TerminatorConfig

__all__ = [
    "AbortSignal",
    "AtomicAbortSignal",
    "CtrlCAbortSignal",
    "NopAbortSignal",
    "Bound",
    "Bounds",
    "as_bounds",
    "Algorithm",
    "Minimizer",
    "validate_problem",
    "Objective",
    "FunctionObjective",
    "BoundedObjective",
    "Status",
    "Verdict",
    "StopDecision",
    "Terminator",
    "TerminatorConfig",
]
