"""qnopt - quasi-Newton minimization (BFGS, L-BFGS, L-BFGS-B) in NumPy.

Example
-------
>>> import numpy as np
>>> from qnopt import BFGS, FunctionObjective, Minimizer
>>> obj = FunctionObjective(lambda x: float((x[0] - 1) ** 2 + (x[1] - 2) ** 2), dim=2)
>>> status = Minimizer(BFGS()).minimize(obj, np.array([0.0, 0.0]))
>>> np.allclose(status.x, [1.0, 2.0], atol=1e-6)
True
"""

__version__ = "0.1.0"

from .core import (
    AbortSignal,
    Algorithm,
    AtomicAbortSignal,
    Bound,
    BoundedObjective,
    Bounds,
    CtrlCAbortSignal,
    FunctionObjective,
    Minimizer,
    NopAbortSignal,
    Objective,
    Status,
    StopDecision,
    Terminator,
    TerminatorConfig,
    Verdict,
)
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled
from .logging import configure_logging, get_logger, set_log_level
from .optimize import (
    BFGS,
    LBFGS,
    LBFGSB,
    BFGSConfig,
    LBFGSBConfig,
    LBFGSConfig,
    LineSearchConfig,
    LineSearchResult,
    StrongWolfeLineSearch,
)
from .summary import print_status_summary, status_summary

__all__ = [
    "__version__",
    "AbortSignal",
    "Algorithm",
    "AtomicAbortSignal",
    "Bound",
    "BoundedObjective",
    "Bounds",
    "CtrlCAbortSignal",
    "FunctionObjective",
    "Minimizer",
    "NopAbortSignal",
    "Objective",
    "Status",
    "StopDecision",
    "Terminator",
    "TerminatorConfig",
    "Verdict",
    "BFGS",
    "BFGSConfig",
    "LBFGS",
    "LBFGSConfig",
    "LBFGSB",
    "LBFGSBConfig",
    "LineSearchConfig",
    "LineSearchResult",
    "StrongWolfeLineSearch",
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
    "configure_logging",
    "get_logger",
    "set_log_level",
    "print_status_summary",
    "status_summary",
]
