"""Quasi-Newton solvers and their line search.

Example
-------
>>> import numpy as np
>>> from qnopt import FunctionObjective, Minimizer
>>> from qnopt.functions import rosenbrock, rosenbrock_grad
>>> from qnopt.optimize import LBFGS, LBFGSConfig
>>> obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
>>> status = Minimizer(LBFGS(LBFGSConfig(memory=5))).minimize(obj, [-1.2, 1.0])
>>> np.allclose(status.x, [1.0, 1.0], atol=1e-4)
True
"""

from .bfgs import BFGS, BFGSConfig
from .history import SecantHistory
from .lbfgs import LBFGS, LBFGSConfig
from .lbfgsb import LBFGSB, LBFGSBConfig
from .line_search import LineSearchConfig, LineSearchResult, StrongWolfeLineSearch
from .quasi_newton import QuasiNewtonAlgorithm, QuasiNewtonConfig, curvature_ok

__all__ = [
    "BFGS",
    "BFGSConfig",
    "LBFGS",
    "LBFGSConfig",
    "LBFGSB",
    "LBFGSBConfig",
    "LineSearchConfig",
    "LineSearchResult",
    "StrongWolfeLineSearch",
    "QuasiNewtonAlgorithm",
    "QuasiNewtonConfig",
    "SecantHistory",
    "curvature_ok",
]
