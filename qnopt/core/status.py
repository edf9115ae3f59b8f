"""Mutable record of a minimization run."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from .bounds import Bounds

Array = np.ndarray


class Verdict(Enum):
    """Outcome of a termination check."""

    CONTINUE = "continue"
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not Verdict.CONTINUE


@dataclass
class Status:
    """
    State of a run, owned by the :class:`~qnopt.core.minimizer.Minimizer`.

    A fresh Status is created by every ``initialize``. Solvers update the point
    and counters during ``step``; the minimizer writes ``verdict``,
    ``converged`` and ``message`` once the run terminates. Points are always in
    external (bounded) coordinates.

    Attributes:
        x0: Starting point.
        x: Current best point.
        fx: Objective value at ``x``.
        grad: Objective gradient at ``x`` (external coordinates).
        grad_norm: Infinity norm of the gradient in the coordinates the solver
            searches. For bounded runs this is the internal gradient, which
            vanishes at a solution lying on a bound.
        fx_previous: Objective value before the latest iteration, ``None``
            until the first iteration completes.
        hess_inv: Dense inverse-Hessian approximation (BFGS only, internal
            coordinates).
        hessian: Hessian evaluated at the final point, if computed.
        cov: Covariance estimate (inverse Hessian at the final point).
        std: Parameter uncertainties, ``sqrt(diag(cov))``.
        n_f_evals / n_g_evals / n_h_evals: Objective, gradient and Hessian
            invocations performed by the solver.
        n_iter: Completed outer iterations.
        n_skipped_updates: Secant pairs rejected by the curvature check.
        n_invalid_line_searches: Line searches that exhausted their budget.
        n_history_reboots: Times L-BFGS-B discarded its secant history.
        failure: Set by a solver when it cannot make further progress.
    """

    x0: Array
    x: Array
    fx: float
    grad: Array
    grad_norm: float
    fx_previous: Optional[float] = None
    hess_inv: Optional[Array] = None
    hessian: Optional[Array] = None
    cov: Optional[Array] = None
    std: Optional[Array] = None
    n_f_evals: int = 0
    n_g_evals: int = 0
    n_h_evals: int = 0
    n_iter: int = 0
    n_skipped_updates: int = 0
    n_invalid_line_searches: int = 0
    n_history_reboots: int = 0
    converged: bool = False
    verdict: Verdict = Verdict.CONTINUE
    message: str = ""
    failure: Optional[str] = None
    bounds: Optional[Bounds] = None
    parameter_names: Optional[list[str]] = field(default=None)

    @property
    def dim(self) -> int:
        return int(self.x.size)

    def record_step(self, x: Array, fx: float, grad: Array, grad_norm: float) -> None:
        """Accept a new point and close the iteration."""
        self.fx_previous = self.fx
        self.x = np.array(x, dtype=float)
        self.fx = float(fx)
        self.grad = np.array(grad, dtype=float)
        self.grad_norm = float(grad_norm)
        self.n_iter += 1

    def record_stall(self) -> None:
        """Close an iteration that left the point unchanged."""
        self.fx_previous = self.fx
        self.n_iter += 1

    def at_bounds(self, tol: float = 1e-8) -> Array:
        """Per-dimension flags for parameters sitting on a bound."""
        if self.bounds is None:
            return np.zeros(self.dim, dtype=bool)
        return self.bounds.at_bounds(self.x, tol)

    def snapshot(self) -> "Status":
        """Deep copy safe to hand to callers and observers."""
        return copy.deepcopy(self)


__all__ = ["Status", "Verdict"]
