"""Machinery shared by the BFGS family.

All quasi-Newton solvers follow the same iteration:

1. build a search direction from the current curvature model;
2. if it is not a descent direction, use steepest descent instead;
3. run a strong Wolfe line search; if it fails, retry once along steepest
   descent;
4. if that also fails, restart the curvature model (or, when there is nothing
   left to restart, record a failure);
5. on success, update the curvature model with the secant pair ``(s, y)``
   unless ``s . y <= 0``, in which case the update is skipped.

Bounded problems are searched in the internal coordinates of
:class:`~qnopt.core.bounds.Bounds`; the Status always reports external
coordinates.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from qnopt.core.bounds import Bounds
from qnopt.core.minimizer import Algorithm, BoundsInput, validate_problem
from qnopt.core.numerics import EPSILON, covariance_from_hessian
from qnopt.core.objective import BoundedObjective, Objective
from qnopt.core.status import Status
from qnopt.diagnostics import (
    assert_descent_direction,
    assert_feasible,
    assert_finite,
    is_debug_enabled,
)
from qnopt.logging import get_logger

from .line_search import LineSearchConfig, LineSearchResult, StrongWolfeLineSearch

logger = get_logger(__name__)

Array = np.ndarray


@dataclass(frozen=True)
class QuasiNewtonConfig:
    """
    Options common to every quasi-Newton solver.

    Args:
        max_iterations: Default iteration cap used when the Minimizer is not
            given an explicit Terminator.
        scale_initial_hessian: Scale the identity by ``1 / ||grad||`` on the
            first step (and by ``(s.y)/(y.y)`` before the first update) so the
            initial step is not oversized.
        skip_hessian: Do not evaluate the Hessian at the final point, leaving
            ``Status.cov`` and ``Status.std`` unset.
        line_search: Parameters of the strong Wolfe line search.
    """

    max_iterations: int = 1000
    scale_initial_hessian: bool = True
    skip_hessian: bool = False
    line_search: LineSearchConfig = field(default_factory=LineSearchConfig)

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}.")


def curvature_ok(s: Array, y: Array) -> bool:
    """True when ``s . y`` is positive beyond rounding noise."""
    ys = float(np.dot(s, y))
    if not np.isfinite(ys):
        return False
    return ys > EPSILON * float(np.linalg.norm(s)) * float(np.linalg.norm(y))


class CountingProblem:
    """
    The objective as seen by a solver: internal coordinates plus bookkeeping.

    Every call to :meth:`fun` or :meth:`grad` increments the matching counter
    of the bound Status. The external gradient of the most recent gradient
    call is cached so that reporting an accepted point costs nothing extra.
    """

    def __init__(self, objective: Objective, bounds: Optional[Bounds], status: Status) -> None:
        self.objective = objective
        self.bounds = bounds
        self.status = status
        self._view = BoundedObjective(objective, bounds) if bounds is not None else None
        self._last: Optional[tuple[Array, Array]] = None

    def to_internal(self, x: Array, interior: bool = False) -> Array:
        if self._view is None:
            return np.array(x, dtype=float)
        return self._view.to_internal(x, interior)

    def to_external(self, z: Array) -> Array:
        if self._view is None:
            return np.array(z, dtype=float)
        return self._view.to_external(z)

    def fun(self, z: Array) -> float:
        self.status.n_f_evals += 1
        if self._view is None:
            return float(self.objective.evaluate(z))
        return float(self._view.evaluate(z))

    def grad(self, z: Array) -> Array:
        self.status.n_g_evals += 1
        if self._view is None:
            g_ext = np.asarray(self.objective.gradient(z), dtype=float).reshape(-1)
            g_int = g_ext
        else:
            g_int, g_ext = self._view.gradients(z)
        self._last = (np.array(z, dtype=float), g_ext)
        return g_int

    def hessian(self, x: Array) -> Array:
        """External Hessian at external point ``x``; counts one evaluation."""
        self.status.n_h_evals += 1
        if self._view is None:
            return np.asarray(self.objective.hessian(x), dtype=float)
        return self._view.external_hessian(x)

    def external_grad(self, z: Array) -> Array:
        if self._last is None or not np.array_equal(self._last[0], z):
            self.grad(z)
        return self._last[1]


class QuasiNewtonAlgorithm(Algorithm):
    """
    Base class implementing the shared iteration; subclasses supply the
    curvature model through :meth:`_direction`, :meth:`_update`,
    :meth:`_restart` and :meth:`_has_curvature`.
    """

    name = "quasi-newton"

    def __init__(self, config: Optional[QuasiNewtonConfig] = None) -> None:
        self.config = config or QuasiNewtonConfig()
        self.line_search = StrongWolfeLineSearch(self.config.line_search)
        self._problem: Optional[CountingProblem] = None
        self._z: Optional[Array] = None
        self._fz = float("nan")
        self._gz: Optional[Array] = None
        self._invalid_streak = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config!r})"

    @property
    def default_max_iterations(self) -> int:
        return self.config.max_iterations

    # curvature model -------------------------------------------------

    @abstractmethod
    def _allocate(self, dim: int) -> None:
        """Create an empty curvature model for ``dim`` parameters."""

    @abstractmethod
    def _direction(self, grad: Array) -> Array:
        """Search direction ``-H grad`` from the current model."""

    @abstractmethod
    def _update(self, s: Array, y: Array, status: Status) -> None:
        """Incorporate a secant pair that passed :func:`curvature_ok`."""

    @abstractmethod
    def _restart(self, status: Status) -> None:
        """Discard accumulated curvature information."""

    @abstractmethod
    def _has_curvature(self) -> bool:
        """True when the model holds information beyond the initial matrix."""

    def _on_invalid_search(self, status: Status) -> None:
        """Hook called after every invalid line search."""

    # Algorithm interface ---------------------------------------------

    def reset(self) -> None:
        self._problem = None
        self._z = None
        self._fz = float("nan")
        self._gz = None
        self._invalid_streak = 0

    def initialize(
        self, objective: Objective, x0: Sequence[float], bounds: BoundsInput = None
    ) -> Status:
        x0, bounds = validate_problem(objective, x0, bounds)
        self.reset()
        status = Status(
            x0=x0.copy(),
            x=x0.copy(),
            fx=float("nan"),
            grad=np.zeros_like(x0),
            grad_norm=float("inf"),
            bounds=bounds,
        )
        problem = CountingProblem(objective, bounds, status)
        z = problem.to_internal(x0, interior=True)
        fz = problem.fun(z)
        gz = problem.grad(z)
        status.x = problem.to_external(z)
        status.fx = fz
        status.grad = problem.external_grad(z).copy()
        status.grad_norm = float(np.max(np.abs(gz)))
        if not (np.isfinite(fz) and np.all(np.isfinite(gz))):
            status.failure = "objective or gradient is not finite at the starting point"
            logger.warning("%s: %s", self.name, status.failure)

        self._problem = problem
        self._z, self._fz, self._gz = z, fz, gz
        self._allocate(x0.size)
        return status

    def step(self, objective: Objective, status: Status) -> None:
        if self._problem is None or self._z is None or self._gz is None:
            raise RuntimeError(f"{self.name}.initialize must be called before step")
        problem = self._problem
        problem.status = status
        z, fz, gz = self._z, self._fz, self._gz

        if not np.any(gz):
            logger.info("%s: gradient vanishes exactly; point is stationary", self.name)
            status.record_stall()
            return

        direction = self._direction(gz)
        if is_debug_enabled():
            assert_descent_direction(gz, direction)
        if not float(np.dot(gz, direction)) < 0:
            logger.info("%s: model direction is not a descent direction, using -grad", self.name)
            direction = -gz

        restartable = self._has_curvature()
        result = self._search(problem, z, fz, gz, direction)
        if result.valid:
            self._invalid_streak = 0
        else:
            self._record_invalid(status)
            steepest = -gz
            if not np.array_equal(direction, steepest):
                logger.info("%s: line search failed, retrying along steepest descent", self.name)
                result = self._search(problem, z, fz, gz, steepest)
                if not result.valid:
                    self._record_invalid(status)

        if not result.valid:
            if restartable:
                # _on_invalid_search may already have discarded the model.
                logger.info("%s: both line searches failed, restarting curvature model", self.name)
                if self._has_curvature():
                    self._restart(status)
            else:
                status.failure = "line search failed along the steepest-descent direction"
                logger.warning("%s: %s at iteration %d", self.name, status.failure, status.n_iter)
            status.record_stall()
            return

        z_new, f_new, g_new = result.x, result.fx, result.grad
        s = z_new - z
        y = g_new - gz
        if curvature_ok(s, y):
            self._update(s, y, status)
        else:
            status.n_skipped_updates += 1
            logger.debug(
                "%s: skipping update, s.y = %.3e", self.name, float(np.dot(s, y))
            )

        self._z, self._fz, self._gz = z_new, f_new, g_new
        x_new = problem.to_external(z_new)
        status.record_step(
            x_new, f_new, problem.external_grad(z_new), float(np.max(np.abs(g_new)))
        )
        if is_debug_enabled():
            assert_finite(status.x, "x")
            assert_feasible(status.x, status.bounds)

    def finalize(self, objective: Objective, status: Status) -> None:
        if self.config.skip_hessian:
            return
        if self._problem is None:
            raise RuntimeError(f"{self.name}.initialize must be called before finalize")
        self._problem.status = status
        hess = self._problem.hessian(status.x)
        status.hessian = hess
        estimate = covariance_from_hessian(hess)
        if estimate is None:
            status.message += "; covariance unavailable (Hessian not invertible)"
            logger.info("%s: Hessian at the final point could not be inverted", self.name)
            return
        status.cov, status.std = estimate

    # helpers ----------------------------------------------------------

    def _search(
        self, problem: CountingProblem, z: Array, fz: float, gz: Array, direction: Array
    ) -> LineSearchResult:
        return self.line_search.search(problem.fun, problem.grad, z, fz, gz, direction)

    def _record_invalid(self, status: Status) -> None:
        status.n_invalid_line_searches += 1
        self._invalid_streak += 1
        self._on_invalid_search(status)


__all__ = ["QuasiNewtonConfig", "QuasiNewtonAlgorithm", "CountingProblem", "curvature_ok"]
