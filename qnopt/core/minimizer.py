"""The minimizer driver and the algorithm interface it runs.

Example
-------
>>> import numpy as np
>>> from qnopt import BFGS, FunctionObjective, Minimizer
>>> obj = FunctionObjective(lambda x: float((x[0] - 1) ** 2 + (x[1] - 2) ** 2), dim=2)
>>> status = Minimizer(BFGS()).minimize(obj, [0.0, 0.0])
>>> status.converged
True
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional, Sequence, Union

import numpy as np

from qnopt.logging import get_logger

from .abort_signal import AbortSignal, NopAbortSignal
from .bounds import BoundLike, Bounds, as_bounds
from .objective import Objective
from .status import Status, Verdict
from .terminator import StopDecision, Terminator

logger = get_logger(__name__)

Array = np.ndarray
BoundsInput = Union[Bounds, Iterable[BoundLike], None]
Callback = Callable[[Status], None]


def validate_problem(
    objective: Objective, x0: Sequence[float], bounds: BoundsInput = None
) -> tuple[Array, Optional[Bounds]]:
    """Check a problem definition before anything is evaluated.

    Returns the starting point as a float array and the normalized bounds.

    Raises:
        ValueError: if the start point is not a finite 1D vector, if its
            dimension disagrees with ``objective.dim`` or the bounds, or if it
            lies outside the bounds.
    """
    x0 = np.array(x0, dtype=float)
    if x0.ndim != 1 or x0.size == 0:
        raise ValueError(f"x0 must be a non-empty 1D array, got shape {x0.shape}")
    if not np.all(np.isfinite(x0)):
        raise ValueError("x0 must contain only finite values")
    if objective.dim is not None and objective.dim != x0.size:
        raise ValueError(
            f"dimension mismatch: objective expects {objective.dim} parameters, "
            f"x0 has {x0.size}"
        )
    bounds = as_bounds(bounds)
    if bounds is not None:
        if len(bounds) != x0.size:
            raise ValueError(
                f"dimension mismatch: {len(bounds)} bounds given for "
                f"{x0.size} parameters"
            )
        if not bounds.contains(x0):
            raise ValueError(f"x0 = {x0.tolist()} lies outside the bounds {bounds!r}")
    return x0, bounds


class Algorithm(ABC):
    """
    Capability interface shared by the iterative solvers.

    ``initialize`` builds a fresh :class:`Status` and clears all internal
    history, so a solver instance can be reused for any number of runs.
    ``step`` performs exactly one outer iteration and must leave the Status at
    an iteration boundary. ``finalize`` runs once after termination (except on
    abort) and may compute covariance information.
    """

    name: str = "algorithm"
    default_max_iterations: int = 1000

    @abstractmethod
    def initialize(
        self, objective: Objective, x0: Sequence[float], bounds: BoundsInput = None
    ) -> Status:
        """Reset internal state and return the Status at ``x0``."""

    @abstractmethod
    def step(self, objective: Objective, status: Status) -> None:
        """Perform one iteration, updating ``status`` in place."""

    def finalize(self, objective: Objective, status: Status) -> None:
        """Post-process a terminated run. No-op by default."""

    @abstractmethod
    def reset(self) -> None:
        """Discard all run-specific state."""


class Minimizer:
    """
    Runs an :class:`Algorithm` until its :class:`Terminator` says stop.

    Args:
        algorithm: The solver to drive (BFGS, LBFGS, LBFGSB, ...).
        terminator: Stopping criteria. Defaults to a :class:`Terminator` with
            default tolerances and the algorithm's ``default_max_iterations``.
        abort_signal: Cooperative cancellation flag, polled once per iteration.
        callbacks: Called with a Status snapshot after every iteration.
    """

    def __init__(
        self,
        algorithm: Algorithm,
        terminator: Optional[Terminator] = None,
        abort_signal: Optional[AbortSignal] = None,
        callbacks: Iterable[Callback] = (),
    ) -> None:
        self.algorithm = algorithm
        self.terminator = terminator or Terminator(
            max_iterations=algorithm.default_max_iterations
        )
        self.abort_signal = abort_signal or NopAbortSignal()
        self.callbacks: list[Callback] = list(callbacks)
        self._objective: Optional[Objective] = None
        self._status: Optional[Status] = None
        self._decision: Optional[StopDecision] = None

    def __repr__(self) -> str:
        return f"Minimizer(algorithm={self.algorithm.name!r}, terminator={self.terminator!r})"

    @property
    def status(self) -> Optional[Status]:
        """Snapshot of the current Status (``None`` before ``initialize``)."""
        return None if self._status is None else self._status.snapshot()

    @property
    def decision(self) -> Optional[StopDecision]:
        return self._decision

    def initialize(
        self,
        objective: Objective,
        x0: Sequence[float],
        bounds: BoundsInput = None,
        parameter_names: Optional[Sequence[str]] = None,
    ) -> Status:
        """Validate the problem and reset the algorithm for a new run."""
        x0, bounds = validate_problem(objective, x0, bounds)
        if parameter_names is not None and len(parameter_names) != x0.size:
            raise ValueError(
                f"{len(parameter_names)} parameter names given for {x0.size} parameters"
            )
        status = self.algorithm.initialize(objective, x0, bounds)
        if parameter_names is not None:
            status.parameter_names = list(parameter_names)
        self._objective = objective
        self._status = status
        self._decision = None
        logger.debug(
            "%s initialized: n=%d f(x0)=%.6e", self.algorithm.name, x0.size, status.fx
        )
        return status.snapshot()

    def run(self) -> Status:
        """Iterate until termination and return a snapshot of the final Status."""
        if self._status is None or self._objective is None:
            raise RuntimeError("Minimizer.initialize must be called before run")
        status = self._status
        objective = self._objective

        while True:
            decision = self.terminator.should_stop(status, self.abort_signal)
            if decision.stop:
                break
            self.algorithm.step(objective, status)
            logger.debug(
                "%s iter %d: f=%.10e |g|=%.3e",
                self.algorithm.name,
                status.n_iter,
                status.fx,
                status.grad_norm,
            )
            for callback in self.callbacks:
                callback(status.snapshot())

        self._decision = decision
        status.verdict = decision.verdict
        status.converged = decision.verdict is Verdict.CONVERGED
        status.message = self._compose_message(decision, status)
        if decision.verdict is not Verdict.ABORTED:
            self.algorithm.finalize(objective, status)
        if decision.verdict is Verdict.FAILED:
            logger.warning("%s failed: %s", self.algorithm.name, status.message)
        else:
            logger.info(
                "%s finished after %d iterations: %s",
                self.algorithm.name,
                status.n_iter,
                status.message,
            )
        return status.snapshot()

    def minimize(
        self,
        objective: Objective,
        x0: Sequence[float],
        bounds: BoundsInput = None,
        parameter_names: Optional[Sequence[str]] = None,
    ) -> Status:
        """Convenience wrapper for :meth:`initialize` followed by :meth:`run`."""
        self.initialize(objective, x0, bounds, parameter_names)
        return self.run()

    @staticmethod
    def _compose_message(decision: StopDecision, status: Status) -> str:
        message = f"{decision.verdict.value}: {decision.reason}"
        if decision.verdict in (Verdict.MAX_ITERATIONS, Verdict.FAILED):
            notes = []
            if status.n_invalid_line_searches:
                notes.append(
                    f"{status.n_invalid_line_searches} line searches exhausted their budget"
                )
            if status.n_skipped_updates:
                notes.append(
                    f"{status.n_skipped_updates} curvature updates skipped (s.y <= 0)"
                )
            if notes:
                message += " (" + "; ".join(notes) + ")"
        return message


__all__ = ["Algorithm", "Minimizer", "validate_problem"]
