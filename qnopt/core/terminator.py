"""Stopping criteria for the minimizer loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .abort_signal import AbortSignal
from .numerics import CBRT_EPSILON, SQRT_EPSILON
from .status import Status, Verdict


@dataclass(frozen=True)
class TerminatorConfig:
    """
    Tolerances for :class:`Terminator`.

    Args:
        f_tol: Relative function-change tolerance. The change between two
            iterations must satisfy ``|f_new - f_old| < f_tol * max(1, |f_old|)``.
            Defaults to ``sqrt(eps)``.
        g_tol: Bound on the infinity norm of the gradient. Defaults to
            ``cbrt(eps)``.
        max_iterations: Iteration cap. ``None`` defers to the algorithm's
            ``default_max_iterations``.
    """

    f_tol: float = SQRT_EPSILON
    g_tol: float = CBRT_EPSILON
    max_iterations: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.f_tol >= 0:
            raise ValueError(f"f_tol must be non-negative, got {self.f_tol}.")
        if not self.g_tol >= 0:
            raise ValueError(f"g_tol must be non-negative, got {self.g_tol}.")
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ValueError(
                f"max_iterations must be >= 0, got {self.max_iterations}."
            )


@dataclass(frozen=True)
class StopDecision:
    """A verdict plus the human-readable reason behind it."""

    verdict: Verdict
    reason: str = ""

    @property
    def stop(self) -> bool:
        return self.verdict.is_terminal


CONTINUE = StopDecision(Verdict.CONTINUE)


class Terminator:
    """
    Pure decision function over a :class:`Status`.

    Checks, in order: abort signal, iteration cap, convergence (function change
    and gradient norm both within tolerance), then a failure recorded by the
    solver. The Status is only read, never modified.
    """

    def __init__(self, config: Optional[TerminatorConfig] = None, max_iterations: int = 1000):
        self.config = config or TerminatorConfig()
        self.max_iterations = (
            self.config.max_iterations
            if self.config.max_iterations is not None
            else max_iterations
        )

    def __repr__(self) -> str:
        return (
            f"Terminator(f_tol={self.config.f_tol:.3e}, g_tol={self.config.g_tol:.3e}, "
            f"max_iterations={self.max_iterations})"
        )

    def function_converged(self, status: Status) -> bool:
        if status.fx_previous is None:
            return False
        change = abs(status.fx - status.fx_previous)
        return change < self.config.f_tol * max(1.0, abs(status.fx_previous))

    def gradient_converged(self, status: Status) -> bool:
        return status.grad_norm < self.config.g_tol

    def should_stop(
        self, status: Status, abort_signal: Optional[AbortSignal] = None
    ) -> StopDecision:
        if abort_signal is not None and abort_signal.is_set():
            return StopDecision(Verdict.ABORTED, "aborted by signal")
        if status.n_iter >= self.max_iterations:
            return StopDecision(
                Verdict.MAX_ITERATIONS,
                f"maximum number of iterations ({self.max_iterations}) reached",
            )
        if self.function_converged(status) and self.gradient_converged(status):
            return StopDecision(
                Verdict.CONVERGED,
                f"|delta f| < {self.config.f_tol:.3e} and "
                f"|grad|_inf = {status.grad_norm:.3e} < {self.config.g_tol:.3e}",
            )
        if status.failure is not None:
            return StopDecision(Verdict.FAILED, status.failure)
        return CONTINUE


__all__ = ["TerminatorConfig", "StopDecision", "Terminator"]
