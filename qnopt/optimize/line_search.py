"""Strong Wolfe line search (bracketing and zoom, Nocedal & Wright Alg. 3.5/3.6).

Given a point ``x``, a descent direction ``p`` and the one-dimensional
restriction ``phi(alpha) = f(x + alpha p)``, the search looks for a step
satisfying

* sufficient decrease: ``phi(alpha) <= phi(0) + c1 alpha phi'(0)``
* curvature: ``|phi'(alpha)| <= c2 |phi'(0)|``

A result is *valid* only when both hold. When the evaluation budget runs out
first the result is marked invalid and the caller decides how to recover.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from qnopt.logging import get_logger

logger = get_logger(__name__)

Array = np.ndarray


@dataclass(frozen=True)
class LineSearchConfig:
    """
    Parameters of :class:`StrongWolfeLineSearch`.

    Args:
        c1: Sufficient-decrease constant, ``0 < c1 < c2``.
        c2: Curvature constant, ``c1 < c2 < 1``.
        max_iterations: Maximum number of bracketing trials.
        max_zoom: Maximum number of zoom trials.
        max_step: Largest step length ever tried. ``None`` means unlimited;
            the first trial is ``min(1, max_step)``.
    """

    c1: float = 1e-4
    c2: float = 0.9
    max_iterations: int = 50
    max_zoom: int = 60
    max_step: Optional[float] = None

    def __post_init__(self) -> None:
        if not (0 < self.c1 < self.c2 < 1):
            raise ValueError(
                f"Require 0 < c1 < c2 < 1 for Wolfe conditions, got c1={self.c1}, c2={self.c2}."
            )
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}.")
        if self.max_zoom < 1:
            raise ValueError(f"max_zoom must be >= 1, got {self.max_zoom}.")
        if self.max_step is not None and not self.max_step > 0:
            raise ValueError(f"max_step must be positive, got {self.max_step}.")


@dataclass
class LineSearchResult:
    """
    Outcome of a line search.

    ``x``, ``fx`` and ``grad`` describe the point at step ``alpha``. For invalid
    results they describe the best sufficient-decrease point seen (or the start
    point with ``alpha == 0``) and ``grad`` may be ``None``.
    """

    alpha: float
    x: Array
    fx: float
    grad: Optional[Array]
    valid: bool
    n_f_evals: int = 0
    n_g_evals: int = 0


class StrongWolfeLineSearch:
    """
    Bracket-then-zoom strong Wolfe line search.

    The bracketing phase doubles the trial step until it either satisfies both
    conditions or brackets an acceptable step; the zoom phase then shrinks the
    bracket with safeguarded quadratic interpolation (bisection when the
    interpolant is unusable).
    """

    def __init__(self, config: Optional[LineSearchConfig] = None) -> None:
        self.config = config or LineSearchConfig()

    def __repr__(self) -> str:
        return f"StrongWolfeLineSearch({self.config!r})"

    def search(
        self,
        fun: Callable[[Array], float],
        grad: Callable[[Array], Array],
        x: Array,
        fx: float,
        gx: Array,
        direction: Array,
        max_step: Optional[float] = None,
    ) -> LineSearchResult:
        """Search along ``direction`` from ``x``.

        Args:
            fun: Objective; every call is one function evaluation.
            grad: Gradient; every call is one gradient evaluation.
            x: Start point.
            fx: ``fun(x)``.
            gx: ``grad(x)``.
            direction: Search direction with ``gx . direction < 0``.
            max_step: Overrides ``config.max_step`` for this search.

        Raises:
            ValueError: if ``direction`` is not a descent direction.
        """
        cfg = self.config
        x = np.asarray(x, dtype=float)
        p = np.asarray(direction, dtype=float)
        phi0 = float(fx)
        dphi0 = float(np.dot(gx, p))
        if not dphi0 < 0:
            raise ValueError(
                f"Search direction must be a descent direction (grad . p = {dphi0:.3e})."
            )
        alpha_max = max_step if max_step is not None else cfg.max_step
        if alpha_max is None:
            alpha_max = math.inf

        counts = {"f": 0, "g": 0}

        def phi(alpha: float) -> float:
            counts["f"] += 1
            value = float(fun(x + alpha * p))
            return value if math.isfinite(value) else math.inf

        def dphi(alpha: float) -> tuple[float, Array]:
            counts["g"] += 1
            g = np.asarray(grad(x + alpha * p), dtype=float)
            slope = float(np.dot(g, p))
            return (slope if math.isfinite(slope) else math.nan), g

        def armijo(alpha: float, value: float) -> bool:
            return value <= phi0 + cfg.c1 * alpha * dphi0

        def curvature(slope: float) -> bool:
            return abs(slope) <= -cfg.c2 * dphi0

        def finish(alpha: float, value: float, g: Optional[Array], valid: bool) -> LineSearchResult:
            return LineSearchResult(
                alpha=alpha,
                x=x + alpha * p,
                fx=value,
                grad=g,
                valid=valid,
                n_f_evals=counts["f"],
                n_g_evals=counts["g"],
            )

        def zoom(
            lo: float, hi: float, phi_lo: float, phi_hi: float, dphi_lo: float, g_lo: Optional[Array]
        ) -> LineSearchResult:
            for _ in range(cfg.max_zoom):
                width = abs(hi - lo)
                if width <= 1e-14 * max(1.0, abs(lo)):
                    break
                alpha = _interpolate(lo, hi, phi_lo, phi_hi, dphi_lo)
                phi_a = phi(alpha)
                if not armijo(alpha, phi_a) or phi_a >= phi_lo:
                    hi, phi_hi = alpha, phi_a
                    continue
                dphi_a, g_a = dphi(alpha)
                if math.isnan(dphi_a):
                    hi, phi_hi = alpha, phi_a
                    continue
                if curvature(dphi_a):
                    return finish(alpha, phi_a, g_a, True)
                if dphi_a * (hi - lo) >= 0:
                    hi, phi_hi = lo, phi_lo
                lo, phi_lo, dphi_lo, g_lo = alpha, phi_a, dphi_a, g_a
            logger.debug("zoom exhausted: bracket [%.3e, %.3e]", min(lo, hi), max(lo, hi))
            return finish(lo, phi_lo, g_lo, False)

        alpha = min(1.0, alpha_max)
        alpha_prev, phi_prev, dphi_prev = 0.0, phi0, dphi0
        g_prev: Optional[Array] = np.asarray(gx, dtype=float)
        for i in range(cfg.max_iterations):
            phi_a = phi(alpha)
            if not armijo(alpha, phi_a) or (i > 0 and phi_a >= phi_prev):
                return zoom(alpha_prev, alpha, phi_prev, phi_a, dphi_prev, g_prev)
            dphi_a, g_a = dphi(alpha)
            if math.isnan(dphi_a):
                return zoom(alpha_prev, alpha, phi_prev, math.inf, dphi_prev, g_prev)
            if curvature(dphi_a):
                return finish(alpha, phi_a, g_a, True)
            if dphi_a >= 0:
                return zoom(alpha, alpha_prev, phi_a, phi_prev, dphi_a, g_a)
            alpha_prev, phi_prev, dphi_prev, g_prev = alpha, phi_a, dphi_a, g_a
            if alpha >= alpha_max:
                logger.debug("step limit %.3e reached without satisfying curvature", alpha_max)
                break
            alpha = min(2.0 * alpha, alpha_max)
        return finish(alpha_prev, phi_prev, g_prev, False)


def _interpolate(lo: float, hi: float, phi_lo: float, phi_hi: float, dphi_lo: float) -> float:
    """Minimizer of the quadratic through ``phi(lo), phi'(lo), phi(hi)``.

    Falls back to bisection when the quadratic is not convex, not finite, or
    its minimizer lies within 10% of either bracket end.
    """
    mid = 0.5 * (lo + hi)
    d = hi - lo
    if not (math.isfinite(phi_hi) and math.isfinite(phi_lo) and math.isfinite(dphi_lo)):
        return mid
    curv = (phi_hi - phi_lo - dphi_lo * d) / (d * d)
    if not curv > 0:
        return mid
    alpha = lo - dphi_lo / (2.0 * curv)
    left, right = min(lo, hi), max(lo, hi)
    margin = 0.1 * (right - left)
    if not (left + margin <= alpha <= right - margin):
        return mid
    return alpha


__all__ = ["LineSearchConfig", "LineSearchResult", "StrongWolfeLineSearch"]
