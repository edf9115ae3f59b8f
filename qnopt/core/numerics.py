"""Numerical primitives shared by objectives and solvers: finite differences and
small linear-algebra helpers.

Finite-difference probes along different coordinates are independent, so
:func:`approx_grad` and :func:`approx_hessian` can evaluate them on a thread
pool. ``ThreadPoolExecutor.map`` yields results in submission order, so the
assembled arrays are identical to the sequential ones.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, TypeVar

import numpy as np

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]

EPSILON = float(np.finfo(float).eps)
SQRT_EPSILON = float(np.sqrt(EPSILON))
CBRT_EPSILON = float(np.cbrt(EPSILON))

_T = TypeVar("_T")
_R = TypeVar("_R")


def fd_steps(x: Array, rel_step: float = SQRT_EPSILON) -> Array:
    """Per-coordinate step ``h_i = rel_step * max(1, |x_i|)``."""
    if rel_step <= 0:
        raise ValueError("rel_step must be positive")
    return rel_step * np.maximum(1.0, np.abs(x))


def _map(func: Callable[[_T], _R], items: Iterable[_T], max_workers: Optional[int]) -> list[_R]:
    items = list(items)
    if max_workers is None or max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(func, items))


def _probe_points(
    x: Array, steps: Array, lower: Optional[Array], upper: Optional[Array]
) -> tuple[Array, Array]:
    """Plus and minus probe coordinates, clipped to ``[lower, upper]``."""
    plus, minus = x + steps, x - steps
    if upper is not None:
        plus = np.minimum(plus, upper)
    if lower is not None:
        minus = np.maximum(minus, lower)
    return plus, minus


def approx_grad(
    fun: Objective,
    x: Array,
    rel_step: float = SQRT_EPSILON,
    max_workers: Optional[int] = None,
    lower: Optional[Array] = None,
    upper: Optional[Array] = None,
) -> Array:
    """Compute a central-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    rel_step:
        Relative perturbation; coordinate ``i`` uses
        ``h_i = rel_step * max(1, |x_i|)``.
    max_workers:
        Evaluate the per-coordinate probes on this many threads.
    lower, upper:
        Optional box. Probes never leave it, so the difference becomes
        one-sided at a bound; a coordinate pinned by ``lower == upper`` gets 0.
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    plus, minus = _probe_points(x, fd_steps(x, rel_step), lower, upper)

    def probe(i: int) -> float:
        width = plus[i] - minus[i]
        if width <= 0:
            return 0.0
        xp, xm = x.copy(), x.copy()
        xp[i], xm[i] = plus[i], minus[i]
        return (float(fun(xp)) - float(fun(xm))) / width

    return np.array(_map(probe, range(x.size), max_workers), dtype=float)


def approx_hessian(
    grad: Gradient,
    x: Array,
    rel_step: float = CBRT_EPSILON,
    max_workers: Optional[int] = None,
    lower: Optional[Array] = None,
    upper: Optional[Array] = None,
) -> Array:
    """Approximate the Hessian by central differences of the gradient.

    Column ``i`` is ``(g(x + h_i e_i) - g(x - h_i e_i)) / (2 h_i)``; the result
    is symmetrized. ``lower``/``upper`` clip the probes as in :func:`approx_grad`.
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    plus, minus = _probe_points(x, fd_steps(x, rel_step), lower, upper)

    def column(i: int) -> Array:
        width = plus[i] - minus[i]
        if width <= 0:
            return np.zeros_like(x)
        xp, xm = x.copy(), x.copy()
        xp[i], xm[i] = plus[i], minus[i]
        g_plus = np.asarray(grad(xp), dtype=float)
        g_minus = np.asarray(grad(xm), dtype=float)
        return (g_plus - g_minus) / width

    columns = _map(column, range(x.size), max_workers)
    hess = np.column_stack(columns) if columns else np.zeros((0, 0))
    return 0.5 * (hess + hess.T)


def safe_solve(mat: Array, vec: Array, reg: float = 1e-12) -> Array:
    """Solve linear system with ridge fallback for singular matrices."""
    try:
        return np.linalg.solve(mat, vec)
    except np.linalg.LinAlgError:
        eye = np.eye(mat.shape[0], dtype=mat.dtype)
        scale = max(1.0, float(np.max(np.abs(np.diag(mat)))))
        return np.linalg.solve(mat + reg * scale * eye, vec)


def safe_inverse(mat: Array, reg: float = 1e-12) -> Array:
    """Inverse of ``mat`` via :func:`safe_solve` against the identity."""
    mat = np.asarray(mat, dtype=float)
    return safe_solve(mat, np.eye(mat.shape[0]), reg=reg)


def covariance_from_hessian(hess: Array) -> Optional[tuple[Array, Array]]:
    """Return ``(cov, std)`` from a Hessian, or ``None`` if it cannot be inverted.

    ``std`` holds ``sqrt(max(diag(cov), 0))`` so that a slightly indefinite
    Hessian still produces finite uncertainties.
    """
    hess = np.asarray(hess, dtype=float)
    if not np.all(np.isfinite(hess)):
        return None
    try:
        cov = safe_inverse(hess)
    except np.linalg.LinAlgError:
        return None
    if not np.all(np.isfinite(cov)):
        return None
    cov = 0.5 * (cov + cov.T)
    std = np.sqrt(np.maximum(np.diag(cov), 0.0))
    return cov, std


__all__ = [
    "Array",
    "EPSILON",
    "SQRT_EPSILON",
    "CBRT_EPSILON",
    "approx_grad",
    "approx_hessian",
    "covariance_from_hessian",
    "fd_steps",
    "safe_inverse",
    "safe_solve",
]
