"""Invariant checks used by the solvers when debug mode is on.

Each ``assert_*`` helper raises ``AssertionError`` with a descriptive message;
the boolean ``is_*`` helpers never raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from qnopt.core.bounds import Bounds


def is_pos_def(mat: np.ndarray, tol: float = 0.0) -> bool:
    """Check if a matrix is positive definite via eigenvalues of its symmetric part."""
    mat = np.asarray(mat, dtype=float)
    if not np.all(np.isfinite(mat)):
        return False
    sym = 0.5 * (mat + mat.T)
    eigvals = np.linalg.eigvalsh(sym)
    return bool(np.all(eigvals > tol))


def assert_finite(values: np.ndarray, name: str = "array") -> None:
    """Raise if ``values`` contains NaN or infinity."""
    values = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(values)):
        bad = np.flatnonzero(~np.isfinite(values.ravel()))
        raise AssertionError(f"{name} has non-finite entries at indices {bad.tolist()}")


def assert_descent_direction(grad: np.ndarray, direction: np.ndarray) -> None:
    """Raise unless ``grad . direction < 0``."""
    slope = float(np.dot(grad, direction))
    if not slope < 0.0:
        raise AssertionError(f"not a descent direction: grad . direction = {slope:.3e}")


def assert_feasible(x: np.ndarray, bounds: Optional["Bounds"], atol: float = 0.0) -> None:
    """Raise if ``x`` lies outside ``bounds`` by more than ``atol``."""
    if bounds is None:
        return
    x = np.asarray(x, dtype=float)
    lower = bounds.lower - atol
    upper = bounds.upper + atol
    outside = np.flatnonzero((x < lower) | (x > upper))
    if outside.size:
        raise AssertionError(
            f"point violates bounds in dimensions {outside.tolist()}: {x[outside].tolist()}"
        )


def assert_pos_def(mat: np.ndarray, name: str = "matrix") -> None:
    """Raise unless ``mat`` is symmetric positive definite."""
    if not is_pos_def(mat):
        raise AssertionError(f"{name} is not positive definite")


__all__ = [
    "is_pos_def",
    "assert_finite",
    "assert_descent_direction",
    "assert_feasible",
    "assert_pos_def",
]
