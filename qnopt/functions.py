"""Standard objectives for exercising the solvers."""

from __future__ import annotations

from typing import Optional

import numpy as np

from qnopt.core.objective import Objective


def rosenbrock(x: np.ndarray) -> float:
    """n-dimensional Rosenbrock function, minimum 0 at ``(1, ..., 1)``."""
    x = np.asarray(x, dtype=float)
    return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


def rosenbrock_grad(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    grad = np.zeros_like(x)
    inner = x[1:] - x[:-1] ** 2
    grad[:-1] = -400.0 * x[:-1] * inner - 2.0 * (1.0 - x[:-1])
    grad[1:] += 200.0 * inner
    return grad


def rosenbrock_hess(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    n = x.size
    hess = np.zeros((n, n))
    for i in range(n - 1):
        hess[i, i] += 1200.0 * x[i] ** 2 - 400.0 * x[i + 1] + 2.0
        hess[i, i + 1] = -400.0 * x[i]
        hess[i + 1, i] = -400.0 * x[i]
        hess[i + 1, i + 1] += 200.0
    return hess


def sphere(x: np.ndarray) -> float:
    x = np.asarray(x, dtype=float)
    return float(np.dot(x, x))


def sphere_grad(x: np.ndarray) -> np.ndarray:
    return 2.0 * np.asarray(x, dtype=float)


class Rosenbrock(Objective):
    """Rosenbrock objective with analytic gradient and Hessian."""

    def __init__(self, n: int = 2, max_workers: Optional[int] = None) -> None:
        if n < 2:
            raise ValueError(f"Rosenbrock requires n >= 2, got {n}")
        self.dim = n
        self.max_workers = max_workers

    def evaluate(self, x: np.ndarray) -> float:
        return rosenbrock(x)

    def gradient(self, x: np.ndarray) -> np.ndarray:
        return rosenbrock_grad(x)

    def hessian(self, x: np.ndarray) -> np.ndarray:
        return rosenbrock_hess(x)


__all__ = [
    "rosenbrock",
    "rosenbrock_grad",
    "rosenbrock_hess",
    "sphere",
    "sphere_grad",
    "Rosenbrock",
]
