"""Pytest configuration and shared fixtures for qnopt tests.

This module provides:
- A deterministic NumPy RNG fixture
- Objectives that count their own invocations
- A fixture that turns debug checks on for a single test
"""

import os
from typing import Callable, Optional

import numpy as np
import pytest

from qnopt import Objective
from qnopt.diagnostics import debug_context


class CountingObjective(Objective):
    """Wraps callables and counts every evaluate/gradient/hessian call."""

    def __init__(
        self,
        fun: Callable[[np.ndarray], float],
        grad: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        dim: Optional[int] = None,
    ) -> None:
        self.fun = fun
        self.grad = grad
        self.dim = dim
        self.n_evaluate = 0
        self.n_gradient = 0
        self.n_hessian = 0

    def evaluate(self, x: np.ndarray) -> float:
        self.n_evaluate += 1
        return float(self.fun(x))

    def gradient(self, x: np.ndarray) -> np.ndarray:
        self.n_gradient += 1
        if self.grad is None:
            return super().gradient(x)
        return np.asarray(self.grad(x), dtype=float)

    def hessian(self, x: np.ndarray) -> np.ndarray:
        self.n_hessian += 1
        return super().hessian(x)

    @property
    def has_gradient(self) -> bool:
        return self.grad is not None


def shifted_quadratic(x: np.ndarray) -> float:
    return float((x[0] - 1.0) ** 2 + (x[1] - 2.0) ** 2)


def shifted_quadratic_grad(x: np.ndarray) -> np.ndarray:
    return np.array([2.0 * (x[0] - 1.0), 2.0 * (x[1] - 2.0)])


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function")
def quadratic() -> CountingObjective:
    """``(x - 1)^2 + (y - 2)^2`` with analytic gradient and call counters."""
    return CountingObjective(shifted_quadratic, shifted_quadratic_grad, dim=2)


@pytest.fixture(scope="function")
def debug_mode():
    """Run the test with solver invariant checks enabled."""
    with debug_context(True):
        yield


@pytest.fixture(scope="function")
def counting_objective():
    """Factory for :class:`CountingObjective` instances."""
    return CountingObjective
