"""Objective functions accepted by the minimizers.

An objective maps a point (1D float array) to a scalar. Gradients and Hessians
are optional: the base class supplies central finite differences, optionally
evaluated on a thread pool. Objectives must be deterministic and free of side
effects, and may be shared read-only between threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from .bounds import Bounds
from .numerics import approx_grad, approx_hessian

Array = np.ndarray


class Objective(ABC):
    """
    Base class for objective functions.

    Subclasses implement :meth:`evaluate` and may override :meth:`gradient` and
    :meth:`hessian` with analytic versions.

    Attributes:
        dim: Expected dimension of the input, or ``None`` if unknown.
        max_workers: Number of threads used for finite-difference probes.
            ``None`` or ``1`` evaluates them sequentially.
    """

    dim: Optional[int] = None
    max_workers: Optional[int] = None

    @abstractmethod
    def evaluate(self, x: Array) -> float:
        """Return the objective value at ``x``."""

    def gradient(self, x: Array) -> Array:
        """Central-difference gradient with ``h_i = sqrt(eps) * max(1, |x_i|)``."""
        return approx_grad(self.evaluate, x, max_workers=self.max_workers)

    def hessian(self, x: Array) -> Array:
        """Central differences of :meth:`gradient`, symmetrized."""
        return approx_hessian(self.gradient, x, max_workers=self.max_workers)

    @property
    def has_gradient(self) -> bool:
        """True when :meth:`gradient` is analytic rather than finite differences."""
        return type(self).gradient is not Objective.gradient

    @property
    def has_hessian(self) -> bool:
        return type(self).hessian is not Objective.hessian

    def __call__(self, x: Array) -> float:
        return self.evaluate(x)


class FunctionObjective(Objective):
    """
    Objective assembled from plain callables.

    Example
    -------
    >>> import numpy as np
    >>> obj = FunctionObjective(lambda x: float(np.sum((x - 1.0) ** 2)), dim=2)
    >>> np.allclose(obj.gradient(np.zeros(2)), [-2.0, -2.0], atol=1e-6)
    True
    """

    def __init__(
        self,
        fun: Callable[[Array], float],
        grad: Optional[Callable[[Array], Array]] = None,
        hess: Optional[Callable[[Array], Array]] = None,
        dim: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        if dim is not None and dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        self.fun = fun
        self.grad = grad
        self.hess = hess
        self.dim = dim
        self.max_workers = max_workers

    def evaluate(self, x: Array) -> float:
        return float(self.fun(x))

    def gradient(self, x: Array) -> Array:
        if self.grad is None:
            return super().gradient(x)
        return np.asarray(self.grad(x), dtype=float).reshape(-1)

    def hessian(self, x: Array) -> Array:
        if self.hess is None:
            return super().hessian(x)
        return np.asarray(self.hess(x), dtype=float)

    @property
    def has_gradient(self) -> bool:
        return self.grad is not None

    @property
    def has_hessian(self) -> bool:
        return self.hess is not None


class BoundedObjective(Objective):
    """
    View of an objective in the unconstrained internal coordinates of ``bounds``.

    ``evaluate(z)`` returns ``f(to_external(z))`` and gradients are pulled back
    with the chain rule, ``g_int = J(z) * g_ext`` where ``J`` is the diagonal
    Jacobian ``dx/dz``.
    """

    def __init__(self, objective: Objective, bounds: Bounds) -> None:
        if objective.dim is not None and objective.dim != len(bounds):
            raise ValueError(
                f"objective has dimension {objective.dim} but bounds have "
                f"dimension {len(bounds)}"
            )
        self.objective = objective
        self.bounds = bounds
        self.dim = len(bounds)
        self.max_workers = objective.max_workers

    def to_external(self, z: Array) -> Array:
        return self.bounds.to_external(z)

    def to_internal(self, x: Array, interior: bool = False) -> Array:
        return self.bounds.to_internal(x, interior)

    def evaluate(self, z: Array) -> float:
        return self.objective.evaluate(self.to_external(z))

    def external_gradient(self, x: Array) -> Array:
        """Gradient with respect to ``x``; finite-difference probes stay in the box."""
        if self.objective.has_gradient:
            return np.asarray(self.objective.gradient(x), dtype=float).reshape(-1)
        return approx_grad(
            self.objective.evaluate,
            x,
            max_workers=self.max_workers,
            lower=self.bounds.lower,
            upper=self.bounds.upper,
        )

    def external_hessian(self, x: Array) -> Array:
        """Hessian with respect to ``x``; finite-difference probes stay in the box."""
        if self.objective.has_hessian:
            return np.asarray(self.objective.hessian(x), dtype=float)
        return approx_hessian(
            self.external_gradient,
            x,
            max_workers=self.max_workers,
            lower=self.bounds.lower,
            upper=self.bounds.upper,
        )

    def gradients(self, z: Array) -> tuple[Array, Array]:
        """Return ``(internal_gradient, external_gradient)`` at internal point ``z``."""
        g_ext = self.external_gradient(self.to_external(z))
        return self.bounds.jacobian(z) * g_ext, g_ext

    def gradient(self, z: Array) -> Array:
        return self.gradients(z)[0]


__all__ = ["Objective", "FunctionObjective", "BoundedObjective"]
