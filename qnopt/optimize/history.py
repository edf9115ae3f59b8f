"""Fixed-capacity storage of secant pairs for limited-memory BFGS."""

from __future__ import annotations

from typing import Iterator

import numpy as np

Array = np.ndarray


class SecantHistory:
    """
    Ring buffer of the ``m`` most recent secant pairs ``(s_k, y_k)``.

    Pairs live in preallocated ``(m, n)`` arrays indexed by a rotating cursor;
    pushing into a full buffer overwrites the oldest pair. Only pairs with
    ``s . y > 0`` may be stored, which keeps the implicit inverse Hessian
    positive definite.

    Example
    -------
    >>> h = SecantHistory(capacity=2, dim=1)
    >>> for k in (1.0, 2.0, 3.0):
    ...     h.push(np.array([k]), np.array([2 * k]))
    >>> [float(s[0]) for s, _ in h.newest_first()]
    [3.0, 2.0]
    """

    def __init__(self, capacity: int, dim: int) -> None:
        if capacity < 1:
            raise ValueError(f"history length must be positive, got {capacity}")
        if dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        self._s = np.zeros((capacity, dim), dtype=float)
        self._y = np.zeros((capacity, dim), dtype=float)
        self._rho = np.zeros(capacity, dtype=float)
        self._cursor = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._rho.size

    @property
    def dim(self) -> int:
        return self._s.shape[1]

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"SecantHistory(size={self._size}, capacity={self.capacity}, dim={self.dim})"

    def clear(self) -> None:
        self._cursor = 0
        self._size = 0

    def push(self, s: Array, y: Array) -> None:
        ys = float(np.dot(s, y))
        if not ys > 0:
            raise ValueError(f"secant pair violates the curvature condition (s.y = {ys:.3e})")
        idx = self._cursor
        self._s[idx] = s
        self._y[idx] = y
        self._rho[idx] = 1.0 / ys
        self._cursor = (idx + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def _slots_newest_first(self) -> list[int]:
        return [(self._cursor - 1 - k) % self.capacity for k in range(self._size)]

    def newest_first(self) -> Iterator[tuple[Array, Array]]:
        for idx in self._slots_newest_first():
            yield self._s[idx], self._y[idx]

    def gamma(self) -> float:
        """Initial scaling ``(s.y)/(y.y)`` from the newest pair (1 when empty)."""
        if self._size == 0:
            return 1.0
        idx = (self._cursor - 1) % self.capacity
        y = self._y[idx]
        return float(1.0 / (self._rho[idx] * np.dot(y, y)))

    def apply_inverse_hessian(self, grad: Array) -> Array:
        """Two-loop recursion: return ``H_k @ grad`` without forming ``H_k``."""
        q = np.array(grad, dtype=float)
        slots = self._slots_newest_first()
        alphas = np.empty(len(slots), dtype=float)
        for k, idx in enumerate(slots):
            alphas[k] = self._rho[idx] * float(np.dot(self._s[idx], q))
            q -= alphas[k] * self._y[idx]
        r = self.gamma() * q
        for k in range(len(slots) - 1, -1, -1):
            idx = slots[k]
            beta = self._rho[idx] * float(np.dot(self._y[idx], r))
            r += self._s[idx] * (alphas[k] - beta)
        return r

    def dense_inverse_hessian(self) -> Array:
        """Materialize ``H_k`` column by column (for diagnostics and tests)."""
        eye = np.eye(self.dim)
        return np.column_stack([self.apply_inverse_hessian(eye[:, i]) for i in range(self.dim)])


__all__ = ["SecantHistory"]
