"""
Box bounds and the bounded/unbounded parameter transform.

Bounded problems are solved by unconstrained algorithms in *internal*
coordinates ``z`` that map onto the bounded *external* coordinates ``x``
through smooth, invertible per-dimension transforms (the MINUIT/LMFIT
convention):

Both bounds::

    z = asin(2 (x - l) / (u - l) - 1)
    x = l + (sin(z) + 1) (u - l) / 2

Lower bound only::

    z = sqrt((x - l + 1)^2 - 1)
    x = l - 1 + sqrt(z^2 + 1)

Upper bound only::

    z = sqrt((u - x + 1)^2 - 1)
    x = u + 1 - sqrt(z^2 + 1)

Unbounded dimensions use the identity. Every internal value maps to a
feasible external value, and a feasible external value (including one lying
exactly on a bound) maps to a finite internal value.

Gradients taken with respect to ``x`` must be multiplied by the Jacobian
``dx/dz`` (:meth:`Bounds.jacobian`) before they are used in internal
coordinates.

References:
    - F. James & M. Roos, *MINUIT* (CERN Program Library D506)
    - LMFIT documentation, "Bounds Implementation"
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Union

import numpy as np

BoundLike = Union["Bound", Sequence[Optional[float]], None]

_INTERIOR_MARGIN = math.sqrt(sys.float_info.epsilon)


@dataclass(frozen=True)
class Bound:
    """
    Inclusive interval ``[lower, upper]`` for a single parameter.

    Either side may be infinite. ``None`` is accepted for either side and means
    unbounded.
    """

    lower: float = -math.inf
    upper: float = math.inf

    def __post_init__(self) -> None:
        lower = -math.inf if self.lower is None else float(self.lower)
        upper = math.inf if self.upper is None else float(self.upper)
        if math.isnan(lower) or math.isnan(upper):
            raise ValueError(f"bounds must not be NaN, got ({lower}, {upper})")
        if lower > upper:
            raise ValueError(f"lower bound {lower} exceeds upper bound {upper}")
        if lower == math.inf or upper == -math.inf:
            raise ValueError(f"empty interval ({lower}, {upper})")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @property
    def has_lower(self) -> bool:
        return math.isfinite(self.lower)

    @property
    def has_upper(self) -> bool:
        return math.isfinite(self.upper)

    @property
    def is_unbounded(self) -> bool:
        return not (self.has_lower or self.has_upper)

    def contains(self, x: float) -> bool:
        return self.lower <= x <= self.upper

    def clip(self, x: float) -> float:
        return min(max(x, self.lower), self.upper)

    def at_bound(self, x: float, tol: float) -> bool:
        """True when ``x`` is within ``tol`` of a finite bound."""
        return abs(x - self.lower) < tol or abs(x - self.upper) < tol

    def to_internal(self, x: float, interior: bool = False) -> float:
        """Internal value of ``x``.

        With ``interior=True`` a point on a finite bound is first moved
        ``sqrt(eps)`` (relative to the width for a two-sided bound) into the
        interval, so that :meth:`jacobian` is non-zero there. Solvers start
        from such a point; otherwise the internal gradient vanishes on the
        bound whichever way the external gradient points.
        """
        margin = _INTERIOR_MARGIN if interior else 0.0
        # Inputs are clipped first so that values a rounding error outside the
        # interval still map to a finite internal value.
        if self.has_lower and self.has_upper:
            width = self.upper - self.lower
            if width == 0.0:
                return 0.0
            ratio = 2.0 * (self.clip(x) - self.lower) / width - 1.0
            limit = 1.0 - margin
            return math.asin(min(max(ratio, -limit), limit))
        if self.has_lower:
            shifted = max(x - self.lower, margin) + 1.0
            return math.sqrt(shifted * shifted - 1.0)
        if self.has_upper:
            shifted = max(self.upper - x, margin) + 1.0
            return math.sqrt(shifted * shifted - 1.0)
        return float(x)

    def to_external(self, z: float) -> float:
        if self.has_lower and self.has_upper:
            width = self.upper - self.lower
            x = self.lower + (math.sin(z) + 1.0) * width / 2.0
            return self.clip(x)
        if self.has_lower:
            return self.lower - 1.0 + math.sqrt(z * z + 1.0)
        if self.has_upper:
            return self.upper + 1.0 - math.sqrt(z * z + 1.0)
        return float(z)

    def jacobian(self, z: float) -> float:
        """Derivative ``dx/dz`` of :meth:`to_external` at internal value ``z``."""
        if self.has_lower and self.has_upper:
            return math.cos(z) * (self.upper - self.lower) / 2.0
        if self.has_lower:
            return z / math.sqrt(z * z + 1.0)
        if self.has_upper:
            return -z / math.sqrt(z * z + 1.0)
        return 1.0

    @classmethod
    def coerce(cls, value: BoundLike) -> "Bound":
        """Build a Bound from ``None``, a ``(lower, upper)`` pair or a Bound."""
        if value is None:
            return cls()
        if isinstance(value, Bound):
            return value
        lower, upper = value
        return cls(lower, upper)


class Bounds:
    """
    Immutable ordered collection of :class:`Bound`, one per dimension.

    Parameters
    ----------
    bounds:
        Iterable of ``Bound`` objects, ``(lower, upper)`` pairs or ``None``
        (fully unbounded). ``None`` inside a pair means that side is open.

    Example
    -------
    >>> b = Bounds([(-1.0, 0.5), None])
    >>> b.at_bounds([0.5, 3.0], tol=1e-8).tolist()
    [True, False]
    """

    __slots__ = ("_bounds", "_lower", "_upper")

    def __init__(self, bounds: Iterable[BoundLike]) -> None:
        self._bounds: tuple[Bound, ...] = tuple(Bound.coerce(b) for b in bounds)
        if not self._bounds:
            raise ValueError("Bounds requires at least one dimension")
        self._lower = np.array([b.lower for b in self._bounds], dtype=float)
        self._upper = np.array([b.upper for b in self._bounds], dtype=float)
        self._lower.setflags(write=False)
        self._upper.setflags(write=False)

    @classmethod
    def unbounded(cls, dim: int) -> "Bounds":
        if dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        return cls([None] * dim)

    def __len__(self) -> int:
        return len(self._bounds)

    def __iter__(self) -> Iterator[Bound]:
        return iter(self._bounds)

    def __getitem__(self, index: int) -> Bound:
        return self._bounds[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return self._bounds == other._bounds

    def __hash__(self) -> int:
        return hash(self._bounds)

    def __repr__(self) -> str:
        pairs = ", ".join(f"({b.lower}, {b.upper})" for b in self._bounds)
        return f"Bounds([{pairs}])"

    @property
    def lower(self) -> np.ndarray:
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        return self._upper

    @property
    def is_unbounded(self) -> bool:
        return all(b.is_unbounded for b in self._bounds)

    def _check(self, values: np.ndarray, name: str) -> np.ndarray:
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.size != len(self._bounds):
            raise ValueError(
                f"{name} has dimension {values.size} but bounds have dimension "
                f"{len(self._bounds)}"
            )
        return values

    def contains(self, x: Sequence[float]) -> bool:
        x = self._check(x, "x")
        return bool(np.all((x >= self._lower) & (x <= self._upper)))

    def clip(self, x: Sequence[float]) -> np.ndarray:
        return np.clip(self._check(x, "x"), self._lower, self._upper)

    def to_internal(self, x: Sequence[float], interior: bool = False) -> np.ndarray:
        x = self._check(x, "x")
        return np.array(
            [b.to_internal(v, interior) for b, v in zip(self._bounds, x)], dtype=float
        )

    def to_external(self, z: Sequence[float]) -> np.ndarray:
        z = self._check(z, "z")
        return np.array([b.to_external(v) for b, v in zip(self._bounds, z)], dtype=float)

    def jacobian(self, z: Sequence[float]) -> np.ndarray:
        """Diagonal of ``dx/dz`` evaluated at internal point ``z``."""
        z = self._check(z, "z")
        return np.array([b.jacobian(v) for b, v in zip(self._bounds, z)], dtype=float)

    def at_bounds(self, x: Sequence[float], tol: float = 1e-8) -> np.ndarray:
        """Boolean mask of dimensions whose value lies within ``tol`` of a bound."""
        x = self._check(x, "x")
        return np.array([b.at_bound(v, tol) for b, v in zip(self._bounds, x)], dtype=bool)


def as_bounds(bounds: Union[Bounds, Iterable[BoundLike], None]) -> Optional[Bounds]:
    """Normalize user input into a :class:`Bounds` (or ``None``)."""
    if bounds is None or isinstance(bounds, Bounds):
        return bounds
    return Bounds(bounds)


__all__ = ["Bound", "Bounds", "as_bounds"]
