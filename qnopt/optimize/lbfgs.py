"""Limited-memory BFGS using the two-loop recursion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from qnopt.core.status import Status

from .history import SecantHistory
from .quasi_newton import QuasiNewtonAlgorithm, QuasiNewtonConfig


@dataclass(frozen=True)
class LBFGSConfig(QuasiNewtonConfig):
    """
    Configuration for :class:`LBFGS`.

    Args:
        memory: Number of secant pairs kept (history length ``m``).
    """

    memory: int = 10

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.memory < 1:
            raise ValueError(f"memory (history length) must be positive, got {self.memory}.")


class LBFGS(QuasiNewtonAlgorithm):
    """
    L-BFGS: the inverse Hessian is represented implicitly by the last ``m``
    secant pairs and applied with the two-loop recursion, scaled by
    ``gamma = (s.y)/(y.y)`` of the newest pair. With an empty history the
    direction is ``-grad`` (divided by ``||grad||`` when
    ``scale_initial_hessian`` is set).
    """

    name = "L-BFGS"

    def __init__(self, config: Optional[LBFGSConfig] = None) -> None:
        super().__init__(config or LBFGSConfig())
        self._history: Optional[SecantHistory] = None

    @property
    def history(self) -> Optional[SecantHistory]:
        return self._history

    def reset(self) -> None:
        super().reset()
        self._history = None

    def _allocate(self, dim: int) -> None:
        self._history = SecantHistory(self.config.memory, dim)

    def _direction(self, grad: np.ndarray) -> np.ndarray:
        if len(self._history) == 0:
            if self.config.scale_initial_hessian:
                norm = float(np.linalg.norm(grad))
                if np.isfinite(norm) and norm > 0:
                    return -grad / norm
            return -grad
        return -self._history.apply_inverse_hessian(grad)

    def _update(self, s: np.ndarray, y: np.ndarray, status: Status) -> None:
        self._history.push(s, y)

    def _restart(self, status: Status) -> None:
        self._history.clear()

    def _has_curvature(self) -> bool:
        return len(self._history) > 0


__all__ = ["LBFGS", "LBFGSConfig"]
