"""Full-memory BFGS with a strong Wolfe line search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from qnopt.core.minimizer import BoundsInput
from qnopt.core.objective import Objective
from qnopt.core.status import Status
from qnopt.diagnostics import assert_pos_def, is_debug_enabled

from .quasi_newton import QuasiNewtonAlgorithm, QuasiNewtonConfig


@dataclass(frozen=True)
class BFGSConfig(QuasiNewtonConfig):
    """Configuration for :class:`BFGS`. See :class:`QuasiNewtonConfig`."""

    max_iterations: int = 500


class BFGS(QuasiNewtonAlgorithm):
    """
    BFGS with a dense inverse-Hessian approximation ``H``.

    ``H`` starts as the identity. With ``scale_initial_hessian`` the first
    direction is ``-grad / ||grad||`` and ``H`` is rescaled to
    ``(s.y)/(y.y) I`` just before the first update (Nocedal & Wright, eq. 6.20).
    Updates use

        H+ = (I - rho s y^T) H (I - rho y s^T) + rho s s^T,   rho = 1 / (y.s)

    and are applied only when ``s.y > 0``, which preserves positive
    definiteness. The current matrix is mirrored into ``Status.hess_inv``.
    """

    name = "BFGS"

    def __init__(self, config: Optional[BFGSConfig] = None) -> None:
        super().__init__(config or BFGSConfig())
        self._h_inv: Optional[np.ndarray] = None
        self._initial = True

    @property
    def inverse_hessian(self) -> Optional[np.ndarray]:
        return None if self._h_inv is None else self._h_inv.copy()

    def reset(self) -> None:
        super().reset()
        self._h_inv = None
        self._initial = True

    def initialize(
        self, objective: Objective, x0: Sequence[float], bounds: BoundsInput = None
    ) -> Status:
        status = super().initialize(objective, x0, bounds)
        status.hess_inv = self._h_inv.copy()
        return status

    def _allocate(self, dim: int) -> None:
        self._h_inv = np.eye(dim)
        self._initial = True

    def _direction(self, grad: np.ndarray) -> np.ndarray:
        if self._initial and self.config.scale_initial_hessian:
            norm = float(np.linalg.norm(grad))
            if np.isfinite(norm) and norm > 0:
                return -grad / norm
        return -(self._h_inv @ grad)

    def _update(self, s: np.ndarray, y: np.ndarray, status: Status) -> None:
        ys = float(np.dot(y, s))
        if self._initial and self.config.scale_initial_hessian:
            self._h_inv = (ys / float(np.dot(y, y))) * np.eye(s.size)
        self._initial = False
        rho = 1.0 / ys
        left = np.eye(s.size) - rho * np.outer(s, y)
        h_inv = left @ self._h_inv @ left.T + rho * np.outer(s, s)
        self._h_inv = 0.5 * (h_inv + h_inv.T)
        status.hess_inv = self._h_inv.copy()
        if is_debug_enabled():
            assert_pos_def(self._h_inv, "BFGS inverse Hessian")

    def _restart(self, status: Status) -> None:
        self._allocate(self._h_inv.shape[0])
        status.hess_inv = self._h_inv.copy()

    def _has_curvature(self) -> bool:
        return not self._initial


__all__ = ["BFGS", "BFGSConfig"]
