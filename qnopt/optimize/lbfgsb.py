"""Bounded L-BFGS through the internal-coordinate transform.

Iterates are generated and line-searched in the unconstrained internal
coordinates of the bounds, so every reported point is feasible by
construction. The transform distorts curvature close to a bound, which makes
secant pairs collected there misleading. The solver therefore discards its
history after ``reboot_after`` consecutive invalid line searches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from qnopt.core.status import Status
from qnopt.logging import get_logger

from .lbfgs import LBFGS, LBFGSConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class LBFGSBConfig(LBFGSConfig):
    """
    Configuration for :class:`LBFGSB`.

    Args:
        reboot_after: Number of consecutive invalid line searches that clears
            the secant history. The streak is reset by a valid search along the
            model direction.
    """

    reboot_after: int = 2

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.reboot_after < 1:
            raise ValueError(f"reboot_after must be >= 1, got {self.reboot_after}.")


class LBFGSB(LBFGS):
    """
    L-BFGS-B: L-BFGS over bounded parameters.

    Example
    -------
    >>> from qnopt import FunctionObjective, LBFGSB, Minimizer
    >>> obj = FunctionObjective(lambda x: float((x[0] - 1) ** 2 + (x[1] - 2) ** 2), dim=2)
    >>> status = Minimizer(LBFGSB()).minimize(obj, [0.0, 0.0], bounds=[(-1.0, 0.5), None])
    >>> round(float(status.x[0]), 6), bool(status.at_bounds()[0])
    (0.5, True)
    """

    name = "L-BFGS-B"

    def __init__(self, config: Optional[LBFGSBConfig] = None) -> None:
        super().__init__(config or LBFGSBConfig())

    def _on_invalid_search(self, status: Status) -> None:
        if self._invalid_streak < self.config.reboot_after or not self._has_curvature():
            return
        logger.info(
            "%s: %d consecutive invalid line searches, rebooting history of %d pairs",
            self.name,
            self._invalid_streak,
            len(self._history),
        )
        self._reboot(status)

    def _restart(self, status: Status) -> None:
        self._reboot(status)

    def _reboot(self, status: Status) -> None:
        self._history.clear()
        self._invalid_streak = 0
        status.n_history_reboots += 1


__all__ = ["LBFGSB", "LBFGSBConfig"]
