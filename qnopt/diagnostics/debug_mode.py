"""Switch for the solvers' invariant checks.

With debug mode on, every quasi-Newton step asserts that the chosen search
direction descends, that the accepted iterate is finite and inside its bounds,
and (for dense BFGS) that the inverse Hessian is positive definite. The checks
add an eigenvalue decomposition per BFGS step, so they are off by default.

Set ``QNOPT_DEBUG=1`` before import, call :func:`set_debug_enabled`, or wrap a
run in :func:`debug_context`.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Optional

ENV_VAR = "QNOPT_DEBUG"


def parse_flag(value: Optional[str]) -> bool:
    """Interpret an environment value such as ``"1"``, ``"yes"`` or ``"off"``."""
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


_checks_on: bool = parse_flag(os.environ.get(ENV_VAR))


def is_debug_enabled() -> bool:
    """Whether the solvers currently run their invariant checks."""
    return _checks_on


def set_debug_enabled(enabled: bool) -> bool:
    """
    Turn the invariant checks on or off for the whole process.

    Returns
    -------
    bool
        The previous setting, so callers can restore it.
    """
    global _checks_on
    previous, _checks_on = _checks_on, bool(enabled)
    return previous


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Run a block with the invariant checks set to ``enabled``.

    Example
    -------
    >>> from qnopt import BFGS, Minimizer
    >>> from qnopt.functions import Rosenbrock
    >>> with debug_context(True):
    ...     status = Minimizer(BFGS()).minimize(Rosenbrock(), [-1.2, 1.0])
    >>> status.converged
    True
    """
    previous = set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)
