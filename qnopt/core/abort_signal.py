"""Cooperative cancellation flags polled by :class:`~qnopt.core.minimizer.Minimizer`.

The minimizer checks its signal once per outer iteration, never inside a line
search, so a run stops at most one line search after :meth:`AbortSignal.set`
is called. Setting a signal never interrupts objective evaluation.
"""

from __future__ import annotations

import signal
import threading
from abc import ABC, abstractmethod
from types import FrameType
from typing import Any, Optional


class AbortSignal(ABC):
    """Capability interface for cancellation flags."""

    @abstractmethod
    def set(self) -> None:
        """Request that the current run stops."""

    @abstractmethod
    def is_set(self) -> bool:
        """Return True once :meth:`set` has been called (and not reset)."""

    @abstractmethod
    def reset(self) -> None:
        """Clear the flag so the signal can be reused for another run."""


class NopAbortSignal(AbortSignal):
    """A signal that is never set. Used when the caller does not need cancellation."""

    def set(self) -> None:
        return None

    def is_set(self) -> bool:
        return False

    def reset(self) -> None:
        return None

    def __repr__(self) -> str:
        return "NopAbortSignal()"


class AtomicAbortSignal(AbortSignal):
    """
    Thread-safe flag backed by :class:`threading.Event`.

    ``set`` may be called from any thread while the run thread polls
    ``is_set``; the event guarantees reads are never torn.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()

    def __repr__(self) -> str:
        return f"AtomicAbortSignal(is_set={self.is_set()})"


class CtrlCAbortSignal(AtomicAbortSignal):
    """
    Flag that is set by SIGINT (Ctrl-C) while installed.

    The handler is registered by :meth:`install` (or by entering the object as a
    context manager) and the previous handler is restored by :meth:`uninstall`.
    Python only allows signal handlers to be registered from the main thread.

    Example
    -------
    >>> from qnopt import LBFGS, Minimizer
    >>> from qnopt.functions import Rosenbrock
    >>> with CtrlCAbortSignal() as abort:
    ...     status = Minimizer(LBFGS(), abort_signal=abort).minimize(Rosenbrock(), [-1.2, 1.0])
    >>> status.converged
    True
    """

    def __init__(self) -> None:
        super().__init__()
        self._previous: Any = None
        self._installed = False

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:
        self.set()

    def install(self) -> "CtrlCAbortSignal":
        if not self._installed:
            self._previous = signal.signal(signal.SIGINT, self._handle)
            self._installed = True
        return self

    def uninstall(self) -> None:
        if self._installed:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None
            self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def __enter__(self) -> "CtrlCAbortSignal":
        return self.install()

    def __exit__(self, *exc_info: Any) -> None:
        self.uninstall()


__all__ = ["AbortSignal", "NopAbortSignal", "AtomicAbortSignal", "CtrlCAbortSignal"]
