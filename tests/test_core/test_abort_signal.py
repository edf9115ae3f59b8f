"""Tests for cooperative cancellation."""

import signal
import threading

import numpy as np
import pytest

from qnopt import BFGS, FunctionObjective, Minimizer, Verdict
from qnopt.core.abort_signal import AtomicAbortSignal, CtrlCAbortSignal, NopAbortSignal
from qnopt.functions import rosenbrock, rosenbrock_grad


def test_nop_signal_never_sets():
    abort = NopAbortSignal()
    abort.set()
    assert not abort.is_set()


def test_atomic_signal_set_and_reset():
    abort = AtomicAbortSignal()
    assert not abort.is_set()
    abort.set()
    assert abort.is_set()
    abort.reset()
    assert not abort.is_set()


def test_atomic_signal_visible_across_threads():
    abort = AtomicAbortSignal()
    worker = threading.Thread(target=abort.set)
    worker.start()
    worker.join()
    assert abort.is_set()


def test_ctrl_c_signal_installs_and_restores_handler():
    previous = signal.getsignal(signal.SIGINT)
    abort = CtrlCAbortSignal()
    with abort:
        assert abort.installed
        assert signal.getsignal(signal.SIGINT) is not previous
        signal.raise_signal(signal.SIGINT)
        assert abort.is_set()
    assert not abort.installed
    assert signal.getsignal(signal.SIGINT) is previous


def test_preset_signal_aborts_before_first_iteration():
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    abort = AtomicAbortSignal()
    abort.set()
    minimizer = Minimizer(BFGS(), abort_signal=abort)
    initial = minimizer.initialize(obj, [-1.2, 1.0])
    status = minimizer.run()

    assert status.verdict is Verdict.ABORTED
    assert not status.converged
    assert status.n_iter == 0
    assert np.array_equal(status.x, initial.x)
    assert status.fx == initial.fx
    assert status.n_f_evals == initial.n_f_evals
    assert status.n_h_evals == 0
    assert status.cov is None


def test_abort_from_callback_stops_at_iteration_boundary():
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    abort = AtomicAbortSignal()

    def stop_after_two(status):
        if status.n_iter == 2:
            abort.set()

    minimizer = Minimizer(BFGS(), abort_signal=abort, callbacks=[stop_after_two])
    status = minimizer.minimize(obj, [-1.2, 1.0])
    assert status.verdict is Verdict.ABORTED
    assert status.n_iter == 2
    assert "aborted" in status.message


@pytest.mark.parametrize("cls", [AtomicAbortSignal, CtrlCAbortSignal])
def test_signal_can_be_reused_after_reset(cls):
    abort = cls()
    abort.set()
    abort.reset()
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    status = Minimizer(BFGS(), abort_signal=abort).minimize(obj, [-1.2, 1.0])
    assert status.converged
