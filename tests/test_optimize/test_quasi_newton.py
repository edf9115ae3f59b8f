"""Tests for the shared quasi-Newton iteration and its recovery paths."""

import numpy as np
import pytest

from qnopt import BFGS, LBFGS, LBFGSB, FunctionObjective, Minimizer, Verdict
from qnopt.functions import Rosenbrock
from qnopt.optimize import (
    LBFGSBConfig,
    LBFGSConfig,
    LineSearchResult,
    StrongWolfeLineSearch,
    curvature_ok,
)

SCALES = np.array([1.0, 10.0, 100.0])


def scaled_quadratic(x):
    return float(np.sum(SCALES * x**2))


def scaled_quadratic_grad(x):
    return 2.0 * SCALES * x


def make_quadratic():
    return FunctionObjective(scaled_quadratic, scaled_quadratic_grad, dim=3)


class FlakyLineSearch:
    """Delegates the first ``n_valid`` searches, then always fails."""

    def __init__(self, n_valid):
        self.inner = StrongWolfeLineSearch()
        self.n_valid = n_valid
        self.calls = 0

    def search(self, fun, grad, x, fx, gx, direction, max_step=None):
        self.calls += 1
        if self.calls <= self.n_valid:
            return self.inner.search(fun, grad, x, fx, gx, direction, max_step)
        return LineSearchResult(alpha=0.0, x=np.array(x), fx=fx, grad=None, valid=False)


class FlatGradientLineSearch:
    """Accepts a half step but reports an unchanged gradient (so s . y = 0)."""

    def search(self, fun, grad, x, fx, gx, direction, max_step=None):
        x_new = x + 0.5 * direction
        return LineSearchResult(
            alpha=0.5, x=x_new, fx=fun(x_new), grad=np.array(gx), valid=True
        )


def test_curvature_ok():
    s = np.array([1.0, 2.0])
    assert curvature_ok(s, s)
    assert not curvature_ok(s, -s)
    assert not curvature_ok(s, np.zeros(2))
    assert not curvature_ok(s, np.array([np.nan, 1.0]))


@pytest.mark.parametrize("algorithm_cls", [BFGS, LBFGS])
def test_flat_curvature_skips_update(algorithm_cls):
    algorithm = algorithm_cls()
    algorithm.line_search = FlatGradientLineSearch()
    obj = make_quadratic()
    status = algorithm.initialize(obj, [1.0, 1.0, 1.0])
    algorithm.step(obj, status)

    assert status.n_skipped_updates == 1
    assert status.n_iter == 1
    assert status.fx < scaled_quadratic(np.ones(3))
    if algorithm_cls is BFGS:
        assert np.array_equal(algorithm.inverse_hessian, np.eye(3))
    else:
        assert len(algorithm.history) == 0


def test_failure_without_curvature_information():
    algorithm = LBFGS()
    algorithm.line_search = FlakyLineSearch(n_valid=0)
    status = Minimizer(algorithm).minimize(make_quadratic(), [1.0, 1.0, 1.0])

    assert status.verdict is Verdict.FAILED
    assert not status.converged
    assert status.n_iter == 1
    assert status.n_invalid_line_searches == 2
    assert "line search" in status.message
    assert np.array_equal(status.x, np.ones(3))


@pytest.mark.parametrize("algorithm_cls", [BFGS, LBFGS])
def test_double_failure_restarts_model_before_giving_up(algorithm_cls):
    algorithm = algorithm_cls()
    algorithm.line_search = FlakyLineSearch(n_valid=2)
    status = Minimizer(algorithm).minimize(make_quadratic(), [1.0, 1.0, 1.0])

    # Two good steps, one iteration that restarts the model, one that fails.
    assert status.verdict is Verdict.FAILED
    assert status.n_iter == 4
    assert status.n_invalid_line_searches == 4
    assert status.n_history_reboots == 0


def test_lbfgsb_reboots_history_after_consecutive_invalid_searches():
    algorithm = LBFGSB()
    algorithm.line_search = FlakyLineSearch(n_valid=2)
    status = Minimizer(algorithm).minimize(
        make_quadratic(), [1.0, 1.0, 1.0], bounds=[(-5.0, 5.0)] * 3
    )

    assert status.n_history_reboots == 1
    assert status.verdict is Verdict.FAILED
    assert status.n_iter == 4
    assert status.n_invalid_line_searches == 4
    assert len(algorithm.history) == 0


def test_lbfgsb_reboot_threshold_is_configurable():
    algorithm = LBFGSB(LBFGSBConfig(reboot_after=1))
    algorithm.line_search = FlakyLineSearch(n_valid=2)
    status = Minimizer(algorithm).minimize(make_quadratic(), [1.0, 1.0, 1.0])
    assert status.n_history_reboots == 1
    assert status.verdict is Verdict.FAILED


def test_lbfgsb_config_validation():
    with pytest.raises(ValueError):
        LBFGSBConfig(reboot_after=0)
    with pytest.raises(ValueError):
        LBFGSConfig(memory=0)


def test_bfgs_inverse_hessian_stays_positive_definite(debug_mode):
    algorithm = BFGS()
    obj = Rosenbrock()
    status = algorithm.initialize(obj, [-1.2, 1.0])
    for _ in range(15):
        algorithm.step(obj, status)
        assert np.linalg.eigvalsh(algorithm.inverse_hessian).min() > 0
        assert np.array_equal(status.hess_inv, algorithm.inverse_hessian)


def test_lbfgs_history_is_bounded_by_memory():
    algorithm = LBFGS(LBFGSConfig(memory=3))
    obj = Rosenbrock(n=4)
    status = algorithm.initialize(obj, np.zeros(4))
    for _ in range(8):
        algorithm.step(obj, status)
        assert len(algorithm.history) <= 3
    assert algorithm.history.capacity == 3


def test_bounded_iterates_stay_feasible(debug_mode):
    seen = []
    bounds = [(-0.5, 0.7), (0.0, None)]
    status = Minimizer(LBFGSB(), callbacks=[lambda s: seen.append(s.x.copy())]).minimize(
        Rosenbrock(), [0.0, 0.2], bounds=bounds
    )
    assert seen
    for x in seen:
        assert -0.5 <= x[0] <= 0.7
        assert x[1] >= 0.0
    assert status.converged
    assert status.x[0] == pytest.approx(0.7, abs=1e-6)


def test_non_finite_start_is_a_failure():
    obj = FunctionObjective(lambda x: float("nan"), lambda x: np.zeros(2), dim=2)
    status = Minimizer(LBFGS()).minimize(obj, [0.0, 0.0])
    assert status.verdict is Verdict.FAILED
    assert status.n_iter == 0


def test_step_before_initialize_raises():
    with pytest.raises(RuntimeError):
        BFGS().step(make_quadratic(), None)
