"""Tests for the Minimizer driver and problem validation."""

import numpy as np
import pytest

from qnopt import (
    BFGS,
    LBFGS,
    LBFGSB,
    BFGSConfig,
    FunctionObjective,
    Minimizer,
    Terminator,
    TerminatorConfig,
    Verdict,
)
from qnopt.core.minimizer import validate_problem
from qnopt.functions import Rosenbrock, rosenbrock, rosenbrock_grad, sphere, sphere_grad


def test_validate_problem_normalizes_inputs():
    obj = FunctionObjective(sphere, dim=2)
    x0, bounds = validate_problem(obj, [1, 2], [(0.0, 3.0), None])
    assert x0.dtype == float
    assert x0.tolist() == [1.0, 2.0]
    assert len(bounds) == 2


@pytest.mark.parametrize(
    "x0, bounds, match",
    [
        ([0.0, 0.0, 0.0], None, "dimension mismatch"),
        ([0.0, 0.0], [(0.0, 1.0)], "dimension mismatch"),
        ([2.0, 0.0], [(0.0, 1.0), None], "outside"),
        ([np.nan, 0.0], None, "finite"),
        ([[0.0, 0.0]], None, "1D"),
    ],
)
def test_invalid_problems_raise_before_evaluation(quadratic, x0, bounds, match):
    with pytest.raises(ValueError, match=match):
        Minimizer(BFGS()).minimize(quadratic, x0, bounds=bounds)
    assert quadratic.n_evaluate == 0
    assert quadratic.n_gradient == 0


def test_parameter_names_are_validated_and_recorded(quadratic):
    minimizer = Minimizer(BFGS())
    with pytest.raises(ValueError):
        minimizer.initialize(quadratic, [0.0, 0.0], parameter_names=["a"])
    status = minimizer.minimize(quadratic, [0.0, 0.0], parameter_names=["a", "b"])
    assert status.parameter_names == ["a", "b"]


def test_run_requires_initialize():
    with pytest.raises(RuntimeError):
        Minimizer(LBFGS()).run()


def test_status_is_none_before_initialize():
    minimizer = Minimizer(LBFGS())
    assert minimizer.status is None
    assert minimizer.decision is None


def test_default_iteration_cap_comes_from_algorithm():
    assert Minimizer(BFGS()).terminator.max_iterations == 500
    assert Minimizer(BFGS(BFGSConfig(max_iterations=20))).terminator.max_iterations == 20
    assert Minimizer(LBFGS()).terminator.max_iterations == 1000


def test_max_iterations_verdict():
    term = Terminator(TerminatorConfig(max_iterations=3))
    status = Minimizer(LBFGS(), terminator=term).minimize(Rosenbrock(), [-1.2, 1.0])
    assert status.verdict is Verdict.MAX_ITERATIONS
    assert status.n_iter == 3
    assert not status.converged
    assert status.message.startswith("max_iterations")


def test_zero_iteration_cap_only_evaluates_start():
    term = Terminator(TerminatorConfig(max_iterations=0))
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    status = Minimizer(BFGS(BFGSConfig(skip_hessian=True)), terminator=term).minimize(
        obj, [-1.2, 1.0]
    )
    assert status.verdict is Verdict.MAX_ITERATIONS
    assert status.n_iter == 0
    assert status.n_f_evals == 1
    assert status.n_g_evals == 1
    assert status.fx == pytest.approx(24.2)


def test_callbacks_receive_snapshots_every_iteration():
    seen = []

    def record(status):
        seen.append(status.n_iter)
        status.x[:] = 1e9

    status = Minimizer(LBFGS(), callbacks=[record]).minimize(Rosenbrock(), [-1.2, 1.0])
    assert seen == list(range(1, status.n_iter + 1))
    assert np.allclose(status.x, [1.0, 1.0], atol=1e-4)


@pytest.mark.parametrize("algorithm", [BFGS, LBFGS, LBFGSB])
def test_reinitialize_gives_identical_runs(algorithm):
    minimizer = Minimizer(algorithm())
    first = minimizer.minimize(Rosenbrock(), [-1.2, 1.0])
    second = minimizer.minimize(Rosenbrock(), [-1.2, 1.0])
    assert np.array_equal(first.x, second.x)
    assert first.n_iter == second.n_iter
    assert first.n_f_evals == second.n_f_evals
    assert first.n_g_evals == second.n_g_evals


def test_status_property_returns_copy(quadratic):
    minimizer = Minimizer(BFGS())
    minimizer.initialize(quadratic, [0.0, 0.0])
    snap = minimizer.status
    snap.n_iter = 42
    assert minimizer.status.n_iter == 0


def test_finalize_reports_covariance():
    obj = FunctionObjective(sphere, sphere_grad, dim=3)
    status = Minimizer(BFGS()).minimize(obj, [1.0, -2.0, 0.5])
    assert status.converged
    assert status.n_h_evals == 1
    assert np.allclose(status.hessian, 2.0 * np.eye(3), atol=1e-6)
    assert np.allclose(status.cov, 0.5 * np.eye(3), atol=1e-6)
    assert np.allclose(status.std, np.sqrt(0.5), atol=1e-6)


def test_skip_hessian_leaves_covariance_unset(quadratic):
    status = Minimizer(BFGS(BFGSConfig(skip_hessian=True))).minimize(quadratic, [0.0, 0.0])
    assert status.converged
    assert status.n_h_evals == 0
    assert status.cov is None
    assert status.std is None


def test_decision_is_recorded(quadratic):
    minimizer = Minimizer(BFGS())
    status = minimizer.minimize(quadratic, [0.0, 0.0])
    assert minimizer.decision.verdict is status.verdict
    assert status.message.startswith("converged")
