"""Tests for objectives and their finite-difference derivatives."""

import numpy as np
import pytest

from qnopt.core.bounds import Bounds
from qnopt.core.objective import BoundedObjective, FunctionObjective, Objective
from qnopt.functions import Rosenbrock, rosenbrock, rosenbrock_grad, rosenbrock_hess


def test_objective_is_abstract():
    with pytest.raises(TypeError):
        Objective()


def test_finite_difference_gradient_matches_analytic():
    obj = FunctionObjective(rosenbrock, dim=2)
    x = np.array([-1.2, 1.0])
    assert np.allclose(obj.gradient(x), rosenbrock_grad(x), atol=1e-4)
    assert obj(x) == pytest.approx(24.2)


def test_finite_difference_hessian_from_analytic_gradient():
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    x = np.array([0.5, -0.3])
    hess = obj.hessian(x)
    assert np.allclose(hess, rosenbrock_hess(x), atol=1e-4)
    assert np.array_equal(hess, hess.T)


def test_threaded_probes_are_deterministic():
    x = np.linspace(-1.0, 1.5, 6)
    serial = FunctionObjective(rosenbrock, dim=6)
    threaded = FunctionObjective(rosenbrock, dim=6, max_workers=4)
    assert np.array_equal(serial.gradient(x), threaded.gradient(x))
    assert np.array_equal(serial.hessian(x), threaded.hessian(x))


def test_analytic_callables_take_precedence():
    calls = []

    def grad(x):
        calls.append("grad")
        return 2.0 * x

    obj = FunctionObjective(lambda x: float(x @ x), grad=grad, hess=lambda x: 2.0 * np.eye(2))
    assert obj.gradient(np.array([1.0, 2.0])).tolist() == [2.0, 4.0]
    assert obj.hessian(np.zeros(2)).tolist() == [[2.0, 0.0], [0.0, 2.0]]
    assert calls == ["grad"]


def test_function_objective_rejects_non_positive_dim():
    with pytest.raises(ValueError):
        FunctionObjective(lambda x: 0.0, dim=0)


def test_rosenbrock_objective_class():
    obj = Rosenbrock(n=4)
    assert obj.dim == 4
    assert obj.evaluate(np.ones(4)) == 0.0
    assert np.array_equal(obj.gradient(np.ones(4)), np.zeros(4))
    with pytest.raises(ValueError):
        Rosenbrock(n=1)


def test_bounded_objective_applies_chain_rule():
    obj = FunctionObjective(rosenbrock, rosenbrock_grad, dim=2)
    bounds = Bounds([(-2.0, 2.0), (0.0, None)])
    view = BoundedObjective(obj, bounds)
    z = view.to_internal(np.array([0.3, 0.7]))

    g_int, g_ext = view.gradients(z)
    assert np.allclose(g_ext, rosenbrock_grad(view.to_external(z)))

    h = 1e-6
    numeric = np.array(
        [
            (view.evaluate(z + h * e) - view.evaluate(z - h * e)) / (2 * h)
            for e in np.eye(2)
        ]
    )
    assert np.allclose(g_int, numeric, atol=1e-5)
    assert np.array_equal(view.gradient(z), g_int)


def test_bounded_objective_dimension_mismatch():
    obj = FunctionObjective(rosenbrock, dim=3)
    with pytest.raises(ValueError, match="dimension"):
        BoundedObjective(obj, Bounds([None, None]))


def test_objectives_report_which_derivatives_are_analytic():
    assert not FunctionObjective(rosenbrock).has_gradient
    assert not FunctionObjective(rosenbrock).has_hessian
    with_grad = FunctionObjective(rosenbrock, rosenbrock_grad)
    assert with_grad.has_gradient
    assert not with_grad.has_hessian
    assert FunctionObjective(rosenbrock, rosenbrock_grad, rosenbrock_hess).has_hessian
    assert Rosenbrock().has_gradient


def test_bounded_objective_differences_inside_the_box():
    def fun(x):
        if not 0.0 <= x[0] <= 1.0:
            raise ValueError("outside the domain")
        return float((x[0] - 2.0) ** 2 + x[1] ** 2)

    bounds = Bounds([(0.0, 1.0), None])
    view = BoundedObjective(FunctionObjective(fun, dim=2), bounds)
    x = np.array([1.0, 0.5])
    assert np.allclose(view.external_gradient(x), [-2.0, 1.0], atol=1e-6)
    assert np.allclose(view.external_hessian(x), np.diag([2.0, 2.0]), atol=0.05)

    g_int, g_ext = view.gradients(view.to_internal(np.array([0.0, 0.5])))
    assert np.allclose(g_ext, [-4.0, 1.0], atol=1e-6)
    assert np.all(np.isfinite(g_int))
