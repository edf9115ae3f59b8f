"""
Example: comparing the quasi-Newton solvers on the Rosenbrock function.

Runs BFGS, L-BFGS and L-BFGS-B from the classic starting point (-1.2, 1) and
prints iterations, evaluation counts and the final point of each run.
"""

import numpy as np

from qnopt import BFGS, LBFGS, LBFGSB, LBFGSConfig, Minimizer
from qnopt.functions import Rosenbrock


def run_solver(name, algorithm, bounds=None):
    objective = Rosenbrock(n=2)
    status = Minimizer(algorithm).minimize(objective, np.array([-1.2, 1.0]), bounds=bounds)
    print(
        f"{name:<10} iters={status.n_iter:<4} #f={status.n_f_evals:<4} "
        f"#grad={status.n_g_evals:<4} f={status.fx:.3e} x={np.round(status.x, 6)}"
    )
    return status


def main():
    print("=" * 60)
    print("Rosenbrock: f(x, y) = (1 - x)^2 + 100 (y - x^2)^2")
    print("=" * 60)
    results = [
        run_solver("BFGS", BFGS()),
        run_solver("L-BFGS", LBFGS(LBFGSConfig(memory=5))),
        run_solver("L-BFGS-B", LBFGSB(), bounds=[(-2.0, 2.0), (-2.0, 2.0)]),
    ]
    if all(status.converged for status in results):
        print("All solvers converged to the minimum at (1, 1)")


if __name__ == "__main__":
    main()
