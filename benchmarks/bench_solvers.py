"""Benchmark the quasi-Newton solvers on the n-dimensional Rosenbrock function."""

import time
from typing import Dict

import numpy as np

from qnopt import BFGS, LBFGS, LBFGSB, Minimizer
from qnopt.functions import Rosenbrock


def benchmark_solver(name: str, n: int, repeats: int = 5) -> Dict[str, float]:
    """Time repeated minimizations of Rosenbrock in ``n`` dimensions.

    Args:
        name: One of "bfgs", "lbfgs", "lbfgsb".
        n: Problem dimension.
        repeats: Number of timed runs.

    Returns:
        Dictionary with timing and iteration statistics.
    """
    factories = {"bfgs": BFGS, "lbfgs": LBFGS, "lbfgsb": LBFGSB}
    minimizer = Minimizer(factories[name]())
    objective = Rosenbrock(n=n)
    x0 = np.full(n, 5.0)
    bounds = [(-10.0, 10.0)] * n if name == "lbfgsb" else None

    # Warmup
    minimizer.minimize(objective, x0, bounds=bounds)

    times = []
    status = None
    for _ in range(repeats):
        start = time.perf_counter()
        status = minimizer.minimize(objective, x0, bounds=bounds)
        times.append(time.perf_counter() - start)

    return {
        "mean_time": float(np.mean(times)),
        "std_time": float(np.std(times)),
        "iterations": float(status.n_iter),
        "f_evals": float(status.n_f_evals),
        "converged": float(status.converged),
    }


def main() -> None:
    print("=" * 70)
    print("Quasi-Newton benchmark: Rosenbrock, x0 = (5, ..., 5)")
    print("=" * 70)
    for n in (2, 3, 4, 5, 10):
        for name in ("bfgs", "lbfgs", "lbfgsb"):
            stats = benchmark_solver(name, n)
            print(
                f"n={n:<3} {name:<7} {stats['mean_time'] * 1e3:8.2f} ms "
                f"(+/- {stats['std_time'] * 1e3:.2f})  iters={int(stats['iterations']):<5} "
                f"#f={int(stats['f_evals']):<5} converged={bool(stats['converged'])}"
            )


if __name__ == "__main__":
    main()
