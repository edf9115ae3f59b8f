"""
Example: a bounded least-squares fit with L-BFGS-B.

Fits the decay rate and amplitude of ``y = a exp(-k t)`` to noisy data while
constraining ``a`` to [0, 2] and ``k`` to be non-negative, then prints the
fit summary including parameter uncertainties.
"""

import numpy as np

from qnopt import FunctionObjective, LBFGSB, Minimizer, print_status_summary


def main():
    rng = np.random.default_rng(7)
    t = np.linspace(0.0, 4.0, 40)
    data = 1.5 * np.exp(-0.8 * t) + 0.02 * rng.standard_normal(t.size)

    def chi2(params):
        a, k = params
        residual = data - a * np.exp(-k * t)
        return float(np.sum(residual**2) / 0.02**2)

    def chi2_grad(params):
        a, k = params
        model = np.exp(-k * t)
        residual = data - a * model
        scale = -2.0 / 0.02**2
        return np.array(
            [scale * np.sum(residual * model), scale * np.sum(residual * (-a * t * model))]
        )

    objective = FunctionObjective(chi2, chi2_grad, dim=2)
    status = Minimizer(LBFGSB()).minimize(
        objective,
        [1.0, 0.5],
        bounds=[(0.0, 2.0), (0.0, None)],
        parameter_names=["amplitude", "rate"],
    )
    print_status_summary(status)
    print(f"Fitted amplitude = {status.x[0]:.4f}, rate = {status.x[1]:.4f}")


if __name__ == "__main__":
    main()
