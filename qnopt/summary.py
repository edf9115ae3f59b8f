"""Human-readable summaries of a finished run."""

from __future__ import annotations

import sys
from typing import IO, Any, Dict, Optional

import numpy as np

from qnopt.core.status import Status


def status_summary(status: Status, at_bound_tol: float = 1e-8) -> Dict[str, Any]:
    """
    Collect the headline numbers of a run into a dictionary.

    Parameters
    ----------
    status:
        Status returned by :meth:`~qnopt.core.minimizer.Minimizer.minimize`.
    at_bound_tol:
        Distance from a bound below which a parameter is reported at its limit.

    Returns
    -------
    Dict[str, Any]
        Keys ``verdict``, ``converged``, ``fx``, ``n_iter``, ``n_f_evals``,
        ``n_g_evals``, ``n_h_evals``, ``message`` and ``parameters`` (one dict
        per parameter with ``name``, ``value``, ``std``, ``initial``,
        ``lower``, ``upper`` and ``at_limit``).
    """
    n = status.dim
    names = status.parameter_names or [f"x_{i}" for i in range(n)]
    std = status.std if status.std is not None else np.full(n, np.nan)
    if status.bounds is not None:
        lower, upper = status.bounds.lower, status.bounds.upper
    else:
        lower, upper = np.full(n, -np.inf), np.full(n, np.inf)
    at_limit = status.at_bounds(at_bound_tol)

    parameters = [
        {
            "name": names[i],
            "value": float(status.x[i]),
            "std": float(std[i]),
            "initial": float(status.x0[i]),
            "lower": float(lower[i]),
            "upper": float(upper[i]),
            "at_limit": bool(at_limit[i]),
        }
        for i in range(n)
    ]
    return {
        "verdict": status.verdict.value,
        "converged": status.converged,
        "fx": float(status.fx),
        "n_iter": status.n_iter,
        "n_f_evals": status.n_f_evals,
        "n_g_evals": status.n_g_evals,
        "n_h_evals": status.n_h_evals,
        "message": status.message,
        "parameters": parameters,
    }


def print_status_summary(status: Status, file: Optional[IO[str]] = None) -> None:
    """
    Pretty-print a run summary to stdout or a file.

    This is a utility function for human-readable output, so it uses print()
    intentionally. For programmatic access, use status_summary() instead.
    """
    if file is None:
        file = sys.stdout

    summary = status_summary(status)
    state = "Converged" if summary["converged"] else "Invalid Minimum"

    print("FIT RESULTS", file=file)
    print("=" * 78, file=file)
    print(
        f"Status: {state:<16} f(x): {summary['fx']:+.5e}   "
        f"#f(x): {summary['n_f_evals']}   #grad: {summary['n_g_evals']}   "
        f"#iter: {summary['n_iter']}",
        file=file,
    )
    print(f"Message: {summary['message']}", file=file)
    print("-" * 78, file=file)
    print(
        f"{'Parameter':<12}{'Value':>13}{'Uncertainty':>13}{'Initial':>13}"
        f"{'-Bound':>10}{'+Bound':>10}  At Limit?",
        file=file,
    )
    for p in summary["parameters"]:
        print(
            f"{p['name']:<12}{p['value']:>+13.5e}{p['std']:>+13.5e}{p['initial']:>+13.5e}"
            f"{p['lower']:>10.3g}{p['upper']:>10.3g}  {'Yes' if p['at_limit'] else 'No'}",
            file=file,
        )


__all__ = ["status_summary", "print_status_summary"]
