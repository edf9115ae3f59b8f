"""PyTorch integration: objectives whose derivatives come from autograd.

Example:
    >>> import torch
    >>> from qnopt import Minimizer
    >>> from qnopt.optimize import BFGS
    >>> from qnopt.torch import TorchObjective
    >>> obj = TorchObjective(lambda t: ((t - torch.tensor([1.0, 2.0], dtype=t.dtype)) ** 2).sum())
    >>> status = Minimizer(BFGS()).minimize(obj, [0.0, 0.0])
"""

from qnopt.torch.objective import TorchObjective

__all__ = ["TorchObjective"]
