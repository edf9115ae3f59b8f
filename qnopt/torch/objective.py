"""Objectives written with PyTorch, differentiated by autograd."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import torch

from qnopt.core.objective import Objective


class TorchObjective(Objective):
    """
    Wrap a function of a 1D torch tensor returning a scalar tensor.

    The gradient comes from ``torch.autograd.grad`` and the Hessian from
    ``torch.autograd.functional.hessian``, so neither falls back to finite
    differences. Inputs and outputs at the qnopt boundary are NumPy arrays.

    Example:
        >>> import torch
        >>> obj = TorchObjective(lambda t: ((t - 1.0) ** 2).sum(), dim=2)
        >>> obj.gradient(np.zeros(2)).tolist()
        [-2.0, -2.0]
    """

    def __init__(
        self,
        fun: Callable[[torch.Tensor], torch.Tensor],
        dim: Optional[int] = None,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
    ) -> None:
        if dim is not None and dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        self.fun = fun
        self.dim = dim
        self.dtype = dtype
        self.device = device if device is not None else torch.device("cpu")

    def _to_tensor(self, x: np.ndarray, requires_grad: bool = False) -> torch.Tensor:
        tensor = torch.as_tensor(
            np.asarray(x, dtype=float), dtype=self.dtype, device=self.device
        ).reshape(-1)
        if requires_grad:
            tensor = tensor.detach().clone().requires_grad_(True)
        return tensor

    def _scalar(self, value: torch.Tensor) -> torch.Tensor:
        if value.numel() != 1:
            raise ValueError(f"objective must return a scalar, got shape {tuple(value.shape)}")
        return value.reshape(())

    def evaluate(self, x: np.ndarray) -> float:
        with torch.no_grad():
            return float(self._scalar(self.fun(self._to_tensor(x))).item())

    def gradient(self, x: np.ndarray) -> np.ndarray:
        params = self._to_tensor(x, requires_grad=True)
        value = self._scalar(self.fun(params))
        if not value.requires_grad:
            return np.zeros(params.numel())
        (grad,) = torch.autograd.grad(value, params, allow_unused=True)
        if grad is None:
            return np.zeros(params.numel())
        return grad.detach().cpu().numpy().astype(float)

    def hessian(self, x: np.ndarray) -> np.ndarray:
        params = self._to_tensor(x)
        hess = torch.autograd.functional.hessian(
            lambda t: self._scalar(self.fun(t)), params
        )
        return hess.detach().cpu().numpy().astype(float)


__all__ = ["TorchObjective"]
