"""
Backend using PyTorch.

Solves the normal equations with torch.linalg.qr on CPU or CUDA.
"""

import logging
import warnings
from typing import Optional, Any

import numpy as np

from .base import BackendBase, LeastSquaresResult, check_design_rank, normal_equations
from .._core.givens import SingularMatrixError
from .._core.matrix import Matrix

logger = logging.getLogger(__name__)


class TorchBackend(BackendBase):
    """
    PyTorch backend with FP32 or FP64 precision.

    Keeps the solve on the selected device using torch tensors.
    Only converts at entry (numpy -> torch) and exit (torch -> numpy).
    """

    def __init__(self, use_fp64: bool = True, device: Optional[str] = None):
        """Initialize PyTorch backend."""
        self.name = "torch_fp64" if use_fp64 else "torch_fp32"
        self.precision = "fp64" if use_fp64 else "fp32"

        try:
            import torch
            self.torch = torch
        except ImportError:
            raise ImportError(
                "PyTorch required for torch backend. "
                "Install: pip install torch"
            )

        self.device = self._select_device(device)

    def _select_device(self, requested: Optional[str]) -> Any:
        """Select CPU or CUDA device."""
        torch = self.torch

        if requested is None:
            return torch.device('cuda' if torch.cuda.is_available() else 'cpu')

        device = torch.device(requested)
        if device.type == 'mps' and self.precision == 'fp64':
            raise RuntimeError(
                "FP64 not supported on Apple Metal. "
                "Use use_fp64=False or the CPU."
            )
        if device.type == 'cuda' and not torch.cuda.is_available():
            warnings.warn("No CUDA GPU available, using CPU")
            return torch.device('cpu')
        return device

    @property
    def _torch_dtype(self):
        return self.torch.float64 if self.precision == 'fp64' else self.torch.float32

    def fit_least_squares(
        self,
        X: Matrix,
        y: Matrix,
        tol=None,
    ) -> LeastSquaresResult:
        """
        Solve the normal equations with torch.linalg.qr.

        The normal equations are formed with ``Matrix`` on the host and
        moved to the device once.
        """
        torch = self.torch
        X = Matrix.from_array(X.to_numpy(), dtype=self.dtype)
        y = Matrix.from_array(y.to_numpy(), dtype=self.dtype)
        check_design_rank(X)

        XtX, Xty = normal_equations(X, y)
        A = torch.from_numpy(XtX.to_numpy()).to(self.device, self._torch_dtype)
        b = torch.from_numpy(Xty.to_numpy()).to(self.device, self._torch_dtype)
        p = A.shape[1]

        Q, R = torch.linalg.qr(A, mode='complete')

        R_diag = torch.abs(torch.diagonal(R))
        if tol is None:
            eps = torch.finfo(self._torch_dtype).eps
            tol = float(p * eps * R_diag.max().item()) if p else 0.0
        rank = int(torch.sum(R_diag > tol).item())

        if rank < p:
            raise SingularMatrixError(f"Singular system: rank {rank} < {p} columns")

        coef = torch.linalg.solve_triangular(R, Q.T @ b, upper=True)

        logger.debug("%s on %s: rank %d, tol %.3e", self.name, self.device, rank, tol)

        # Convert ONCE at exit
        return self._finish(
            X, y,
            coef.cpu().numpy(),
            R.cpu().numpy(),
            rank,
            tol,
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'torch',
            'precision': self.precision,
            'device': str(self.device),
            'library': f'PyTorch {self.torch.__version__}, NumPy {np.__version__}',
        }
