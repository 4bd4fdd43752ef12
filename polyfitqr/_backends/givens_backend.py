"""
CPU backend using the hand-written Givens QR solver.

This is the canonical implementation; every other backend is checked
against it.
"""

import logging

import numpy as np

from .base import BackendBase, LeastSquaresResult, check_design_rank, normal_equations
from .._core.givens import GivensQR
from .._core.matrix import Matrix

logger = logging.getLogger(__name__)


class GivensBackend(BackendBase):
    """
    Givens rotation backend.

    Works in FP64 by default; FP32 is available for single-precision
    data.
    """

    def __init__(self, use_fp64: bool = True):
        self.name = "givens_fp64" if use_fp64 else "givens_fp32"
        self.precision = "fp64" if use_fp64 else "fp32"

    def fit_least_squares(
        self,
        X: Matrix,
        y: Matrix,
        tol=None,
    ) -> LeastSquaresResult:
        """
        Solve the normal equations with Givens QR.

        All computation stays in ``Matrix`` / NumPy at the backend dtype.
        """
        X = Matrix.from_array(X.to_numpy(), dtype=self.dtype)
        y = Matrix.from_array(y.to_numpy(), dtype=self.dtype)
        check_design_rank(X)

        XtX, Xty = normal_equations(X, y)

        solver = GivensQR(tol=tol)
        qr = solver.decompose(XtX)
        coef = solver.solve(Xty)

        logger.debug(
            "%s: solved %d coefficients from %d samples",
            self.name, X.cols, X.rows,
        )
        return self._finish(X, y, coef.data(), qr.R, qr.rank, qr.tol)

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'givens',
            'precision': self.precision,
            'library': f'NumPy {np.__version__}',
        }
