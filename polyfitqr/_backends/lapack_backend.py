"""
CPU backend using NumPy + SciPy.

Reference implementation: LAPACK Householder QR of the same normal
equations the Givens backend solves.
"""

import logging

import numpy as np
from scipy.linalg import qr, solve_triangular

from .base import BackendBase, LeastSquaresResult, check_design_rank, normal_equations
from .._core.givens import SingularMatrixError, default_tolerance
from .._core.matrix import Matrix

logger = logging.getLogger(__name__)


class LapackBackend(BackendBase):
    """
    CPU backend using NumPy + SciPy.

    Always uses FP64 precision.
    """

    def __init__(self):
        self.name = "lapack_fp64"
        self.precision = "fp64"

    def fit_least_squares(
        self,
        X: Matrix,
        y: Matrix,
        tol=None,
    ) -> LeastSquaresResult:
        """Solve the normal equations with scipy.linalg.qr."""
        X = Matrix.from_array(X.to_numpy(), dtype=np.float64)
        y = Matrix.from_array(y.to_numpy(), dtype=np.float64)
        check_design_rank(X)

        XtX, Xty = normal_equations(X, y)
        A = XtX.to_numpy()
        p = A.shape[1]

        Q, R = qr(A, mode='full')

        if tol is None:
            tol = default_tolerance(R)
        R_diag = np.abs(np.diag(R))
        rank = int(np.sum(R_diag > tol))

        if rank < p:
            raise SingularMatrixError(f"Singular system: rank {rank} < {p} columns")

        qty = Q.T @ Xty.to_numpy()
        coef = solve_triangular(R, qty, lower=False)

        logger.debug("%s: rank %d, tol %.3e", self.name, rank, tol)
        return self._finish(X, y, coef, R, rank, float(tol))

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'lapack',
            'precision': 'fp64',
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
