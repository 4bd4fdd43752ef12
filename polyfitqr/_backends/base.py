"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Tuple
from dataclasses import dataclass

from .._core.givens import SingularMatrixError
from .._core.matrix import Matrix


@dataclass
class LeastSquaresResult:
    """Complete least-squares results."""
    coef: np.ndarray
    fitted_values: np.ndarray
    residuals: np.ndarray
    rank: int
    df_residual: int
    qr_R: np.ndarray
    qr_tol: float


def normal_equations(X: Matrix, y: Matrix) -> Tuple[Matrix, Matrix]:
    """Form X'X and X'y."""
    Xt = X.transpose()
    return Xt @ X, Xt @ y


def check_design_rank(X: Matrix) -> int:
    """
    Require a design matrix with full column rank.

    Rank comes from the singular values of X itself (the
    ``numpy.linalg.matrix_rank`` rule), not from the pivots of X'X.

    Raises
    ------
    SingularMatrixError
        If X has fewer rows than columns or is rank deficient.
    """
    if X.rows < X.cols:
        raise SingularMatrixError(
            f"Underdetermined system: {X.rows} samples for {X.cols} coefficients"
        )
    rank = int(np.linalg.matrix_rank(X.to_numpy()))
    if rank < X.cols:
        raise SingularMatrixError(
            f"Singular system: design matrix rank {rank} < {X.cols} columns"
        )
    return rank


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name: str
    precision: str

    @property
    def dtype(self) -> np.dtype:
        """Scalar type used for all computation."""
        return np.dtype(np.float64 if self.precision == 'fp64' else np.float32)

    @abstractmethod
    def fit_least_squares(
        self,
        X: Matrix,
        y: Matrix,
        tol=None,
    ) -> LeastSquaresResult:
        """
        Solve the normal equations X'X c = X'y.

        Backends implement ALL computation internally using their
        native types, only converting at entry/exit.

        Parameters
        ----------
        X : Matrix, shape (n, p)
            Design matrix
        y : Matrix, shape (n, 1)
            Response column
        tol : float, optional
            Singularity tolerance on the diagonal of R

        Returns
        -------
        LeastSquaresResult
            Complete results (all numpy arrays)

        Raises
        ------
        SingularMatrixError
            If X has fewer rows than columns, is rank deficient, or X'X
            is singular within tolerance.
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass

    def _finish(self, X: Matrix, y: Matrix, coef: np.ndarray, R: np.ndarray,
                rank: int, tol: float) -> LeastSquaresResult:
        """Assemble a result from solved coefficients."""
        coef = np.asarray(coef, dtype=self.dtype).reshape(-1)
        fitted = X.to_numpy() @ coef
        residuals = y.data() - fitted
        coef.setflags(write=False)
        return LeastSquaresResult(
            coef=coef,
            fitted_values=fitted,
            residuals=residuals,
            rank=rank,
            df_residual=X.rows - rank,
            qr_R=R,
            qr_tol=tol,
        )
