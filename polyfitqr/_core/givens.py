"""
QR decomposition by Givens rotations.

Eliminates sub-diagonal entries column by column with plane rotations,
accumulating Q explicitly, then solves A x = b by back-substitution on
R x = Q'b.
"""

import logging
import warnings
from dataclasses import dataclass

import numpy as np
from numpy.exceptions import RankWarning

from .matrix import Matrix

logger = logging.getLogger(__name__)


class SingularMatrixError(np.linalg.LinAlgError):
    """System cannot be solved: zero (or near-zero) pivot in R."""


@dataclass
class QRDecomposition:
    """Result of a Givens QR decomposition."""
    Q: np.ndarray        # Orthogonal factor, shape (m, m)
    R: np.ndarray        # Upper triangular factor, shape (m, n)
    rank: int            # Diagonal entries of R above tol
    tol: float           # Singularity tolerance used
    n_rotations: int     # Rotations actually applied


def givens_rotation(a, b):
    """
    Rotation (c, s) mapping (a, b) to (r, 0).

    With r = hypot(a, b): c = a / r, s = b / r. Returns the identity
    rotation (1, 0) when a = b = 0.
    """
    r = np.hypot(a, b)
    if r == 0:
        return 1.0, 0.0
    return a / r, b / r


def default_tolerance(R: np.ndarray) -> float:
    """max(m, n) * eps * max|diag(R)| for the dtype of R."""
    m, n = R.shape
    diag = np.abs(np.diag(R))
    if diag.size == 0:
        return 0.0
    eps = np.finfo(R.dtype).eps
    return float(max(m, n) * eps * diag.max())


def back_substitute(R: np.ndarray, y: np.ndarray, tol: float = 0.0) -> np.ndarray:
    """
    Solve the upper triangular system R x = y.

    Parameters
    ----------
    R : ndarray, shape (n, n)
        Upper triangular matrix
    y : ndarray, shape (n,) or (n, k)
        Right-hand side(s)
    tol : float
        Pivots with |R[i, i]| <= tol are treated as zero

    Returns
    -------
    x : ndarray, same shape as y

    Raises
    ------
    SingularMatrixError
        If a pivot is zero within tol.
    """
    n = R.shape[1]
    rhs = y.reshape(n, -1)
    x = np.zeros_like(rhs)

    for i in range(n - 1, -1, -1):
        pivot = R[i, i]
        if not abs(pivot) > tol:
            raise SingularMatrixError(
                f"Singular system: |R[{i}, {i}]| = {abs(pivot):.3e} "
                f"is within tolerance {tol:.3e}"
            )
        x[i] = (rhs[i] - R[i, i + 1:n] @ x[i + 1:]) / pivot

    return x.reshape(y.shape)


class GivensQR:
    """
    QR solver built from Givens rotations.

    Parameters
    ----------
    tol : float, optional
        Absolute tolerance for singular pivots. Defaults to
        ``max(m, n) * eps * max|diag(R)|`` for the matrix dtype.

    Examples
    --------
    >>> solver = GivensQR()
    >>> solver.decompose(XtX)
    >>> coef = solver.solve(Xty)
    """

    def __init__(self, tol=None):
        self.tol = tol
        self._decomposition = None

    def decompose(self, A) -> QRDecomposition:
        """
        Factor A = Q R.

        For each column j, every non-zero entry below the diagonal is
        rotated into row j. A must have at least as many rows as columns.
        """
        if not isinstance(A, Matrix):
            A = Matrix.from_array(A)
        m, n = A.shape
        if m < n:
            raise ValueError(f"QR decomposition needs rows >= cols, got {m}x{n}")

        R = A.to_numpy()
        Q = np.eye(m, dtype=R.dtype)
        tiny = np.finfo(R.dtype).tiny
        n_rotations = 0

        for j in range(min(n, m - 1)):
            for i in range(j + 1, m):
                if abs(R[i, j]) <= tiny:
                    R[i, j] = 0
                    continue

                c, s = givens_rotation(R[j, j], R[i, j])

                row_j = R[j, j:].copy()
                row_i = R[i, j:].copy()
                R[j, j:] = c * row_j + s * row_i
                R[i, j:] = c * row_i - s * row_j
                R[i, j] = 0

                # Q <- Q G'
                col_j = Q[:, j].copy()
                col_i = Q[:, i].copy()
                Q[:, j] = c * col_j + s * col_i
                Q[:, i] = c * col_i - s * col_j

                n_rotations += 1

        tol = default_tolerance(R[:n, :n]) if self.tol is None else float(self.tol)
        diag = np.abs(np.diag(R[:n, :n]))
        rank = int(np.sum(diag > tol))

        if n > 0 and rank == n:
            eps = np.finfo(R.dtype).eps
            if diag.min() / diag.max() < np.sqrt(eps):
                warnings.warn(
                    f"Ill-conditioned system: pivot ratio {diag.min() / diag.max():.2e}. "
                    "Results may be inaccurate.",
                    RankWarning,
                    stacklevel=2,
                )

        logger.debug(
            "Givens QR of %dx%d matrix: %d rotations, rank %d (tol %.3e)",
            m, n, n_rotations, rank, tol,
        )

        self._decomposition = QRDecomposition(
            Q=Q, R=R, rank=rank, tol=tol, n_rotations=n_rotations
        )
        return self._decomposition

    def _require_decomposition(self) -> QRDecomposition:
        if self._decomposition is None:
            raise RuntimeError("decompose() must be called before using the factors")
        return self._decomposition

    @property
    def q(self) -> Matrix:
        return Matrix.from_array(self._require_decomposition().Q)

    @property
    def r(self) -> Matrix:
        return Matrix.from_array(self._require_decomposition().R)

    def solve(self, b) -> Matrix:
        """
        Solve A x = b using the stored factors.

        Parameters
        ----------
        b : Matrix or array-like, shape (m,) or (m, k)

        Returns
        -------
        Matrix, shape (n, k)

        Raises
        ------
        SingularMatrixError
            If R has a zero pivot within tolerance.
        """
        qr = self._require_decomposition()
        m, n = qr.R.shape

        rhs = b.to_numpy() if isinstance(b, Matrix) else np.asarray(b)
        rhs = rhs.astype(qr.R.dtype, copy=False)
        if rhs.ndim == 1:
            rhs = rhs.reshape(-1, 1)
        if rhs.shape[0] != m:
            raise ValueError(
                f"Right-hand side has {rhs.shape[0]} rows, system has {m}"
            )

        qtb = qr.Q.T @ rhs
        x = back_substitute(qr.R[:n, :n], qtb[:n], tol=qr.tol)
        return Matrix.from_array(x, dtype=qr.R.dtype)


def qr_solve(A, b, tol=None) -> Matrix:
    """Decompose A and solve A x = b in one call."""
    solver = GivensQR(tol=tol)
    solver.decompose(A)
    return solver.solve(b)
