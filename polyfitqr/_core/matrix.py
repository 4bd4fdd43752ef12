"""
Dense matrix container.

Minimal row-major matrix used to build design matrices and normal
equations. Storage is a private NumPy array; every operation that
produces a matrix hands back a fresh copy.
"""

import operator

import numpy as np
from typing import Tuple

from .._utils import check_float_dtype


class Matrix:
    """
    Rectangular grid of floating-point values with fixed dimensions.

    Parameters
    ----------
    rows, cols : int
        Dimensions, fixed for the lifetime of the matrix.
    dtype : numpy dtype, default=float64
        Scalar type; must be floating point (float32 or float64).

    Examples
    --------
    >>> m = Matrix(2, 3)
    >>> m[0, 1] = 4.0
    >>> m.transpose().shape
    (3, 2)
    """

    __slots__ = ('_values',)

    def __init__(self, rows: int, cols: int, dtype=np.float64):
        dtype = check_float_dtype(dtype)
        rows = operator.index(rows)
        cols = operator.index(cols)
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be >= 0, got ({rows}, {cols})")
        self._values = np.zeros((rows, cols), dtype=dtype)

    @classmethod
    def from_array(cls, values, dtype=None) -> 'Matrix':
        """
        Build a matrix from an array-like.

        1-D input becomes an n x 1 column. The data is copied.
        """
        arr = np.asarray(values)
        if dtype is None:
            dtype = arr.dtype if np.issubdtype(arr.dtype, np.floating) else np.float64
        if arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        elif arr.ndim != 2:
            raise ValueError(f"Matrix input must be 1- or 2-dimensional, got {arr.ndim}")
        out = cls(arr.shape[0], arr.shape[1], dtype=dtype)
        out._values[...] = arr
        return out

    @classmethod
    def identity(cls, n: int, dtype=np.float64) -> 'Matrix':
        """n x n identity matrix."""
        out = cls(n, n, dtype=dtype)
        np.fill_diagonal(out._values, 1)
        return out

    # ~~ size queries

    @property
    def rows(self) -> int:
        return self._values.shape[0]

    @property
    def cols(self) -> int:
        return self._values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    @property
    def dtype(self) -> np.dtype:
        return self._values.dtype

    # ~~ element access

    def _check_index(self, key) -> Tuple[int, int]:
        if not isinstance(key, tuple) or len(key) != 2:
            raise TypeError("Matrix indices must be a (row, col) pair")
        row, col = (operator.index(k) for k in key)
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(
                f"Index ({row}, {col}) out of range for {self.rows}x{self.cols} matrix"
            )
        return row, col

    def __getitem__(self, key):
        return self._values[self._check_index(key)]

    def __setitem__(self, key, value):
        self._values[self._check_index(key)] = value

    # ~~ algebra

    def transpose(self) -> 'Matrix':
        """New matrix with M^T[j, i] = M[i, j]."""
        out = Matrix(self.cols, self.rows, dtype=self.dtype)
        out._values[...] = self._values.T
        return out

    @property
    def T(self) -> 'Matrix':
        return self.transpose()

    def __matmul__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return multiply(self, other)

    def row(self, i: int) -> 'Matrix':
        """Copy of row i as a 1 x cols matrix."""
        i = operator.index(i)
        if not 0 <= i < self.rows:
            raise IndexError(f"Row {i} out of range for {self.rows}x{self.cols} matrix")
        out = Matrix(1, self.cols, dtype=self.dtype)
        out._values[0, :] = self._values[i, :]
        return out

    def data(self) -> np.ndarray:
        """Flattened row-major copy of all elements."""
        return self._values.ravel(order='C').copy()

    def to_numpy(self) -> np.ndarray:
        """2-D copy of the matrix contents."""
        return self._values.copy()

    # ~~ comparison / display

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._values, other._values))

    __hash__ = None

    def __repr__(self):
        body = np.array2string(self._values, precision=6, separator=', ')
        return f"Matrix({self.rows}x{self.cols}, dtype={self.dtype.name},\n{body})"


def multiply(a: Matrix, b: Matrix) -> Matrix:
    """
    Matrix product a @ b.

    Raises
    ------
    ValueError
        If a.cols != b.rows.
    """
    if a.cols != b.rows:
        raise ValueError(
            f"Dimension mismatch: cannot multiply {a.rows}x{a.cols} by {b.rows}x{b.cols}"
        )
    dtype = np.result_type(a.dtype, b.dtype)
    out = Matrix(a.rows, b.cols, dtype=dtype)
    # contiguous operands keep the accumulation order fixed
    lhs = np.ascontiguousarray(a._values, dtype=dtype)
    rhs = np.ascontiguousarray(b._values, dtype=dtype)
    np.dot(lhs, rhs, out=out._values)
    return out
