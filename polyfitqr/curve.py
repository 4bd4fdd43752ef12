"""
Polynomial curve fitting y = c0 + c1 x + ... + cd x^d.

Coefficients come back in increasing powers, constant term first.
"""

import logging
import operator

import numpy as np
import pandas as pd
from typing import Optional, Union

from ._backends import get_backend
from ._core.matrix import Matrix
from ._model import FittedModel, resolve_column
from ._utils import check_same_length, check_vector

logger = logging.getLogger(__name__)


def vandermonde(xs: np.ndarray, degree: int, dtype=np.float64) -> Matrix:
    """
    Design matrix X[row, col] = xs[row]**col.

    Powers are built with a running product rather than pow().
    """
    n = len(xs)
    X = Matrix(n, degree + 1, dtype=dtype)
    for row in range(n):
        value = 1.0
        for col in range(degree + 1):
            X[row, col] = value
            value *= xs[row]
    return X


def _fit_curve(xs, ys, degree, backend='auto', use_fp64=None, tol=None):
    """Shared fitting path; returns (backend, result)."""
    check_same_length(('X', xs), ('Y', ys))
    degree = operator.index(degree)
    if degree < 0:
        raise ValueError(f"degree must be >= 0, got {degree}")

    be = get_backend(backend, use_fp64=use_fp64)
    xs = check_vector(xs, name='xs', dtype=be.dtype)
    ys = check_vector(ys, name='ys', dtype=be.dtype)

    X = vandermonde(xs, degree, dtype=be.dtype)
    y = Matrix.from_array(ys, dtype=be.dtype)

    logger.debug("Fitting degree %d polynomial to %d samples", degree, len(xs))
    return be, be.fit_least_squares(X, y, tol=tol)


def polyfit(xs, ys, degree: int, backend='auto', use_fp64: Optional[bool] = None,
            tol: Optional[float] = None) -> np.ndarray:
    """
    Least-squares polynomial fit.

    Parameters
    ----------
    xs, ys : array-like, shape (n,)
        Sample coordinates
    degree : int
        Polynomial degree (>= 0)
    backend : str
        Solver backend: 'auto', 'givens', 'lapack', 'torch'
    use_fp64 : bool, optional
        False selects single precision
    tol : float, optional
        Singular pivot tolerance

    Returns
    -------
    coef : ndarray, shape (degree + 1,)
        Read-only coefficients, constant term first

    Raises
    ------
    ValueError
        If xs and ys differ in length.
    SingularMatrixError
        If there are fewer samples, or fewer distinct xs, than
        coefficients.

    Examples
    --------
    >>> polyfit([0, 1, 2, 3], [1, 3, 5, 7], 1)
    array([1., 2.])
    """
    _, result = _fit_curve(xs, ys, degree, backend=backend, use_fp64=use_fp64, tol=tol)
    return result.coef


def polyval(coeffs, xs) -> np.ndarray:
    """
    Evaluate sum_j coeffs[j] * x**j at each x.

    Powers of x are accumulated by repeated multiplication.
    """
    coeffs = np.asarray(coeffs)
    xs = np.asarray(xs)
    dtype = np.result_type(coeffs.dtype, xs.dtype, np.float32)

    xs = xs.astype(dtype, copy=False)
    ys = np.zeros(xs.shape, dtype=dtype)
    power = np.ones(xs.shape, dtype=dtype)
    for c in coeffs:
        ys += c * power
        power *= xs
    return ys


class PolynomialModel(FittedModel):
    """
    Fit a 1-D polynomial with a statistical report.

    Examples
    --------
    >>> model = PolynomialModel(y='depth', x='distance', degree=2, data=survey)
    >>> model.summary()
    >>> model.coef
    >>> model.predict([10.0, 20.0])
    """

    title = "POLYNOMIAL FIT RESULTS"

    def __init__(
        self,
        y: Union[str, np.ndarray],
        x: Union[str, np.ndarray],
        degree: int = 1,
        data: Optional[pd.DataFrame] = None,
        backend: str = 'auto',
        use_fp64: Optional[bool] = None,
        tol: Optional[float] = None,
    ):
        """
        Parameters
        ----------
        y : str or array
            Response values, or a column name in data
        x : str or array
            Sample positions, or a column name in data
        degree : int
            Polynomial degree
        data : DataFrame, optional
            Dataset containing x and y
        backend : str
            Solver backend
        use_fp64 : bool, optional
            Force double (True) or single (False) precision
        tol : float, optional
            Singular pivot tolerance
        """
        x_values, x_name = resolve_column(x, data, 'x')
        y_values, self.response_name = resolve_column(y, data, 'y')

        self.backend, result = _fit_curve(
            x_values, y_values, degree,
            backend=backend, use_fp64=use_fp64, tol=tol,
        )
        self.x_name = x_name
        self.degree = operator.index(degree)
        self.x_values = np.asarray(x_values, dtype=self.backend.dtype)
        self.response = np.asarray(y_values, dtype=self.backend.dtype)
        self.var_names = ['Intercept'] + [
            x_name if k == 1 else f'{x_name}^{k}' for k in range(1, self.degree + 1)
        ]

        self._compute_statistics(result)

    def predict(self, x_new) -> np.ndarray:
        """Evaluate the fitted polynomial at new positions."""
        if isinstance(x_new, pd.DataFrame):
            x_new = x_new[self.x_name].values
        return polyval(self.coefficients, x_new)

    def __repr__(self):
        return (f"PolynomialModel(n={self.n_obs}, degree={self.degree}, "
                f"R²={self.r_squared:.3f})")


def polymodel(y, x, degree=1, data=None, **kwargs) -> PolynomialModel:
    """
    Fit a polynomial model (convenience function).

    Parameters
    ----------
    y : str or array
        Response variable
    x : str or array
        Sample positions
    degree : int
        Polynomial degree
    data : DataFrame, optional
        Dataset
    **kwargs
        Additional arguments passed to PolynomialModel

    Returns
    -------
    PolynomialModel
        Fitted model object
    """
    return PolynomialModel(y=y, x=x, degree=degree, data=data, **kwargs)
