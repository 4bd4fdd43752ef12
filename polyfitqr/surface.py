"""
Quadratic surface fitting z = f(x, y).

The surface is the general conic

    z = c0 + c1 x + c2 y + c3 x y + c4 x^2 + c5 y^2

fitted in coordinates shifted so the first sample sits at the origin.
Coefficients and fitted values are expressed in that shifted frame.
"""

import logging

import numpy as np
import pandas as pd
from typing import Optional, Tuple, Union

from ._backends import get_backend
from ._core.matrix import Matrix
from ._model import FittedModel, resolve_column
from ._utils import check_same_length, check_vector

logger = logging.getLogger(__name__)

# 3 unknowns in 2 dimensions
N_CONIC_TERMS = 6


def normalize(xs, ys, inplace: bool = False, dtype=np.float64):
    """
    Shift samples so the first one is at (0, 0).

    Parameters
    ----------
    xs, ys : array-like, shape (n,)
        Sample coordinates
    inplace : bool, default=False
        Subtract in place (xs and ys must be mutable sequences) instead
        of returning new arrays.
    dtype : numpy dtype
        Type of the returned arrays when not in place

    Returns
    -------
    xs, ys : normalized coordinates (the inputs themselves when inplace)
    origin : tuple
        The (x, y) of the first sample before shifting
    """
    n = check_same_length(('X', xs), ('Y', ys))
    if n == 0:
        raise ValueError("normalize needs at least one sample")

    x0, y0 = xs[0], ys[0]
    origin = (float(x0), float(y0))

    if inplace:
        for i in range(n):
            xs[i] = xs[i] - x0
            ys[i] = ys[i] - y0
        return xs, ys, origin

    xs_n = np.array(xs, dtype=dtype) - np.asarray(x0, dtype=dtype)
    ys_n = np.array(ys, dtype=dtype) - np.asarray(y0, dtype=dtype)
    return xs_n, ys_n, origin


def conic_design(xs, ys, dtype=np.float64) -> Matrix:
    """
    Design matrix with rows [1, x, y, x*y, x^2, y^2].

    Expects coordinates already passed through ``normalize``.
    """
    n = check_same_length(('X', xs), ('Y', ys))
    XY = Matrix(n, N_CONIC_TERMS, dtype=dtype)
    for row in range(n):
        x = xs[row]
        y = ys[row]
        XY[row, 0] = 1
        XY[row, 1] = x
        XY[row, 2] = y
        XY[row, 3] = x * y
        XY[row, 4] = x * x
        XY[row, 5] = y * y
    return XY


def _fit_surface(xs, ys, zs, backend='auto', use_fp64=None, tol=None, inplace=False):
    """Shared fitting path; returns (backend, result, design, origin)."""
    check_same_length(('X', xs), ('Y', ys), ('Z', zs))

    be = get_backend(backend, use_fp64=use_fp64)
    xs_v = check_vector(xs, name='xs', dtype=be.dtype)
    ys_v = check_vector(ys, name='ys', dtype=be.dtype)
    zs_v = check_vector(zs, name='zs', dtype=be.dtype)

    xs_n, ys_n, origin = normalize(xs_v, ys_v, dtype=be.dtype)
    if inplace:
        normalize(xs, ys, inplace=True)

    design = conic_design(xs_n, ys_n, dtype=be.dtype)
    z = Matrix.from_array(zs_v, dtype=be.dtype)

    logger.debug(
        "Fitting conic surface to %d samples (origin %s)", len(zs_v), origin
    )
    return be, be.fit_least_squares(design, z, tol=tol), design, origin


def polyfit3d(
    xs,
    ys,
    zs,
    backend='auto',
    use_fp64: Optional[bool] = None,
    tol: Optional[float] = None,
    inplace: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Least-squares conic surface fit.

    Parameters
    ----------
    xs, ys, zs : array-like, shape (n,)
        Sample coordinates
    backend : str
        Solver backend: 'auto', 'givens', 'lapack', 'torch'
    use_fp64 : bool, optional
        False selects single precision
    tol : float, optional
        Singular pivot tolerance
    inplace : bool, default=False
        Also normalize xs and ys in place

    Returns
    -------
    coef : ndarray, shape (6,)
        Coefficients of [1, x, y, xy, x^2, y^2] in the normalized frame
    calculated : ndarray, shape (n,)
        Fitted z at every sample

    Raises
    ------
    ValueError
        If xs, ys and zs differ in length.
    SingularMatrixError
        If the samples do not determine all six terms (fewer than six
        samples, or all on one line or conic).
    """
    _, result, design, _ = _fit_surface(
        xs, ys, zs,
        backend=backend, use_fp64=use_fp64, tol=tol, inplace=inplace,
    )
    calculated = polyval3d(result.coef, design)
    return result.coef, calculated


def polyval3d(coeffs, design) -> np.ndarray:
    """
    Evaluate each design row against the coefficients.

    Parameters
    ----------
    coeffs : array-like, shape (p,)
    design : Matrix or array-like, shape (n, p)

    Returns
    -------
    ndarray, shape (n,)
    """
    coeffs = np.asarray(coeffs)
    if not isinstance(design, Matrix):
        design = Matrix.from_array(design)
    if coeffs.size != design.cols:
        raise ValueError(
            f"Dimension mismatch: {coeffs.size} coefficients for "
            f"{design.cols} design columns"
        )

    dtype = np.result_type(design.dtype, coeffs.dtype)
    coeff_col = Matrix.from_array(coeffs.reshape(-1), dtype=dtype)

    z = np.empty(design.rows, dtype=dtype)
    for i in range(design.rows):
        z[i] = (design.row(i) @ coeff_col)[0, 0]
    return z


class SurfaceModel(FittedModel):
    """
    Fit a conic surface with a statistical report.

    Examples
    --------
    >>> model = SurfaceModel(z='height', x='east', y='north', data=samples)
    >>> model.summary()
    >>> model.origin
    >>> model.predict([1.0, 2.0], [0.5, 0.5])
    """

    title = "SURFACE FIT RESULTS"

    def __init__(
        self,
        z: Union[str, np.ndarray],
        x: Union[str, np.ndarray],
        y: Union[str, np.ndarray],
        data: Optional[pd.DataFrame] = None,
        backend: str = 'auto',
        use_fp64: Optional[bool] = None,
        tol: Optional[float] = None,
    ):
        x_values, self.x_name = resolve_column(x, data, 'x')
        y_values, self.y_name = resolve_column(y, data, 'y')
        z_values, self.response_name = resolve_column(z, data, 'z')

        self.backend, result, self.design, self.origin = _fit_surface(
            x_values, y_values, z_values,
            backend=backend, use_fp64=use_fp64, tol=tol,
        )
        self.response = np.asarray(z_values, dtype=self.backend.dtype)
        self.var_names = [
            'Intercept',
            self.x_name,
            self.y_name,
            f'{self.x_name}:{self.y_name}',
            f'{self.x_name}^2',
            f'{self.y_name}^2',
        ]

        self._compute_statistics(result)

    def predict(self, x_new, y_new=None) -> np.ndarray:
        """
        Evaluate the fitted surface at new (x, y) positions.

        New coordinates are given in the original frame and shifted by
        the stored origin. A DataFrame with the x and y columns may be
        passed as the only argument.
        """
        if isinstance(x_new, pd.DataFrame):
            x_new, y_new = x_new[self.x_name].values, x_new[self.y_name].values
        if y_new is None:
            raise ValueError("y_new is required unless x_new is a DataFrame")

        dtype = self.backend.dtype
        xs = np.atleast_1d(np.asarray(x_new, dtype=dtype)) - dtype.type(self.origin[0])
        ys = np.atleast_1d(np.asarray(y_new, dtype=dtype)) - dtype.type(self.origin[1])
        return polyval3d(self.coefficients, conic_design(xs, ys, dtype=dtype))

    def __repr__(self):
        return f"SurfaceModel(n={self.n_obs}, R²={self.r_squared:.3f})"


def surfmodel(z, x, y, data=None, **kwargs) -> SurfaceModel:
    """
    Fit a conic surface model (convenience function).

    Parameters
    ----------
    z : str or array
        Response variable
    x, y : str or array
        Sample coordinates
    data : DataFrame, optional
        Dataset
    **kwargs
        Additional arguments passed to SurfaceModel

    Returns
    -------
    SurfaceModel
        Fitted model object
    """
    return SurfaceModel(z=z, x=x, y=y, data=data, **kwargs)
