"""
polyfitqr: least-squares curve and surface fitting with Givens QR.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

import logging

__version__ = "1.0.0"

# Import main user-facing API
from .curve import polyfit, polyval, PolynomialModel, polymodel
from .surface import (
    normalize,
    conic_design,
    polyfit3d,
    polyval3d,
    SurfaceModel,
    surfmodel,
)

# Linear algebra building blocks
from ._core import Matrix, GivensQR, SingularMatrixError, qr_solve

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'polyfit',
    'polyval',
    'PolynomialModel',
    'polymodel',
    'normalize',
    'conic_design',
    'polyfit3d',
    'polyval3d',
    'SurfaceModel',
    'surfmodel',
    'Matrix',
    'GivensQR',
    'SingularMatrixError',
    'qr_solve',
    'get_backend',
    'list_available_backends',
]
