"""
Core algorithms (backend-agnostic).
"""

from .matrix import Matrix, multiply
from .givens import (
    GivensQR,
    QRDecomposition,
    SingularMatrixError,
    back_substitute,
    givens_rotation,
    qr_solve,
)

__all__ = [
    "Matrix",
    "multiply",
    "GivensQR",
    "QRDecomposition",
    "SingularMatrixError",
    "back_substitute",
    "givens_rotation",
    "qr_solve",
]
