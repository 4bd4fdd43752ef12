"""
Utility functions.
"""

import numpy as np


def check_float_dtype(dtype):
    """Validate that dtype is a floating scalar type."""
    dtype = np.dtype(dtype)
    if not np.issubdtype(dtype, np.floating):
        raise TypeError(f"Scalar type must be floating point, got {dtype}")
    return dtype


def check_vector(y, name='y', dtype=np.float64):
    """Validate vector input."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional")
    if not np.all(np.isfinite(y)):
        raise ValueError(f"{name} contains NaN or Inf")
    return y


def check_same_length(*named):
    """
    Validate that all (name, sequence) pairs have equal length.

    Runs before any conversion so mismatches surface first.
    """
    lengths = [(name, len(seq)) for name, seq in named]
    first_name, first_len = lengths[0]
    for name, n in lengths[1:]:
        if n != first_len:
            raise ValueError(
                f"{first_name} and {name} sizes do not match "
                f"({first_len} != {n})"
            )
    return first_len
