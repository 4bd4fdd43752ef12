"""
Backend selection and management.

Provides a unified interface for the Givens QR solver, the LAPACK
reference solver (SciPy) and the optional PyTorch solver.
"""

from typing import Optional
import warnings

from .base import BackendBase, LeastSquaresResult, check_design_rank, normal_equations

# Givens backend is pure NumPy (always available)
from .givens_backend import GivensBackend

try:
    from .lapack_backend import LapackBackend
    LAPACK_AVAILABLE = True
except ImportError:
    LAPACK_AVAILABLE = False
    warnings.warn("LAPACK backend unavailable - SciPy not installed!")

# Try importing PyTorch backend
try:
    import torch  # noqa: F401
    from .torch_backend import TorchBackend
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False


def get_backend(
    backend='auto',
    use_fp64: Optional[bool] = None,
    device: Optional[str] = None,
) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str or BackendBase
        Backend selection:
        - 'auto': Givens QR (the canonical solver)
        - 'givens': Givens QR over Matrix (FP32 or FP64)
        - 'lapack': SciPy/LAPACK Householder QR (FP64 only)
        - 'torch': PyTorch QR on CPU or CUDA
        A BackendBase instance is returned unchanged.

    use_fp64 : bool or None
        Precision preference:
        - None: FP64
        - True: FP64
        - False: FP32

    device : str, optional
        Torch device ('cpu', 'cuda'); ignored by the other backends.

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('auto')

    >>> # Single precision Givens solver
    >>> backend = get_backend('givens', use_fp64=False)

    >>> # Cross-check against LAPACK
    >>> backend = get_backend('lapack')
    """
    if isinstance(backend, BackendBase):
        return backend

    fp64 = True if use_fp64 is None else bool(use_fp64)

    if backend in ('auto', 'givens'):
        return GivensBackend(use_fp64=fp64)

    elif backend == 'lapack':
        if not LAPACK_AVAILABLE:
            raise RuntimeError(
                "LAPACK backend unavailable.\n"
                "Install: pip install scipy"
            )
        if not fp64:
            warnings.warn("LAPACK backend always uses FP64; ignoring use_fp64=False")
        return LapackBackend()

    elif backend == 'torch':
        if not TORCH_AVAILABLE:
            raise RuntimeError(
                "PyTorch backend unavailable.\n"
                "Install: pip install torch"
            )
        return TorchBackend(use_fp64=fp64, device=device)

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: 'auto', 'givens', 'lapack', 'torch'"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = ['givens']
    if LAPACK_AVAILABLE:
        backends.append('lapack')
    if TORCH_AVAILABLE:
        backends.append('torch')
    return backends


def print_backend_info():
    """Print detailed backend information (diagnostic)."""
    print("polyfitqr Backend Status")
    print("=" * 50)
    print(f"\nAvailable Backends:")
    print(f"  Givens (FP32/FP64):  ✓ - Givens rotation QR (canonical)")
    print(f"  LAPACK (FP64):       {'✓' if LAPACK_AVAILABLE else '✗'} - SciPy Householder QR (reference)")
    print(f"  PyTorch (FP32/FP64): {'✓' if TORCH_AVAILABLE else '✗'} - torch.linalg.qr (CPU/CUDA)")

    print(f"\nRecommended Backend:")
    try:
        backend = get_backend('auto')
        print(f"  {backend.name}")
        print(f"  {backend.get_device_info()['library']}")
    except Exception as e:
        print(f"  Error: {e}")


# Export main interface
__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'LeastSquaresResult',
    'normal_equations',
    'check_design_rank',
    'LAPACK_AVAILABLE',
    'TORCH_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
