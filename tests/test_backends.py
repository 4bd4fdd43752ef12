"""
Test backend implementations.

Tests appropriate backends based on what is installed:
- Givens: Always tested
- LAPACK (SciPy): Always tested
- PyTorch: Tested if torch is importable
"""

import logging

import pytest
import numpy as np

from polyfitqr import Matrix, SingularMatrixError
from polyfitqr._backends import (
    TORCH_AVAILABLE,
    get_backend,
    list_available_backends,
    print_backend_info,
)
from polyfitqr._backends.base import BackendBase
from polyfitqr.curve import vandermonde
from polyfitqr.logging_config import setup_logging


def quadratic_problem(n=30, seed=42):
    """Noisy quadratic samples as (design, response) matrices."""
    np.random.seed(seed)
    xs = np.linspace(-1, 2, n)
    ys = 0.5 - 1.0 * xs + 2.0 * xs**2 + 0.01 * np.random.randn(n)
    return vandermonde(xs, 2), Matrix.from_array(ys)


def underdetermined_problem():
    """Four samples for a quintic: more coefficients than equations."""
    xs = np.array([0.5, 1.5, 2.5, 3.7])
    return vandermonde(xs, 5), Matrix.from_array([0.0, 1.0, 2.0, 3.0])


def configured_handlers(logger):
    """Handlers installed by setup_logging (everything but NullHandler)."""
    return [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]


class TestBackendSelection:
    """Test backend registry."""

    def test_list_backends(self):
        """List available backends."""
        backends = list_available_backends()
        assert isinstance(backends, list)
        assert 'givens' in backends
        assert 'lapack' in backends
        if TORCH_AVAILABLE:
            assert 'torch' in backends

    def test_auto_is_givens(self):
        """Auto selection picks the Givens backend."""
        assert get_backend('auto').name == 'givens_fp64'

    def test_unknown_backend(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown backend"):
            get_backend('cuda-magic')

    def test_instance_passthrough(self):
        """A backend instance is returned as is."""
        backend = get_backend('givens')
        assert get_backend(backend) is backend

    def test_print_backend_info(self, capsys):
        """Print backend information."""
        print_backend_info()
        captured = capsys.readouterr()
        assert 'Backend Status' in captured.out
        assert 'Givens' in captured.out

    @pytest.mark.skipif(TORCH_AVAILABLE, reason="PyTorch installed")
    def test_torch_unavailable(self):
        """Requesting torch without PyTorch fails clearly."""
        with pytest.raises(RuntimeError, match="PyTorch"):
            get_backend('torch')


class TestGivensBackend:
    """Test the canonical Givens backend."""

    def test_creation(self):
        """Test Givens backend creation."""
        backend = get_backend('givens')
        assert isinstance(backend, BackendBase)
        assert backend.precision == 'fp64'
        assert backend.dtype == np.float64

    def test_fp32(self):
        """Test single precision variant."""
        backend = get_backend('givens', use_fp64=False)
        assert backend.name == 'givens_fp32'
        assert backend.dtype == np.float32

    def test_device_info(self):
        """Test device info."""
        info = get_backend('givens').get_device_info()
        assert info['backend'] == 'givens'
        assert info['precision'] == 'fp64'

    def test_fit_least_squares(self):
        """Test least-squares fitting."""
        X, y = quadratic_problem()
        result = get_backend('givens').fit_least_squares(X, y)

        assert result.coef.shape == (3,)
        assert result.fitted_values.shape == (30,)
        assert result.residuals.shape == (30,)
        assert result.rank == 3
        assert result.df_residual == 27
        assert result.qr_R.shape == (3, 3)
        assert np.allclose(result.coef, [0.5, -1.0, 2.0], atol=0.05)
        np.testing.assert_allclose(result.fitted_values + result.residuals, y.data())

    def test_fp32_close_to_fp64(self):
        """FP32 coefficients stay close to FP64."""
        X, y = quadratic_problem()
        r64 = get_backend('givens').fit_least_squares(X, y)
        r32 = get_backend('givens', use_fp64=False).fit_least_squares(X, y)
        assert r32.coef.dtype == np.float32
        assert np.allclose(r32.coef, r64.coef, rtol=1e-3, atol=1e-3)

    def test_underdetermined(self):
        """Fewer samples than coefficients is singular."""
        X, y = underdetermined_problem()
        with pytest.raises(SingularMatrixError, match="4 samples for 6 coefficients"):
            get_backend('givens').fit_least_squares(X, y)

    def test_singular_design_rejected_before_solving(self, caplog):
        """A rank-deficient design fails before any rotation."""
        caplog.set_level(logging.DEBUG, logger="polyfitqr")
        X = Matrix.from_array(np.column_stack([np.ones(4), np.zeros(4)]))
        y = Matrix.from_array([1.0, 2.0, 3.0, 4.0])
        with pytest.raises(SingularMatrixError, match="design matrix rank 1 < 2"):
            get_backend('givens').fit_least_squares(X, y)
        assert "rotations" not in caplog.text


class TestLapackBackend:
    """Test the SciPy reference backend."""

    def test_creation(self):
        """Test LAPACK backend creation."""
        backend = get_backend('lapack')
        assert backend.name == 'lapack_fp64'
        info = backend.get_device_info()
        assert info['backend'] == 'lapack'
        assert 'SciPy' in info['library']

    def test_fp32_request_warns(self):
        """FP32 request falls back to FP64 with a warning."""
        with pytest.warns(UserWarning, match="FP64"):
            backend = get_backend('lapack', use_fp64=False)
        assert backend.precision == 'fp64'

    def test_consistent_with_givens(self):
        """LAPACK matches the Givens backend."""
        X, y = quadratic_problem()
        givens = get_backend('givens').fit_least_squares(X, y)
        lapack = get_backend('lapack').fit_least_squares(X, y)

        np.testing.assert_allclose(givens.coef, lapack.coef, rtol=1e-10)
        np.testing.assert_allclose(givens.residuals, lapack.residuals, atol=1e-10)
        assert givens.rank == lapack.rank

    def test_singular(self):
        """Zero column is singular."""
        X = Matrix.from_array(np.column_stack([np.ones(4), np.zeros(4)]))
        y = Matrix.from_array([1.0, 2.0, 3.0, 4.0])
        with pytest.raises(SingularMatrixError):
            get_backend('lapack').fit_least_squares(X, y)

    def test_underdetermined(self):
        """Fewer samples than coefficients is singular."""
        X, y = underdetermined_problem()
        with pytest.raises(SingularMatrixError, match="Underdetermined"):
            get_backend('lapack').fit_least_squares(X, y)


@pytest.mark.skipif(not TORCH_AVAILABLE, reason="PyTorch not available")
class TestTorchBackend:
    """Test PyTorch backend (CPU or CUDA)."""

    def test_creation(self):
        """Test torch backend creation."""
        backend = get_backend('torch', device='cpu')
        assert 'torch' in backend.name
        info = backend.get_device_info()
        assert info['backend'] == 'torch'
        assert info['device'] == 'cpu'

    def test_consistent_with_givens(self):
        """Torch matches the Givens backend."""
        X, y = quadratic_problem()
        givens = get_backend('givens').fit_least_squares(X, y)
        torch_result = get_backend('torch', device='cpu').fit_least_squares(X, y)

        np.testing.assert_allclose(givens.coef, torch_result.coef, rtol=1e-8)
        assert givens.rank == torch_result.rank

    def test_fp32(self):
        """Test torch FP32."""
        X, y = quadratic_problem()
        result = get_backend('torch', use_fp64=False, device='cpu').fit_least_squares(X, y)
        assert result.coef.dtype == np.float32
        assert np.allclose(result.coef, [0.5, -1.0, 2.0], atol=0.05)

    def test_singular(self):
        """Zero column is singular."""
        X = Matrix.from_array(np.column_stack([np.ones(4), np.zeros(4)]))
        y = Matrix.from_array([1.0, 2.0, 3.0, 4.0])
        with pytest.raises(SingularMatrixError):
            get_backend('torch', device='cpu').fit_least_squares(X, y)

    def test_underdetermined(self):
        """Fewer samples than coefficients is singular."""
        X, y = underdetermined_problem()
        with pytest.raises(SingularMatrixError, match="Underdetermined"):
            get_backend('torch', device='cpu').fit_least_squares(X, y)


class TestLogging:
    """Test logging configuration and solver debug output."""

    @pytest.fixture(autouse=True)
    def reset_logger(self):
        yield
        logger = logging.getLogger("polyfitqr")
        for handler in list(logger.handlers):
            if isinstance(handler, logging.NullHandler):
                continue
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    def test_setup_is_idempotent(self):
        """Repeated setup does not duplicate handlers."""
        setup_logging()
        logger = setup_logging()
        assert logger.name == "polyfitqr"
        assert len(configured_handlers(logger)) == 1

    def test_null_handler_kept(self):
        """Setup leaves the package NullHandler in place."""
        setup_logging()
        logger = logging.getLogger("polyfitqr")
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_previous_file_handler_closed(self, tmp_path):
        """Reconfiguring closes the earlier log file."""
        first = setup_logging(log_file=str(tmp_path / "first.log"))
        (old_file,) = [h for h in first.handlers if isinstance(h, logging.FileHandler)]
        assert old_file.stream is not None

        logger = setup_logging(log_file=str(tmp_path / "second.log"))

        assert old_file.stream is None
        assert old_file not in logger.handlers
        assert len(configured_handlers(logger)) == 2

    def test_log_file(self, tmp_path):
        """Solver messages reach the log file."""
        log_file = tmp_path / "fit.log"
        logger = setup_logging(level=logging.DEBUG, log_file=str(log_file))
        assert len(configured_handlers(logger)) == 2

        X, y = quadratic_problem()
        get_backend('givens').fit_least_squares(X, y)
        for handler in logger.handlers:
            handler.flush()

        assert "Givens QR of 3x3 matrix" in log_file.read_text(encoding='utf-8')

    def test_debug_records(self, caplog):
        """Debug records name the solver and backend."""
        caplog.set_level(logging.DEBUG, logger="polyfitqr")
        X, y = quadratic_problem()
        get_backend('givens').fit_least_squares(X, y)
        assert "rotations" in caplog.text
        assert "givens_fp64" in caplog.text
