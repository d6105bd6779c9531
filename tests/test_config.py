"""
Test suite for package configuration.
"""

import pytest
import gcorbit
from gcorbit import config, temp_config, OrbitTracer, circular_tokamak


class TestConfig:
    """Test the global configuration object."""

    def test_defaults(self):
        assert config.PITCH_ATOL == 1.5e-2
        assert config.CLOSURE_RADIAL_ATOL == 1e-3
        assert config.INTEGRATION_METHOD == 'DOP853'
        assert config.STRICT_VALIDATION is True

    def test_reset(self):
        config.DEFAULT_NSTEP = 10
        config.ENERGY_RTOL = 1.0
        config.reset()
        assert config.DEFAULT_NSTEP == 3000
        assert config.ENERGY_RTOL == 1e-6

    def test_repr_lists_fields(self):
        text = repr(config)
        for name in config.__dataclass_fields__:
            assert name in text

    def test_package_exposes_same_instance(self):
        assert gcorbit.config is config


class TestTempConfig:
    """Test the temporary configuration context manager."""

    def test_values_restored(self):
        with temp_config(DEFAULT_NSTEP=500, DEFAULT_TMAX=50.0) as cfg:
            assert cfg.DEFAULT_NSTEP == 500
            assert config.DEFAULT_TMAX == 50.0
        assert config.DEFAULT_NSTEP == 3000
        assert config.DEFAULT_TMAX == 500.0

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with temp_config(PITCH_ATOL=0.5):
                raise RuntimeError("boom")
        assert config.PITCH_ATOL == 1.5e-2

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError, match="NOT_A_FIELD"):
            with temp_config(NOT_A_FIELD=1):
                pass

    def test_tracer_reads_config_at_construction(self):
        """A tracer built inside the block keeps the block's grid."""
        eq = circular_tokamak()
        with temp_config(DEFAULT_NSTEP=11, DEFAULT_TMAX=1.0):
            tracer = OrbitTracer(eq)
        t = tracer.time_grid()
        assert t.size == 11
        assert t[-1] == pytest.approx(1e-6)
