"""
Test suite for the stepping integrator.
"""

import pytest
import numpy as np
from gcorbit import ScipyIntegrator, temp_config


def decay(t, y):
    return -y


class TestIntegrate:
    """Test integration over an output grid."""

    @pytest.mark.parametrize("method", ['RK45', 'DOP853', 'Radau', 'LSODA'])
    def test_exponential_decay(self, method):
        t = np.linspace(0.0, 2.0, 21)
        res = ScipyIntegrator(method).integrate(decay, [1.0, 2.0], t,
                                                rtol=1e-10, atol=1e-12)
        assert not res.halted
        np.testing.assert_allclose(res.t, t)
        np.testing.assert_allclose(res.y[:, 0], np.exp(-t), rtol=1e-6)
        np.testing.assert_allclose(res.y[:, 1], 2*np.exp(-t), rtol=1e-6)

    def test_dense_output(self):
        t = np.linspace(0.0, 1.0, 5)
        res = ScipyIntegrator().integrate(decay, [1.0], t, rtol=1e-10, atol=1e-12)
        assert res.solution(0.33)[0] == pytest.approx(np.exp(-0.33), rel=1e-8)

    def test_callback_called_after_start(self):
        """The callback sees every output point except the initial one."""
        seen = []
        t = np.linspace(0.0, 1.0, 11)

        def callback(y):
            seen.append(y[0])
            return True

        ScipyIntegrator().integrate(decay, [1.0], t, rtol=1e-8, atol=1e-10,
                                    callback=callback)
        assert len(seen) == 10
        assert seen[0] == pytest.approx(np.exp(-0.1), rel=1e-6)

    def test_callback_halts(self):
        """Returning False stops the integration; the halting sample is kept."""
        calls = []

        def callback(y):
            calls.append(y)
            return len(calls) < 3

        t = np.linspace(0.0, 1.0, 101)
        res = ScipyIntegrator().integrate(decay, [1.0], t, rtol=1e-8, atol=1e-10,
                                          callback=callback)
        assert res.halted
        assert len(calls) == 3
        assert res.t.size == 4
        np.testing.assert_allclose(res.y[-1], calls[-1])
        assert res.t[-1] == pytest.approx(0.03)

    def test_single_point_grid(self):
        res = ScipyIntegrator().integrate(decay, [1.0], [0.0], rtol=1e-8, atol=1e-10)
        assert res.t.size == 1
        assert res.solution is None


class TestIntegratorErrors:
    """Test error handling."""

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown integration method"):
            ScipyIntegrator('Euler')

    def test_default_from_config(self):
        with temp_config(INTEGRATION_METHOD='RK45'):
            assert ScipyIntegrator().method == 'RK45'
        assert ScipyIntegrator().method == 'DOP853'

    def test_grid_not_increasing(self):
        with pytest.raises(ValueError, match="increasing"):
            ScipyIntegrator().integrate(decay, [1.0], [0.0, 1.0, 0.5],
                                        rtol=1e-8, atol=1e-10)

    def test_nan_initial_state(self):
        with pytest.raises(ValueError, match="NaN"):
            ScipyIntegrator().integrate(decay, [np.nan], [0.0, 1.0],
                                        rtol=1e-8, atol=1e-10)

    def test_solver_failure(self):
        """A right-hand side that blows up makes the solver fail."""
        def blowup(t, y):
            return y**2

        with pytest.raises(RuntimeError, match="Integration failed"):
            ScipyIntegrator().integrate(blowup, [1.0], np.linspace(0.0, 2.0, 5),
                                        rtol=1e-8, atol=1e-10)

    def test_repr(self):
        assert repr(ScipyIntegrator('RK23')) == "ScipyIntegrator(method='RK23')"
