"""
Test suite for equilibria and walls.

Tests cover:
- Analytic circular equilibrium (flux, field, domain)
- Gridded equilibrium interpolation against the analytic one
- Wall polygon containment
- Input validation
"""

import pytest
import numpy as np
from gcorbit import (
    CircularEquilibrium, GriddedEquilibrium, Wall,
    circular_tokamak, limiter_wall,
)


@pytest.fixture
def eq():
    return circular_tokamak()


class TestCircularEquilibrium:
    """Test the analytic equilibrium."""

    def test_flux_values(self, eq):
        assert eq.psi(1.7, 0.0) == 0.0
        assert eq.psi(2.3, 0.0) == pytest.approx(0.2)
        assert eq.psi(1.7, 0.6) == pytest.approx(0.2)

    def test_elongation(self):
        eq = circular_tokamak(kappa=1.5)
        assert eq.psi(1.7, 0.9) == pytest.approx(0.2)
        assert eq.z_domain == pytest.approx((-1.35, 1.35))

    def test_field_components(self, eq):
        """B_phi = g/r and B_R vanishes on the midplane."""
        B = eq.bfield(2.0, 0.0)
        assert B[0] == pytest.approx(0.0, abs=1e-15)
        assert B[1] == pytest.approx(2.0*1.7/2.0)
        dpsi_dr, _ = eq.psi_gradient(2.0, 0.0)
        assert B[2] == pytest.approx(-dpsi_dr/2.0)

    def test_field_on_axis(self, eq):
        assert eq.b_axis == pytest.approx(2.0)
        assert eq.b(*eq.axis) == pytest.approx(2.0)

    def test_poloidal_field_is_divergence_free(self, eq):
        """(1/r) d(r B_R)/dr + dB_Z/dz = 0"""
        r, z, h = 2.0, 0.15, 1e-5
        d_rbr = ((r + h)*eq.bfield(r + h, z)[0] - (r - h)*eq.bfield(r - h, z)[0])/(2*h)
        d_bz = (eq.bfield(r, z + h)[2] - eq.bfield(r, z - h)[2])/(2*h)
        assert d_rbr/r + d_bz == pytest.approx(0.0, abs=1e-8)

    def test_gradient_matches_flux(self, eq):
        r, z, h = 1.9, -0.2, 1e-6
        dr, dz = eq.psi_gradient(r, z)
        assert dr == pytest.approx((eq.psi(r + h, z) - eq.psi(r - h, z))/(2*h), rel=1e-7)
        assert dz == pytest.approx((eq.psi(r, z + h) - eq.psi(r, z - h))/(2*h), rel=1e-7)

    def test_default_domain(self, eq):
        assert eq.r_domain == pytest.approx((0.8, 2.6))
        assert eq.z_domain == pytest.approx((-0.9, 0.9))

    def test_in_domain_is_strict(self, eq):
        assert eq.in_domain(2.0, 0.0)
        assert not eq.in_domain(0.8, 0.0)
        assert not eq.in_domain(2.0, 0.95)

    def test_potential(self):
        eq = circular_tokamak(potential=lambda psi: 100.0*psi)
        assert eq.phi(0.1) == pytest.approx(10.0)
        assert circular_tokamak().phi(0.1) == 0.0

    def test_flux_and_sigma(self):
        eq = circular_tokamak(psi_a=-0.3, sign=-1)
        assert eq.flux == 0.3
        assert eq.sigma == -1

    @pytest.mark.parametrize("kwargs", [
        dict(r0=-1.0),
        dict(a=0.0),
        dict(a=2.0),
        dict(kappa=0.0),
        dict(psi_a=0.0),
        dict(sign=2),
        dict(rlim=(2.0, 1.0)),
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            circular_tokamak(**kwargs)

    def test_immutable(self, eq):
        with pytest.raises(AttributeError):
            eq.r0 = 2.0


class TestGriddedEquilibrium:
    """Test the interpolated equilibrium against the analytic one."""

    @pytest.fixture(scope="class")
    def pair(self):
        eq = circular_tokamak()
        return eq, GriddedEquilibrium.from_equilibrium(eq, nr=65, nz=65, npsi=33)

    @pytest.mark.parametrize("r,z", [(1.7, 0.0), (2.0, 0.1), (1.3, -0.4), (2.2, 0.5)])
    def test_flux_matches(self, pair, r, z):
        eq, grid = pair
        assert grid.psi(r, z) == pytest.approx(eq.psi(r, z), abs=1e-9)

    @pytest.mark.parametrize("r,z", [(2.0, 0.1), (1.3, -0.4)])
    def test_field_matches(self, pair, r, z):
        eq, grid = pair
        np.testing.assert_allclose(grid.bfield(r, z), eq.bfield(r, z), rtol=1e-7, atol=1e-9)

    def test_metadata_copied(self, pair):
        eq, grid = pair
        assert grid.axis == eq.axis
        assert grid.r_domain == pytest.approx(eq.r_domain)
        assert grid.z_domain == pytest.approx(eq.z_domain)
        assert grid.flux == eq.flux
        assert grid.sigma == eq.sigma

    def test_g_is_clamped(self, pair):
        _, grid = pair
        assert grid.g(10.0) == pytest.approx(2.0*1.7)
        assert grid.g(-10.0) == pytest.approx(2.0*1.7)

    def test_shape_mismatch(self):
        r = np.linspace(1, 2, 5)
        z = np.linspace(-1, 1, 6)
        with pytest.raises(ValueError, match="shape"):
            GriddedEquilibrium(r, z, np.zeros((6, 5)), [0, 1], [1, 1], (1.5, 0.0), 1.0)

    def test_invalid_sigma(self):
        r = np.linspace(1, 2, 5)
        z = np.linspace(-1, 1, 6)
        with pytest.raises(ValueError):
            GriddedEquilibrium(r, z, np.zeros((5, 6)), [0, 1], [1, 1], (1.5, 0.0), 1.0,
                               sigma=0)


class TestWall:
    """Test the wall polygon."""

    def test_rectangle(self):
        wall = Wall.from_limits((1.0, 2.0), (-0.5, 0.5))
        assert wall.inside(1.5, 0.0)
        assert not wall.inside(2.1, 0.0)
        assert not wall.inside(1.5, 0.6)
        assert (1.5, 0.2) in wall

    def test_triangle(self):
        wall = Wall([1.0, 2.0, 1.0], [-1.0, 0.0, 1.0])
        assert wall.inside(1.2, 0.0)
        assert not wall.inside(1.9, 0.5)

    def test_limiter_wall_spans_domain(self):
        eq = circular_tokamak()
        wall = limiter_wall(eq, margin=0.05)
        assert wall.r.min() == pytest.approx(0.85)
        assert wall.z.max() == pytest.approx(0.85)

    def test_vertices_read_only(self):
        wall = Wall.from_limits((1.0, 2.0), (-0.5, 0.5))
        assert wall.vertices.shape == (4, 2)
        with pytest.raises(ValueError):
            wall.vertices[0, 0] = 0.0

    def test_too_few_vertices(self):
        with pytest.raises(ValueError, match="at least 3"):
            Wall([1.0, 2.0], [0.0, 0.0])

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError):
            Wall([1.0, 2.0, 2.0], [0.0, 0.0])

    def test_non_finite(self):
        with pytest.raises(ValueError):
            Wall([1.0, np.nan, 2.0], [0.0, 1.0, 0.0])

    def test_repr(self):
        assert "n_vertices=4" in repr(Wall.from_limits((1.0, 2.0), (-0.5, 0.5)))
