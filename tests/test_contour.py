"""
Test suite for the constant-energy contour tracer.

Tests cover:
- The level-curve follower on simple fields
- Contour tracing of passing and trapped orbits
- Agreement with time integration
- Stagnation, boundary and inconsistent-energy outcomes
"""

import dataclasses
import pytest
import numpy as np
from gcorbit import (
    EPRCoordinate, ContourTracer, DriftField, Wall, OrbitDiagnosticWarning,
    circular_tokamak, follow_contour, reference_coordinate, trace_orbit,
    trace_orbit_contour,
)


GRID = dict(tmax=60.0, nstep=12001)


def circle(r, z):
    return (r - 1.0)**2 + z**2


def circle_gradient(f, x):
    return np.array([2*(x[0] - 1.0), 2*x[1]])


@pytest.fixture(scope="module")
def eq():
    return circular_tokamak()


@pytest.fixture(scope="module")
def passing_ref(eq):
    return reference_coordinate(eq, EPRCoordinate(80.0, 1.0, 1.7, 0.0), **GRID)


@pytest.fixture(scope="module")
def trapped_ref(eq):
    return reference_coordinate(eq, EPRCoordinate(80.0, 0.2, 2.0, 0.0), **GRID)


class TestFollowContour:
    """Test the level-curve follower."""

    def test_circle_closes(self):
        path = follow_contour(circle, [1.1, 0.0], tol=1e-12,
                              gradient=circle_gradient)
        assert path is not None
        np.testing.assert_array_equal(path[-1], [1.1, 0.0])
        np.testing.assert_array_equal(path[0], [1.1, 0.0])
        radius = np.hypot(path[:, 0] - 1.0, path[:, 1])
        np.testing.assert_allclose(radius, 0.1, rtol=1e-8)
        # the vertices go once around
        angle = np.unwrap(np.arctan2(path[:, 1], path[:, 0] - 1.0))
        assert abs(angle[-1] - angle[0]) == pytest.approx(2*np.pi, rel=1e-6)

    def test_default_gradient(self):
        path = follow_contour(circle, [1.1, 0.0], tol=1e-10)
        assert path is not None
        radius = np.hypot(path[:, 0] - 1.0, path[:, 1])
        np.testing.assert_allclose(radius, 0.1, rtol=1e-6)

    def test_explicit_level(self):
        """Starting off the level, the first vertex is pulled onto it."""
        path = follow_contour(circle, [1.1, 0.0], level=0.105**2, tol=1e-12,
                              gradient=circle_gradient)
        radius = np.hypot(path[1:-1, 0] - 1.0, path[1:-1, 1])
        np.testing.assert_allclose(radius, 0.105, rtol=1e-8)

    def test_zero_gradient(self):
        path = follow_contour(circle, [1.0, 0.0], gradient=circle_gradient)
        np.testing.assert_array_equal(path, [[1.0, 0.0], [1.0, 0.0]])

    def test_boundary_stops(self):
        path = follow_contour(circle, [1.1, 0.0], gradient=circle_gradient,
                              boundary=lambda r, z: r > 1.05)
        assert path is None

    def test_maxiter_exhausted(self):
        path = follow_contour(circle, [1.1, 0.0], gradient=circle_gradient,
                              maxiter=5)
        assert path is None


class TestContourTracer:
    """Test contour tracing of guiding-center orbits."""

    def test_passing_orbit(self, eq, passing_ref):
        orbit = trace_orbit_contour(eq, passing_ref)
        assert orbit.complete
        assert not orbit.hits_boundary
        assert orbit.n_points > 10
        assert orbit.r[0] == orbit.r[-1]
        assert orbit.z[0] == orbit.z[-1]

    def test_passing_period_matches_integration(self, eq, passing_ref):
        contour = trace_orbit_contour(eq, passing_ref)
        integrated = trace_orbit(eq, passing_ref, **GRID)
        assert contour.duration == pytest.approx(integrated.duration, rel=5e-2)

    def test_passing_orbit_follows_drift(self, eq, passing_ref):
        """Consecutive vertices advance along the guiding-center velocity."""
        orbit = trace_orbit_contour(eq, passing_ref)
        field = DriftField(eq, passing_ref)
        for i in range(0, orbit.n_points - 1, 5):
            v = field.velocity(orbit.r[i], orbit.z[i])
            step = (orbit.r[i+1] - orbit.r[i], orbit.z[i+1] - orbit.z[i])
            assert step[0]*v[0] + step[1]*v[2] > 0

    def test_orbit_on_energy_level(self, eq, passing_ref):
        orbit = trace_orbit_contour(eq, passing_ref)
        field = DriftField(eq, passing_ref)
        energies = [field.energy(r, z) for r, z in zip(orbit.r, orbit.z)]
        np.testing.assert_allclose(energies, field.hcoord.energy, rtol=1e-9)

    def test_trapped_orbit(self, eq, trapped_ref):
        orbit = trace_orbit_contour(eq, trapped_ref)
        assert orbit.complete
        assert not orbit.hits_boundary
        assert np.all(orbit.r <= trapped_ref.r + 1e-6)
        assert np.all(orbit.dt[:-1] > 0)
        assert orbit.dt[-1] == 0.0

    def test_toroidal_angle_accumulates(self, eq, passing_ref):
        orbit = trace_orbit_contour(eq, passing_ref)
        assert orbit.phi[0] == 0.0
        assert np.all(np.diff(orbit.phi) > 0)

    def test_wall_strike(self, eq, trapped_ref):
        wall = Wall.from_limits((0.8, 2.6), (-0.05, 0.05))
        orbit = trace_orbit_contour(eq, trapped_ref, wall=wall)
        assert orbit.hits_boundary
        assert not orbit.complete
        assert orbit.n_points == 0

    def test_energy_mismatch(self, eq, passing_ref):
        """A reference point whose flux disagrees with the equilibrium is rejected."""
        bad = dataclasses.replace(passing_ref, psi=passing_ref.psi + 0.01)
        with pytest.warns(OrbitDiagnosticWarning, match="Energy at reference point"):
            orbit = trace_orbit_contour(eq, bad)
        assert orbit is None

    def test_wrong_coordinate_type(self, eq):
        with pytest.raises(TypeError):
            ContourTracer(eq).trace(EPRCoordinate(80.0, 0.5, 2.0, 0.0))


class TestInjectedContour:
    """Test post-processing of paths from an injected level-curve extractor."""

    def test_stagnation_orbit(self, eq, passing_ref):
        """A path that barely moves is a stagnation orbit."""
        def tiny(f, x0, **kwargs):
            return np.array([x0, [x0[0] + 1e-4, x0[1]]])

        field = DriftField(eq, passing_ref)
        orbit = ContourTracer(eq, contour=tiny).trace(passing_ref)
        assert orbit.complete
        assert not orbit.hits_boundary
        assert orbit.n_points == 2
        assert orbit.r[0] == orbit.r[1]
        np.testing.assert_allclose(orbit.phi, [0.0, 2*np.pi])
        vt = field.velocity(orbit.r[0], orbit.z[0])[1]
        assert orbit.dt[0] == pytest.approx(2*np.pi*orbit.r[0]/vt)
        assert orbit.dt[1] == 0.0

    def test_single_vertex_path(self, eq, passing_ref):
        def single(f, x0, **kwargs):
            return np.array([x0])

        orbit = ContourTracer(eq, contour=single).trace(passing_ref)
        assert orbit.complete
        assert orbit.n_points == 2

    def test_path_reversed_to_follow_drift(self, eq, passing_ref):
        """A path given against the drift direction is reversed."""
        field = DriftField(eq, passing_ref)
        v = field.velocity(passing_ref.r, passing_ref.z)
        vhat = np.array([v[0], v[2]])/np.hypot(v[0], v[2])
        x0 = np.array([passing_ref.r, passing_ref.z])

        def backwards(f, start, **kwargs):
            return np.array([x0, x0 - 0.05*vhat, x0 - 0.1*vhat])

        orbit = ContourTracer(eq, contour=backwards).trace(passing_ref)
        assert orbit.r[-1] == passing_ref.r
        assert orbit.z[-1] == passing_ref.z

    def test_failed_contour_is_boundary_hit(self, eq, passing_ref):
        orbit = ContourTracer(eq, contour=lambda f, x0, **kwargs: None).trace(passing_ref)
        assert orbit.hits_boundary
        assert not orbit.complete
        assert len(orbit) == 0

    def test_repr(self, eq):
        assert "ContourTracer" in repr(ContourTracer(eq))
