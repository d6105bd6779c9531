'''Guiding-center orbit package
Constant-energy contour tracer

For a guiding-center orbit the energy function of (r, z), at fixed mu and
p_phi, is constant along the orbit. Following its level curve through the
reference point gives the orbit without integrating the equations of motion;
timing is reconstructed afterwards from the drift velocity.'''

import numpy as np
from typing import Callable, Optional, TYPE_CHECKING
from .config import config
from .coordinates import ReferenceCoordinate
from .defaults import limiter_wall
from .drift import DriftField, finite_difference_gradient
from .orbit import Orbit
from .tracing import WallBoundary
from .utils import diagnostic

if TYPE_CHECKING:
    from .equilibrium import AxisymmetricEquilibrium
    from .wall import Wall


# Smallest cosine allowed between consecutive tangents before the step is cut
_MIN_TURN_COS = 0.9
_NEWTON_MAXITER = 20


def _tangent(grad, reference=None):
    t = np.array([-grad[1], grad[0]])/np.linalg.norm(grad)
    if reference is not None and np.dot(t, reference) < 0:
        t = -t
    return t


def _project(fx, gradient, x, level, tol):
    """Newton projection of x onto the level set along the gradient."""
    for k in range(_NEWTON_MAXITER):
        res = fx(x) - level
        grad = gradient(fx, x)
        gg = float(np.dot(grad, grad))
        if not np.isfinite(gg) or gg == 0.0:
            return x, grad, False, k
        if abs(res) <= tol:
            return x, grad, True, k
        x = x - res*grad/gg
    return x, grad, False, _NEWTON_MAXITER


def follow_contour(f: Callable, x0, level: Optional[float] = None,
                   tol: Optional[float] = None, step_range=None,
                   boundary: Optional[Callable] = None,
                   maxiter: Optional[int] = None,
                   gradient: Optional[Callable] = None) -> Optional[np.ndarray]:
    """
    Follow the level curve of f(r, z) through x0 until it closes.

    A tangent predictor step is corrected back onto the curve with Newton
    iterations along the gradient. The step is halved when the corrector
    fails or the curve turns too sharply, and grown again after easy steps.

    Parameters
    ----------
    f : callable
        Scalar field f(r, z)
    x0 : array_like
        Starting point (r, z)
    level : float, optional
        Level to follow (default: f(x0))
    tol : float, optional
        Corrector tolerance on |f - level| (default: config.CONTOUR_TOL)
    step_range : tuple of float, optional
        (minimum, maximum) step length (default: config.CONTOUR_STEP_RANGE)
    boundary : callable, optional
        boundary(r, z) -> bool, False when a vertex is out of bounds
    maxiter : int, optional
        Maximum number of steps (default: config.CONTOUR_MAX_STEP)
    gradient : callable, optional
        gradient(f, x) -> ndarray (default: forward differences)

    Returns
    -------
    np.ndarray or None
        Vertices of shape (n, 2), the last one equal to x0. A start point
        with vanishing gradient gives [x0, x0]. None if the curve leaves the
        boundary, the step underflows or maxiter is exhausted.
    """
    if tol is None:
        tol = config.CONTOUR_TOL
    if step_range is None:
        step_range = config.CONTOUR_STEP_RANGE
    if maxiter is None:
        maxiter = config.CONTOUR_MAX_STEP
    if gradient is None:
        gradient = finite_difference_gradient
    hmin, hmax = step_range

    fx = lambda x: f(x[0], x[1])
    x0 = np.asarray(x0, dtype=float)
    if level is None:
        level = fx(x0)

    g0 = gradient(fx, x0)
    if not np.all(np.isfinite(g0)) or np.linalg.norm(g0) == 0.0:
        return np.array([x0, x0])

    tangent = _tangent(g0)
    path = [x0]
    x = x0
    h = hmax
    left = False

    for _ in range(maxiter):
        dist = np.linalg.norm(x - x0)
        if left and dist <= h:
            path.append(x0.copy())
            return np.array(path)
        if dist > 2*h:
            left = True

        xn, gn, converged, nit = _project(fx, gradient, x + h*tangent, level, tol)
        tn = _tangent(gn, tangent) if converged else None
        if not converged or np.dot(tn, tangent) < _MIN_TURN_COS:
            h = 0.5*h
            if h < hmin:
                return None
            continue

        if boundary is not None and not boundary(xn[0], xn[1]):
            return None

        path.append(xn)
        x = xn
        tangent = tn
        if nit <= 3:
            h = min(1.5*h, hmax)

    return None


class ContourTracer:
    """
    Level-set tracer for guiding-center orbits.

    Parameters
    ----------
    eq : AxisymmetricEquilibrium
        Equilibrium (borrowed, read-only)
    contour : callable, optional
        Level-curve extractor with follow_contour's signature
        (default: follow_contour)
    tol, step_range, max_step : optional
        Contour follower settings (default: config.CONTOUR_*)
    stagnation_std : tuple of float, optional
        r and z standard deviations below which the orbit is a stagnation
        point (default: config.STAGNATION_STD)
    energy_rtol : float, optional
        Relative tolerance of the starting energy check
        (default: config.ENERGY_RTOL)
    gradient : callable, optional
        Gradient evaluator handed to DriftField
    """

    def __init__(self, eq: "AxisymmetricEquilibrium", contour: Optional[Callable] = None,
                 tol=None, step_range=None, max_step=None,
                 stagnation_std=None, energy_rtol=None,
                 gradient: Optional[Callable] = None):
        self._eq = eq
        self._contour = contour if contour is not None else follow_contour
        self._tol = config.CONTOUR_TOL if tol is None else tol
        self._step_range = config.CONTOUR_STEP_RANGE if step_range is None else step_range
        self._max_step = config.CONTOUR_MAX_STEP if max_step is None else max_step
        self._stagnation_std = (config.STAGNATION_STD if stagnation_std is None
                                else stagnation_std)
        self._energy_rtol = config.ENERGY_RTOL if energy_rtol is None else energy_rtol
        self._gradient = gradient

    def trace(self, c: ReferenceCoordinate, wall: Optional["Wall"] = None) -> Optional[Orbit]:
        """
        Trace the orbit of a reference-point coordinate along its energy
        contour.

        Returns
        -------
        Orbit or None
            None, with an OrbitDiagnosticWarning, if the energy function at
            the reference point disagrees with the coordinate's energy.
            An empty Orbit with hits_boundary=True if the contour cannot be
            followed inside the wall.
        """
        if not isinstance(c, ReferenceCoordinate):
            raise TypeError(f"Expected ReferenceCoordinate, got {type(c).__name__}")
        eq = self._eq
        field = DriftField(eq, c, gradient=self._gradient)
        hc = field.hcoord

        e_start = field.energy(c.r, c.z)
        if not np.isclose(e_start, hc.energy, rtol=self._energy_rtol, atol=0.0):
            diagnostic(f"Energy at reference point {e_start} !~ {hc.energy}")
            return None

        if wall is None:
            wall = limiter_wall(eq)
        path = self._contour(field.energy, [c.r, c.z], tol=self._tol,
                             step_range=self._step_range,
                             boundary=WallBoundary(wall, c.r),
                             maxiter=self._max_step)
        if path is None:
            return Orbit(hc, c, [], [], [], [], True, False)

        path = np.asarray(path, dtype=float)
        if len(path) < 2:
            path = np.vstack([path[0], path[0]])

        dr = path[1] - path[0]
        vgc = field.velocity(*path[0])
        if dr[0]*vgc[0] + dr[1]*vgc[2] < 0.0:
            path = path[::-1]

        r = path[:, 0]
        z = path[:, 1]
        if np.std(r) < self._stagnation_std[0] and np.std(z) < self._stagnation_std[1]:
            return self._stagnation_orbit(field, c, r[0], z[0])

        n = len(path)
        phi = np.zeros(n)
        dt = np.zeros(n)
        v_prev = field.velocity(r[0], z[0])
        for i in range(1, n):
            v = field.velocity(r[i], z[i])
            d = np.hypot(r[i] - r[i-1], z[i] - z[i-1])
            vp1 = np.hypot(v_prev[0], v_prev[2])
            vp2 = np.hypot(v[0], v[2])
            dt[i-1] = d/(0.5*(vp1 + vp2))
            phi[i] = phi[i-1] + np.arctan2(dt[i-1]*(v_prev[1] + v[1])/2, r[i-1])
            v_prev = v

        return Orbit(hc, c, r, z, phi, dt, False, True)

    @staticmethod
    def _stagnation_orbit(field, c, r, z) -> Orbit:
        """Orbit collapsed onto a point, circulating toroidally."""
        vt = field.velocity(r, z)[1]
        t = [2*np.pi*r/vt, 0.0]
        return Orbit(field.hcoord, c, [r, r], [z, z], [0.0, 2*np.pi], t, False, True)

    def __repr__(self):
        return (f"ContourTracer(tol={self._tol}, step_range={self._step_range}, "
                f"max_step={self._max_step})")


def trace_orbit_contour(eq: "AxisymmetricEquilibrium", c: ReferenceCoordinate,
                        wall: Optional["Wall"] = None, **tracer_kwargs) -> Optional[Orbit]:
    """Shortcut for ContourTracer(eq, **tracer_kwargs).trace(c, wall)"""
    return ContourTracer(eq, **tracer_kwargs).trace(c, wall)
