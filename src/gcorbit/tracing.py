'''Guiding-center orbit package
Time-integration orbit tracer

The tracer advances the drift field over a fixed time grid. After every
output point a per-call TracingContext decides whether the orbit has closed
or left its boundary, and halts the integration when it has.'''

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING
from scipy.integrate import OdeSolution
from scipy.optimize import minimize_scalar
from .config import config
from .coordinates import EPRCoordinate, ReferenceCoordinate, get_pitch
from .defaults import limiter_wall
from .drift import DriftField
from .integrator import ScipyIntegrator
from .orbit import Orbit
from .utils import diagnostic

if TYPE_CHECKING:
    from .equilibrium import AxisymmetricEquilibrium
    from .wall import Wall


# Crossing counts that mark a closed orbit: the topology of an axisymmetric
# drift orbit started on a midplane crossing only allows these two values.
COMPLETE_CROSSINGS = (2, 4)


# ========== BOUNDARIES ==========
class DomainBoundary:
    """In-bounds test against the r/z domain of an equilibrium."""

    def __init__(self, eq: "AxisymmetricEquilibrium"):
        self._eq = eq

    def __call__(self, r: float, z: float) -> bool:
        return self._eq.in_domain(r, z)


class WallBoundary:
    """
    In-bounds test for orbits traced from a reference point: the radius may
    not exceed the reference radius, and the point must lie inside the wall.
    """

    def __init__(self, wall: "Wall", r_max: float, atol: Optional[float] = None):
        self._wall = wall
        self._r_max = r_max
        self._atol = config.BOUNDARY_RADIAL_ATOL if atol is None else atol

    @property
    def wall(self) -> "Wall":
        return self._wall

    @property
    def r_max(self) -> float:
        return self._r_max

    def __call__(self, r: float, z: float) -> bool:
        return (r - self._r_max <= self._atol) and self._wall.inside(r, z)


# ========== PER-CALL STATE ==========
@dataclass
class TracingContext:
    """
    Mutable state of one trace, carried across integrator steps.

    Attributes
    ----------
    r0, z0 : float
        Starting point
    closure : str
        'radial': a crossing closes the orbit when the previous point is
        within radial_atol of the starting radius.
        'step': a crossing closes the orbit when the previous point is closer
        to the start than to the current point.
    radial_atol : float
        Tolerance of the 'radial' rule [m]
    prev : np.ndarray or None
        Previous (r, z) sample
    initial_dir : int
        Sign of the first vertical displacement (0 until known)
    npol : int
        Number of midplane crossings relative to z0
    closed : bool
        True once a closing crossing was found
    complete : bool
        True if the closing crossing had a recognised crossing count
    hits_boundary : bool
        True once a sample fell out of bounds
    """
    r0: float
    z0: float
    closure: str = 'radial'
    radial_atol: float = 1e-3
    prev: Optional[np.ndarray] = None
    initial_dir: int = 0
    npol: int = 0
    closed: bool = False
    complete: bool = False
    hits_boundary: bool = False

    def __post_init__(self):
        if self.closure not in ('radial', 'step'):
            raise ValueError(f"Unknown closure rule '{self.closure}'. "
                             f"Use: ['radial', 'step']")

    def check_closure(self, state) -> bool:
        """Update the crossing bookkeeping with a new (r, phi, z) state."""
        x0 = np.array([self.r0, self.z0])
        x2 = np.array([state[0], state[2]])
        if self.initial_dir == 0:
            self.initial_dir = int(np.sign(x2[1] - x0[1]))
            self.prev = x2
            return False

        dr10 = self.prev - x0
        dr20 = x2 - x0
        dr21 = x2 - self.prev

        if np.sign(dr10[1]*dr20[1]) < 0:
            self.npol += 1
            if self._returned(dr10, dr21) and np.sign(dr20[1]) == self.initial_dir:
                self.closed = True
                self.complete = self.npol in COMPLETE_CROSSINGS
                return True
        self.prev = x2
        return False

    def _returned(self, dr10, dr21) -> bool:
        if self.closure == 'radial':
            return abs(dr10[0]) < self.radial_atol
        return np.linalg.norm(dr10) < np.linalg.norm(dr21)

    def in_bounds(self, state, boundary: Callable) -> bool:
        if boundary(state[0], state[2]):
            return True
        self.hits_boundary = True
        return False

    def step(self, state, boundary: Callable) -> bool:
        """Step callback: continue while the orbit is open and in bounds."""
        return not self.check_closure(state) and self.in_bounds(state, boundary)


# ========== TRACE RESULT ==========
@dataclass(frozen=True)
class TraceResult:
    """Raw samples of one trace together with its final context."""
    field: DriftField
    t: np.ndarray
    r: np.ndarray
    phi: np.ndarray
    z: np.ndarray
    solution: Optional[OdeSolution]
    context: TracingContext

    def turning_point(self):
        """
        Point of maximum major radius, refined between the neighbouring
        samples with a bounded minimization on the dense output.
        """
        i = int(np.argmax(self.r))
        r_i, z_i = float(self.r[i]), float(self.z[i])
        if self.solution is None:
            return r_i, z_i

        lo = self.t[max(i - 1, 0)]
        hi = self.t[min(i + 1, self.t.size - 1)]
        span = hi - lo
        if span <= 0:
            return r_i, z_i
        res = minimize_scalar(lambda s: -self.solution(lo + s*span)[0],
                              bounds=(0.0, 1.0), method='bounded',
                              options={'xatol': 1e-10})
        y = self.solution(lo + res.x*span)
        if y[0] < r_i:
            return r_i, z_i
        return float(y[0]), float(y[2])


# ========== TRACER ==========
class OrbitTracer:
    """
    Time-integration tracer for guiding-center orbits.

    Parameters
    ----------
    eq : AxisymmetricEquilibrium
        Equilibrium (borrowed, read-only)
    integrator : object, optional
        Anything with ScipyIntegrator's integrate() signature.
        Default: ScipyIntegrator()
    nstep : int, optional
        Number of time grid points (default: config.DEFAULT_NSTEP)
    tmax : float, optional
        Grid length in microseconds (default: config.DEFAULT_TMAX)
    rtol, atol : float, optional
        Integrator tolerances (default: config.INTEGRATION_RTOL/ATOL)
    gradient : callable, optional
        Gradient evaluator handed to DriftField
    """

    def __init__(self, eq: "AxisymmetricEquilibrium", integrator=None,
                 nstep: Optional[int] = None, tmax: Optional[float] = None,
                 rtol: Optional[float] = None, atol: Optional[float] = None,
                 gradient: Optional[Callable] = None):
        self._eq = eq
        self._integrator = integrator if integrator is not None else ScipyIntegrator()
        self._nstep = config.DEFAULT_NSTEP if nstep is None else int(nstep)
        self._tmax = config.DEFAULT_TMAX if tmax is None else float(tmax)
        self._rtol = config.INTEGRATION_RTOL if rtol is None else rtol
        self._atol = config.INTEGRATION_ATOL if atol is None else atol
        self._gradient = gradient
        self._radial_atol = config.CLOSURE_RADIAL_ATOL

        if self._nstep < 2:
            raise ValueError(f"nstep must be at least 2, got {self._nstep}")
        if self._tmax <= 0:
            raise ValueError(f"tmax must be positive, got {self._tmax}")

    @property
    def equilibrium(self) -> "AxisymmetricEquilibrium":
        return self._eq

    def time_grid(self) -> np.ndarray:
        """Output times [s]"""
        return 1e-6*np.linspace(0.0, self._tmax, self._nstep)

    def trace(self, coord, r0: float, z0: float, boundary: Callable,
              closure: str = 'radial') -> TraceResult:
        """
        Integrate the orbit of coord starting from (r0, z0).

        Raises
        ------
        ValueError
            If (r0, z0) is outside the boundary. No integration is attempted.
        """
        context = TracingContext(r0, z0, closure=closure,
                                 radial_atol=self._radial_atol)
        if not context.in_bounds([r0, 0.0, z0], boundary):
            raise ValueError(f"Starting point ({r0}, {z0}) outside boundary")

        field = DriftField(self._eq, coord, gradient=self._gradient)
        res = self._integrator.integrate(
            field, [r0, 0.0, z0], self.time_grid(),
            rtol=self._rtol, atol=self._atol,
            callback=lambda y: context.step(y, boundary)
        )
        y = np.asarray(res.y)
        return TraceResult(field, np.asarray(res.t), y[:, 0], y[:, 1], y[:, 2],
                           res.solution, context)

    def orbit(self, c: ReferenceCoordinate, wall: Optional["Wall"] = None) -> Orbit:
        """
        Trace the orbit of a reference-point coordinate inside a wall.

        The wall defaults to the rectangle spanning the equilibrium domain.

        Raises
        ------
        ValueError
            If the reference point lies outside the wall.
        """
        if not isinstance(c, ReferenceCoordinate):
            raise TypeError(f"Expected ReferenceCoordinate, got {type(c).__name__}")
        if wall is None:
            wall = limiter_wall(self._eq)

        tr = self.trace(c, c.r, c.z, WallBoundary(wall, c.r), closure='step')
        r, z = tr.r, tr.z

        t = self.time_grid()
        dt = np.full(r.size, t[1] - t[0])
        # the last interval is truncated by the early stop
        vpol = tr.field.poloidal_speed(c.r, c.z)
        dt[-1] = np.hypot(r[-1] - r[0], z[-1] - z[0])/vpol

        return Orbit(tr.field.hcoord, c, r, z, tr.phi, dt,
                     tr.context.hits_boundary, tr.context.complete)

    def reference(self, c: EPRCoordinate) -> Optional[ReferenceCoordinate]:
        """
        Reduce an energy-pitch-position coordinate to its reference point.

        Returns None, with an OrbitDiagnosticWarning, when the trace neither
        completes nor hits the domain boundary.
        """
        if not isinstance(c, EPRCoordinate):
            raise TypeError(f"Expected EPRCoordinate, got {type(c).__name__}")
        eq = self._eq
        tr = self.trace(c, c.r, c.z, DomainBoundary(eq), closure='radial')
        ctx = tr.context
        if not ctx.complete and not ctx.hits_boundary:
            diagnostic(f"EPRCoordinate cannot be expressed as a ReferenceCoordinate: "
                       f"npol={ctx.npol} hits_boundary={ctx.hits_boundary}")
            return None

        r_w, z_w = tr.turning_point()
        hc = tr.field.hcoord
        pitch_w = get_pitch(eq, hc, r_w, z_w)
        psi_w = eq.psi(r_w, z_w)
        energy_w = hc.energy - 1e-3*eq.phi(psi_w)
        return ReferenceCoordinate(energy_w, pitch_w, psi_w, r_w, z_w, c.amu, c.q)

    def __repr__(self):
        return (f"OrbitTracer(nstep={self._nstep}, tmax={self._tmax} us, "
                f"rtol={self._rtol}, atol={self._atol})")


def trace_orbit(eq: "AxisymmetricEquilibrium", c: ReferenceCoordinate,
                wall: Optional["Wall"] = None, **tracer_kwargs) -> Orbit:
    """Shortcut for OrbitTracer(eq, **tracer_kwargs).orbit(c, wall)"""
    return OrbitTracer(eq, **tracer_kwargs).orbit(c, wall)


def reference_coordinate(eq: "AxisymmetricEquilibrium", c: EPRCoordinate,
                         **tracer_kwargs) -> Optional[ReferenceCoordinate]:
    """Shortcut for OrbitTracer(eq, **tracer_kwargs).reference(c)"""
    return OrbitTracer(eq, **tracer_kwargs).reference(c)
