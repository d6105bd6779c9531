'''Guiding-center orbit package
DriftField class definition'''

import numpy as np
from typing import Callable, Optional, TYPE_CHECKING
from scipy.optimize import approx_fprime
from .coordinates import hamiltonian, HamiltonianCoordinate
from .defaults import E0, MASS_U

if TYPE_CHECKING:
    from .equilibrium import AxisymmetricEquilibrium


def finite_difference_gradient(f: Callable, x) -> np.ndarray:
    """Forward-difference gradient of a scalar function of a point."""
    return approx_fprime(np.asarray(x, dtype=float), f)


class DriftField:
    """
    Guiding-center velocity field of one particle in an equilibrium.

    The particle is described by its constants of motion; the velocity at a
    cylindrical position (r, z) is the parallel streaming along B plus the
    combined grad-B and curvature drift. The field is stateless and is the
    single physics kernel shared by the time-integration and the contour
    tracers.

    Parameters
    ----------
    eq : AxisymmetricEquilibrium
        Equilibrium (borrowed, read-only)
    coord : orbit coordinate
        Any coordinate form; converted to canonical form once
    gradient : callable, optional
        gradient(f, x) -> ndarray evaluator used for grad|B|.
        Default: forward differences (scipy.optimize.approx_fprime)
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, eq: "AxisymmetricEquilibrium", coord,
                 gradient: Optional[Callable] = None):
        self._eq = eq
        self._hc = hamiltonian(eq, coord)
        self._gradient = gradient if gradient is not None else finite_difference_gradient
        self._babs = lambda x: eq.b(x[0], x[1])

    # ========== PROPERTY ACCESS ==========
    @property
    def equilibrium(self) -> "AxisymmetricEquilibrium":
        return self._eq

    @property
    def hcoord(self) -> HamiltonianCoordinate:
        return self._hc

    @property
    def mass(self) -> float:
        """Particle mass [kg]"""
        return self._hc.amu*MASS_U

    # ========== VELOCITY ==========
    def velocity(self, r: float, z: float) -> np.ndarray:
        """
        Guiding-center velocity (v_R, v_phi, v_Z) at (r, z) [m/s].
        """
        eq = self._eq
        hc = self._hc
        Ze = hc.q*E0

        psi = eq.psi(r, z)
        g = eq.g(psi)
        B = eq.bfield(r, z)
        babs = np.linalg.norm(B)
        gradB = self._gradient(self._babs, [r, z])

        KE = hc.energy - 1e-3*eq.phi(psi)
        Wperp = hc.mu*babs
        Wpara = 1e3*E0*KE - Wperp
        vpara = -babs*(hc.p_phi - Ze*psi)/(self.mass*g)

        vd = (1/Ze)*(Wperp + 2*Wpara)*np.cross(B, [gradB[0], 0.0, gradB[1]])/(babs**3)
        return vpara*B/babs + vd

    def __call__(self, t: float, y) -> np.ndarray:
        """
        Right-hand side of the orbit equations for state (r, phi, z).
        """
        v = self.velocity(y[0], y[2])
        return np.array([v[0], v[1]/y[0], v[2]])

    def poloidal_speed(self, r: float, z: float) -> float:
        """Speed in the poloidal (r, z) plane [m/s]"""
        v = self.velocity(r, z)
        return float(np.hypot(v[0], v[2]))

    # ========== CONSTANTS OF MOTION ==========
    def energy(self, r: float, z: float) -> float:
        """
        Energy [keV] of a particle with this mu and p_phi located at (r, z).

        Its level set through the starting point is the drift orbit.
        """
        eq = self._eq
        hc = self._hc
        psi = eq.psi(r, z)
        g = eq.g(psi)
        babs = eq.b(r, z)
        W = (((hc.p_phi - hc.q*E0*psi)**2)/(2*self.mass))*(babs/g)**2 + hc.mu*babs
        return W/(E0*1e3) + 1e-3*eq.phi(psi)

    def mu(self, r: float, z: float) -> float:
        """
        Magnetic moment [J/T] a particle with this energy and p_phi would need
        to be located at (r, z).
        """
        eq = self._eq
        hc = self._hc
        psi = eq.psi(r, z)
        g = eq.g(psi)
        babs = eq.b(r, z)
        KE = hc.energy - 1e-3*eq.phi(psi)
        return (1e3*E0*KE/babs) - (babs/(2*self.mass))*((hc.p_phi - hc.q*E0*psi)/g)**2

    def __repr__(self):
        return (f"DriftField(E={self._hc.energy:.3f} keV, mu={self._hc.mu:.3e}, "
                f"p_phi={self._hc.p_phi:.3e})")
