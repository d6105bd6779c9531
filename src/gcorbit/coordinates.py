'''Guiding-center orbit package
Orbit coordinate definitions and transforms

Every coordinate form is an immutable value type. The canonical
(HamiltonianCoordinate) form is the one consumed by the drift model; all
other forms convert to it through a dispatch table keyed on CoordType.'''

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, TYPE_CHECKING
from scipy.optimize import minimize_scalar
from .config import config
from .defaults import E0, MASS_U, H2_AMU
from .utils import diagnostic, validation_error

if TYPE_CHECKING:
    from .equilibrium import AxisymmetricEquilibrium


# define an enumerated list of coordinate types
class CoordType(Enum):
    EPR = 'epr'                 # [energy; pitch; r; z]
    HAMILTONIAN = 'hamiltonian' # [energy; mu; p_phi]
    REFERENCE = 'reference'     # [energy; pitch; psi; r; z] at the outer turning point
    NORMALIZED = 'normalized'   # [energy; mu/mu_ref; p_phi/p_ref]


def _validate_species(amu, q):
    if not amu > 0:
        validation_error(f"Mass number must be positive, got {amu}")
    if int(q) != q or q == 0:
        validation_error(f"Charge number must be a non-zero integer, got {q}")


def _validate_pitch(pitch):
    if not -1.0 <= pitch <= 1.0:
        validation_error(f"Pitch must be in [-1, 1], got {pitch}")


def _validate_energy(energy):
    if not energy >= 0:
        validation_error(f"Kinetic energy must be non-negative, got {energy}")


# ========== COORDINATE VARIANTS ==========
@dataclass(frozen=True)
class EPRCoordinate:
    """
    Energy-pitch-position coordinate.

    Attributes
    ----------
    energy : float
        Kinetic energy [keV]
    pitch : float
        Cosine of the angle between velocity and magnetic field
    r : float
        Major radius [m]
    z : float
        Vertical position [m]
    amu : float
        Mass number (default: deuteron)
    q : int
        Charge number (default: 1)
    """
    coord_type: ClassVar[CoordType] = CoordType.EPR

    energy: float
    pitch: float
    r: float
    z: float
    amu: float = H2_AMU
    q: int = 1

    def __post_init__(self):
        _validate_energy(self.energy)
        _validate_pitch(self.pitch)
        _validate_species(self.amu, self.q)

    @classmethod
    def from_radius(cls, eq: "AxisymmetricEquilibrium", energy, pitch, r,
                    amu=H2_AMU, q=1, dz=None):
        """
        Build a coordinate at radius r, placed at the vertical position of
        minimum flux within dz of the magnetic axis.

        Raises
        ------
        ValueError
            If the minimum lies on the edge of the search bracket.
        """
        z = min_flux_z(eq, r, dz)
        return cls(energy, pitch, r, z, amu, q)

    def __str__(self):
        return (f"EPRCoordinate\n"
                f" E = {self.energy:.3f} keV\n"
                f" pitch = {self.pitch:.3f}\n"
                f" R = {self.r:.3f} m\n"
                f" Z = {self.z:.3f} m")


@dataclass(frozen=True)
class HamiltonianCoordinate:
    """
    Canonical (constants of motion) coordinate.

    Attributes
    ----------
    energy : float
        Total energy, kinetic + potential [keV]
    mu : float
        Magnetic moment [J/T]
    p_phi : float
        Canonical toroidal angular momentum [kg m^2/s]
    amu : float
        Mass number (default: deuteron)
    q : int
        Charge number (default: 1)
    """
    coord_type: ClassVar[CoordType] = CoordType.HAMILTONIAN

    energy: float
    mu: float
    p_phi: float
    amu: float = H2_AMU
    q: int = 1

    def __post_init__(self):
        _validate_species(self.amu, self.q)

    @property
    def mass(self) -> float:
        """Particle mass [kg]"""
        return self.amu*MASS_U

    def __str__(self):
        return (f"HamiltonianCoordinate\n"
                f" E = {self.energy:.3f} keV\n"
                f" mu = {self.mu:.3e}\n"
                f" p_phi = {self.p_phi:.3e}")


@dataclass(frozen=True)
class ReferenceCoordinate:
    """
    Reference-point coordinate: kinetic energy, pitch and flux evaluated at a
    distinguished point of the orbit (its maximum major radius).

    Attributes
    ----------
    energy : float
        Kinetic energy at the reference point [keV]
    pitch : float
        Pitch at the reference point
    psi : float
        Poloidal flux at the reference point [Wb/rad]
    r : float
        Major radius of the reference point [m]
    z : float
        Vertical position of the reference point [m]
    amu : float
        Mass number (default: deuteron)
    q : int
        Charge number (default: 1)
    """
    coord_type: ClassVar[CoordType] = CoordType.REFERENCE

    energy: float
    pitch: float
    psi: float
    r: float
    z: float
    amu: float = H2_AMU
    q: int = 1

    def __post_init__(self):
        _validate_energy(self.energy)
        _validate_pitch(self.pitch)
        _validate_species(self.amu, self.q)

    @classmethod
    def from_radius(cls, eq: "AxisymmetricEquilibrium", energy, pitch, r,
                    amu=H2_AMU, q=1, dz=None):
        """
        Build a reference coordinate at the outermost point of the flux
        surface that is tangent to the vertical line through r.
        """
        z = min_flux_z(eq, r, dz)
        return cls(energy, pitch, eq.psi(r, z), r, z, amu, q)

    def __str__(self):
        return (f"ReferenceCoordinate\n"
                f" E = {self.energy:.3f} keV\n"
                f" pitch = {self.pitch:.3f}\n"
                f" Rmax = {self.r:.3f} m")


@dataclass(frozen=True)
class NormalizedCoordinate:
    """
    Dimensionless canonical coordinate for comparing orbits across machines.

    mu is scaled by |B0|/E and p_phi by sigma/(e*flux), where B0 is the field
    at the magnetic axis and flux the equilibrium flux normalization.
    """
    coord_type: ClassVar[CoordType] = CoordType.NORMALIZED

    energy: float
    mu: float
    p_phi: float
    amu: float = H2_AMU
    q: int = 1

    def __post_init__(self):
        _validate_species(self.amu, self.q)

    def __str__(self):
        return (f"NormalizedCoordinate\n"
                f" E = {self.energy:.3f} keV\n"
                f" mu = {self.mu:.4f}\n"
                f" p_phi = {self.p_phi:.4f}")


# ========== TRANSFORMS TO CANONICAL FORM ==========
def _canonical(eq, energy, pitch, r, z, psi, amu, q):
    """Constants of motion of a particle with given kinetic energy and pitch."""
    babs = eq.b(r, z)
    g = eq.g(psi)
    KE = energy
    PE = 1e-3*eq.phi(psi)
    mu = E0*1e3*KE*(1 - pitch**2)/babs
    p_phi = -eq.sigma*np.sqrt(2e3*E0*KE*MASS_U*amu)*g*pitch/babs + q*E0*psi
    return HamiltonianCoordinate(KE + PE, mu, p_phi, amu, q)


def _epr_to_hamiltonian(eq, c: EPRCoordinate) -> HamiltonianCoordinate:
    psi = eq.psi(c.r, c.z)
    return _canonical(eq, c.energy, c.pitch, c.r, c.z, psi, c.amu, c.q)


def _hamiltonian_to_hamiltonian(eq, c: HamiltonianCoordinate) -> HamiltonianCoordinate:
    return c


def _reference_to_hamiltonian(eq, c: ReferenceCoordinate) -> HamiltonianCoordinate:
    return _canonical(eq, c.energy, c.pitch, c.r, c.z, c.psi, c.amu, c.q)


def _normalized_to_hamiltonian(eq, c: NormalizedCoordinate) -> HamiltonianCoordinate:
    E = c.energy
    mu = c.mu*(E*E0*1e3)/abs(eq.b_axis)
    p_phi = c.p_phi*(E0*eq.flux)/eq.sigma
    return HamiltonianCoordinate(E, mu, p_phi, c.amu, c.q)


_TO_HAMILTONIAN = {
    CoordType.EPR: _epr_to_hamiltonian,
    CoordType.HAMILTONIAN: _hamiltonian_to_hamiltonian,
    CoordType.REFERENCE: _reference_to_hamiltonian,
    CoordType.NORMALIZED: _normalized_to_hamiltonian,
}


def hamiltonian(eq: "AxisymmetricEquilibrium", c) -> HamiltonianCoordinate:
    """
    Convert any orbit coordinate to its canonical form.

    Parameters
    ----------
    eq : AxisymmetricEquilibrium
        Equilibrium the coordinate refers to
    c : EPRCoordinate, HamiltonianCoordinate, ReferenceCoordinate or NormalizedCoordinate

    Returns
    -------
    HamiltonianCoordinate
        The same object when c is already canonical
    """
    try:
        transform = _TO_HAMILTONIAN[c.coord_type]
    except AttributeError:
        raise TypeError(f"Not an orbit coordinate: {type(c).__name__}") from None
    return transform(eq, c)


def normalize(eq: "AxisymmetricEquilibrium", c) -> NormalizedCoordinate:
    """Rescale the constants of motion of c into dimensionless form."""
    hc = hamiltonian(eq, c)
    E = hc.energy
    mu = (abs(eq.b_axis)/(E*E0*1e3))*hc.mu
    p_phi = (eq.sigma/(E0*eq.flux))*hc.p_phi
    return NormalizedCoordinate(E, mu, p_phi, hc.amu, hc.q)


# ========== PITCH RECOVERY ==========
def get_pitch(eq: "AxisymmetricEquilibrium", c, r: float, z: float) -> float:
    """
    Pitch of the particle described by c when it is at (r, z).

    The pitch is obtained by inverting the p_phi relation. Its magnitude is
    cross-checked against the one implied by mu; a mismatch larger than
    config.PITCH_ATOL issues an OrbitDiagnosticWarning but does not change
    the result.

    Returns
    -------
    float
        Pitch clipped to [-1, 1]

    Raises
    ------
    ValueError
        If the kinetic energy at (r, z) is not positive.
    """
    hc = hamiltonian(eq, c)
    psi = eq.psi(r, z)
    g = eq.g(psi)
    babs = eq.b(r, z)
    KE = hc.energy - 1e-3*eq.phi(psi)
    if KE <= 0:
        raise ValueError(f"Kinetic energy at ({r}, {z}) is not positive: {KE} keV")

    f = -babs/(np.sqrt(2e3*E0*KE*MASS_U*hc.amu)*g*eq.sigma)
    pitch = f*(hc.p_phi - hc.q*E0*psi)
    pitchabs = np.sqrt(max(1.0 - (hc.mu*babs/(1e3*E0*KE)), 0.0))
    if not np.isclose(abs(pitch), pitchabs, rtol=0.0, atol=config.PITCH_ATOL):
        diagnostic(f"abs(pitch) != pitch implied by mu: {pitchabs} {pitch}")
    return float(np.clip(pitch, -1.0, 1.0))


# ========== AXIS SEARCH ==========
def min_flux_z(eq: "AxisymmetricEquilibrium", r: float, dz: Optional[float] = None) -> float:
    """
    Vertical position of minimum flux along the line at radius r, searched
    within dz of the magnetic axis.

    Raises
    ------
    ValueError
        If the minimizer fails or ends on the edge of the bracket.
    """
    if dz is None:
        dz = config.AXIS_SEARCH_DZ
    xatol = config.AXIS_SEARCH_XATOL
    zaxis = eq.axis[1]
    zmin = zaxis - dz
    zmax = zaxis + dz
    res = minimize_scalar(lambda x: eq.psi(r, x), bounds=(zmin, zmax),
                          method='bounded', options={'xatol': xatol})
    Z = float(res.x)
    edge = 1e3*xatol
    if not res.success or Z - zmin < edge or zmax - Z < edge:
        raise ValueError(
            f"Unable to find starting Z value with dz = {dz:.2f}. Increase dz"
        )
    return Z
