'''Guiding-center orbit package
Axisymmetric equilibrium definitions

An equilibrium is treated as read-only external state: every transform and
tracer borrows it and only queries it by position or by flux value.'''

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from scipy.interpolate import RectBivariateSpline, CubicSpline


class AxisymmetricEquilibrium(ABC):
    """
    Interface of an axisymmetric magnetic equilibrium.

    Positions are cylindrical (r, z) in metres. The poloidal flux psi is in
    Wb/rad. Field vectors are returned in (R, phi, Z) component order.

    The poloidal field follows B_R = (1/r) dpsi/dz, B_Z = -(1/r) dpsi/dr and
    the toroidal field is B_phi = g(psi)/r. Subclasses only need to provide
    the flux, the toroidal function and the geometry; everything else has a
    default built on those.
    """

    # ========== REQUIRED INTERFACE ==========
    @abstractmethod
    def psi(self, r: float, z: float) -> float:
        """Poloidal flux at (r, z) [Wb/rad]"""

    @abstractmethod
    def psi_gradient(self, r: float, z: float) -> Tuple[float, float]:
        """(dpsi/dr, dpsi/dz) at (r, z)"""

    @abstractmethod
    def g(self, psi: float) -> float:
        """Toroidal function g = r*B_phi on the flux surface psi [T m]"""

    @property
    @abstractmethod
    def axis(self) -> Tuple[float, float]:
        """Magnetic axis position (r, z) [m]"""

    @property
    @abstractmethod
    def r_domain(self) -> Tuple[float, float]:
        """Radial extent of the domain (rmin, rmax) [m]"""

    @property
    @abstractmethod
    def z_domain(self) -> Tuple[float, float]:
        """Vertical extent of the domain (zmin, zmax) [m]"""

    @property
    @abstractmethod
    def flux(self) -> float:
        """Flux normalization [Wb/rad]"""

    @property
    @abstractmethod
    def sigma(self) -> int:
        """Sign convention relating pitch to the field direction (+1 or -1)"""

    # ========== DERIVED QUANTITIES ==========
    def phi(self, psi: float) -> float:
        """Electrostatic potential on the flux surface psi [V]"""
        return 0.0

    def bfield(self, r: float, z: float) -> np.ndarray:
        """Magnetic field vector (B_R, B_phi, B_Z) at (r, z) [T]"""
        dpsi_dr, dpsi_dz = self.psi_gradient(r, z)
        g = self.g(self.psi(r, z))
        return np.array([dpsi_dz/r, g/r, -dpsi_dr/r])

    def b(self, r: float, z: float) -> float:
        """Magnetic field magnitude at (r, z) [T]"""
        return float(np.linalg.norm(self.bfield(r, z)))

    @property
    def b_axis(self) -> float:
        """Field magnitude at the magnetic axis [T]"""
        return self.b(*self.axis)

    def in_domain(self, r: float, z: float) -> bool:
        """True if (r, z) lies strictly inside the r/z domain."""
        rmin, rmax = self.r_domain
        zmin, zmax = self.z_domain
        return (rmin < r < rmax) and (zmin < z < zmax)


@dataclass(frozen=True)
class CircularEquilibrium(AxisymmetricEquilibrium):
    """
    Analytic, up-down symmetric equilibrium with elliptic flux surfaces.

    The flux is psi = psi_a*((r - r0)^2 + ((z - z0)/kappa)^2)/a^2, minimal on
    the magnetic axis (r0, z0), and the toroidal function is the vacuum value
    g = b0*r0. A constant potential can be supplied as a callable of psi.

    Attributes
    ----------
    r0 : float
        Major radius of the magnetic axis [m]
    z0 : float
        Vertical position of the magnetic axis [m]
    a : float
        Minor radius of the last closed flux surface [m]
    b0 : float
        Vacuum toroidal field at r0 [T]
    psi_a : float
        Flux at the last closed flux surface, relative to the axis [Wb/rad]
    kappa : float
        Elongation
    sign : int
        Sign convention (+1 or -1)
    rlim, zlim : tuple of float
        Domain extent [m]. Defaults to a 1.5*a margin around the axis.
    potential : callable, optional
        Electrostatic potential as a function of psi [V]
    """
    r0: float = 1.7
    z0: float = 0.0
    a: float = 0.6
    b0: float = 2.0
    psi_a: float = 0.2
    kappa: float = 1.0
    sign: int = 1
    rlim: Optional[Tuple[float, float]] = None
    zlim: Optional[Tuple[float, float]] = None
    potential: Optional[Callable[[float], float]] = None

    def __post_init__(self):
        if self.r0 <= 0:
            raise ValueError(f"Major radius must be positive, got {self.r0}")
        if self.a <= 0 or self.a >= self.r0:
            raise ValueError(f"Minor radius must be in (0, r0), got {self.a}")
        if self.kappa <= 0:
            raise ValueError(f"Elongation must be positive, got {self.kappa}")
        if self.psi_a == 0:
            raise ValueError("Boundary flux psi_a must be non-zero")
        if self.sign not in (1, -1):
            raise ValueError(f"Sign convention must be +1 or -1, got {self.sign}")
        rmin, rmax = self.r_domain
        if rmin <= 0 or rmin >= rmax:
            raise ValueError(f"Invalid radial domain {self.r_domain}")

    def psi(self, r, z):
        dz = (z - self.z0)/self.kappa
        return self.psi_a*((r - self.r0)**2 + dz**2)/self.a**2

    def psi_gradient(self, r, z):
        dpsi_dr = 2*self.psi_a*(r - self.r0)/self.a**2
        dpsi_dz = 2*self.psi_a*(z - self.z0)/(self.kappa**2*self.a**2)
        return dpsi_dr, dpsi_dz

    def g(self, psi):
        return self.b0*self.r0

    def phi(self, psi):
        if self.potential is None:
            return 0.0
        return self.potential(psi)

    @property
    def axis(self):
        return (self.r0, self.z0)

    @property
    def r_domain(self):
        if self.rlim is not None:
            return tuple(self.rlim)
        return (self.r0 - 1.5*self.a, self.r0 + 1.5*self.a)

    @property
    def z_domain(self):
        if self.zlim is not None:
            return tuple(self.zlim)
        half = 1.5*self.a*self.kappa
        return (self.z0 - half, self.z0 + half)

    @property
    def flux(self):
        return abs(self.psi_a)

    @property
    def sigma(self):
        return self.sign


class GriddedEquilibrium(AxisymmetricEquilibrium):
    """
    Equilibrium interpolated from tabulated data, e.g. an EFIT reconstruction.

    Parameters
    ----------
    r : array_like, shape (nr,)
        Strictly increasing radial grid [m]
    z : array_like, shape (nz,)
        Strictly increasing vertical grid [m]
    psi_rz : array_like, shape (nr, nz)
        Poloidal flux on the grid [Wb/rad]
    psi_1d : array_like, shape (n,)
        Strictly increasing flux values on which g (and phi) are tabulated
    g_1d : array_like, shape (n,)
        Toroidal function g(psi) [T m]
    axis : tuple of float
        Magnetic axis (r, z) [m]
    flux : float
        Flux normalization [Wb/rad]
    sigma : int, optional
        Sign convention (default +1)
    phi_1d : array_like, optional
        Electrostatic potential phi(psi) [V], zero if omitted

    Notes
    -----
    Flux values outside psi_1d are clamped to its end points when g and phi
    are evaluated.
    """

    def __init__(self, r, z, psi_rz, psi_1d, g_1d, axis, flux,
                 sigma: int = 1, phi_1d=None):
        r = np.asarray(r, dtype=float)
        z = np.asarray(z, dtype=float)
        psi_rz = np.asarray(psi_rz, dtype=float)
        psi_1d = np.asarray(psi_1d, dtype=float)
        g_1d = np.asarray(g_1d, dtype=float)

        if psi_rz.shape != (r.size, z.size):
            raise ValueError(
                f"psi_rz must have shape {(r.size, z.size)}, got {psi_rz.shape}"
            )
        if psi_1d.shape != g_1d.shape:
            raise ValueError("psi_1d and g_1d must have the same shape")
        if sigma not in (1, -1):
            raise ValueError(f"Sign convention must be +1 or -1, got {sigma}")
        if flux == 0:
            raise ValueError("Flux normalization must be non-zero")

        self._spline = RectBivariateSpline(r, z, psi_rz, kx=3, ky=3)
        self._g_spline = CubicSpline(psi_1d, g_1d)
        self._phi_spline = None
        if phi_1d is not None:
            self._phi_spline = CubicSpline(psi_1d, np.asarray(phi_1d, dtype=float))
        self._psi_range = (psi_1d[0], psi_1d[-1])
        self._r_domain = (float(r[0]), float(r[-1]))
        self._z_domain = (float(z[0]), float(z[-1]))
        self._axis = (float(axis[0]), float(axis[1]))
        self._flux = float(flux)
        self._sigma = int(sigma)

    @classmethod
    def from_equilibrium(cls, eq: AxisymmetricEquilibrium,
                         nr: int = 129, nz: int = 129, npsi: int = 65):
        """
        Tabulate another equilibrium on a regular grid spanning its domain.

        Useful to exercise the interpolated path with a known analytic field.
        """
        r = np.linspace(*eq.r_domain, nr)
        z = np.linspace(*eq.z_domain, nz)
        psi_rz = np.array([[eq.psi(rr, zz) for zz in z] for rr in r])
        psi_1d = np.linspace(psi_rz.min(), psi_rz.max(), npsi)
        g_1d = np.array([eq.g(p) for p in psi_1d])
        phi_1d = np.array([eq.phi(p) for p in psi_1d])
        return cls(r, z, psi_rz, psi_1d, g_1d, eq.axis, eq.flux,
                   sigma=eq.sigma, phi_1d=phi_1d)

    def _clamp(self, psi):
        return min(max(psi, self._psi_range[0]), self._psi_range[1])

    def psi(self, r, z):
        return float(self._spline.ev(r, z))

    def psi_gradient(self, r, z):
        dpsi_dr = float(self._spline.ev(r, z, dx=1))
        dpsi_dz = float(self._spline.ev(r, z, dy=1))
        return dpsi_dr, dpsi_dz

    def g(self, psi):
        return float(self._g_spline(self._clamp(psi)))

    def phi(self, psi):
        if self._phi_spline is None:
            return 0.0
        return float(self._phi_spline(self._clamp(psi)))

    @property
    def axis(self):
        return self._axis

    @property
    def r_domain(self):
        return self._r_domain

    @property
    def z_domain(self):
        return self._z_domain

    @property
    def flux(self):
        return self._flux

    @property
    def sigma(self):
        return self._sigma

    def __repr__(self):
        return (f"GriddedEquilibrium(axis=({self._axis[0]:.3f}, {self._axis[1]:.3f}), "
                f"r_domain={self._r_domain}, z_domain={self._z_domain})")
