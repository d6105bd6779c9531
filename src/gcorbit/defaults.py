"""
Physical Constants and Default Configurations
=============================================

Physical constants shared by the coordinate transforms and the drift model,
mass numbers of common fusion species, and factory functions for commonly
used equilibria.

Examples
--------
>>> from gcorbit.defaults import circular_tokamak, D_AMU
>>> eq = circular_tokamak()            # Default analytic tokamak
>>> eq_small = circular_tokamak(a=0.3) # Override any parameter
"""
from .equilibrium import CircularEquilibrium
from .wall import Wall

"""
Physical constants (CODATA 2018)
"""
E0 = 1.602176634e-19       # Elementary charge [C]
MASS_U = 1.66053906660e-27 # Atomic mass unit [kg]

"""
Mass numbers of common species [amu]
"""
H1_AMU = 1.007276466621    # Proton
H2_AMU = 2.013553212745    # Deuteron
H3_AMU = 3.01550071621     # Triton
HE4_AMU = 4.001506179127   # Alpha particle

# Deuterium is the default species throughout the package
D_AMU = H2_AMU


def circular_tokamak(**overrides) -> CircularEquilibrium:
    """
    Medium-size analytic tokamak.

    Axis at r0 = 1.7 m, minor radius a = 0.6 m, b0 = 2 T, boundary flux
    0.2 Wb/rad, circular cross-section. Keyword arguments override any
    CircularEquilibrium field.
    """
    params = dict(r0=1.7, z0=0.0, a=0.6, b0=2.0, psi_a=0.2, kappa=1.0, sign=1)
    params.update(overrides)
    return CircularEquilibrium(**params)


def limiter_wall(eq, margin: float = 0.0) -> Wall:
    """Rectangular wall along the domain of an equilibrium, shrunk by margin."""
    rmin, rmax = eq.r_domain
    zmin, zmax = eq.z_domain
    return Wall.from_limits((rmin + margin, rmax - margin),
                            (zmin + margin, zmax - margin))
