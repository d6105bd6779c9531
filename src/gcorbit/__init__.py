"""
gcorbit: Guiding-Center Drift Orbits in Axisymmetric Equilibria

A Python package for tracing and classifying the guiding-center orbits of
charged particles in tokamak-like magnetic equilibria, using interchangeable
orbit coordinates, event-driven time integration and constant-energy contour
following.
"""

# Configuration
from .config import config, temp_config

# Equilibria and walls
from .equilibrium import AxisymmetricEquilibrium, CircularEquilibrium, GriddedEquilibrium
from .wall import Wall
from .defaults import circular_tokamak, limiter_wall

# Orbit coordinates
from .coordinates import (
    CoordType,
    EPRCoordinate,
    HamiltonianCoordinate,
    ReferenceCoordinate,
    NormalizedCoordinate,
    hamiltonian,
    normalize,
    get_pitch,
)

# Physics kernel and tracers
from .drift import DriftField
from .integrator import ScipyIntegrator
from .orbit import Orbit
from .tracing import OrbitTracer, trace_orbit, reference_coordinate
from .contour import ContourTracer, follow_contour, trace_orbit_contour

# Diagnostics
from .utils import OrbitDiagnosticWarning

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from gcorbit import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Equilibria
    "AxisymmetricEquilibrium",
    "CircularEquilibrium",
    "GriddedEquilibrium",
    "Wall",
    "circular_tokamak",
    "limiter_wall",
    # Coordinates
    "CoordType",
    "EPRCoordinate",
    "HamiltonianCoordinate",
    "ReferenceCoordinate",
    "NormalizedCoordinate",
    "hamiltonian",
    "normalize",
    "get_pitch",
    # Tracing
    "DriftField",
    "ScipyIntegrator",
    "Orbit",
    "OrbitTracer",
    "trace_orbit",
    "reference_coordinate",
    "ContourTracer",
    "follow_contour",
    "trace_orbit_contour",
    # Diagnostics
    "OrbitDiagnosticWarning",
]
