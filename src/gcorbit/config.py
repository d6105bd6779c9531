"""
Global Configuration for gcorbit Package
========================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, orbit classification thresholds, validation
behavior, and default plotting options.

Examples
--------
View current configuration:

>>> import gcorbit
>>> print(gcorbit.config)

Modify settings:

>>> gcorbit.config.DEFAULT_NSTEP = 6000  # Finer time grid
>>> gcorbit.config.ENERGY_RTOL = 1e-8    # Stricter contour pre-check

Reset to defaults:

>>> gcorbit.config.reset()

Temporarily modify settings:

>>> with gcorbit.temp_config(PITCH_ATOL=5e-2):
...     # Relaxed pitch cross-check for this block only
...     pitch = gcorbit.get_pitch(eq, hc, 2.0, 0.0)

Notes
-----
These settings affect package-wide behavior. Tracers read them when they are
constructed, so a tracer built inside a ``temp_config`` block keeps those
values after the block exits.
"""

from dataclasses import dataclass
from contextlib import contextmanager
from typing import Tuple


@dataclass
class GCOrbitConfig:
    """
    Global configuration for gcorbit package.

    Attributes
    ----------
    PITCH_ATOL : float
        Absolute tolerance between the pitch recovered from p_phi and the
        pitch magnitude implied by mu. A larger mismatch issues a diagnostic.
        Default: 1.5e-2
    CLOSURE_RADIAL_ATOL : float
        Radial distance [m] under which a midplane crossing counts as a return
        to the starting radius. Default: 1e-3
    BOUNDARY_RADIAL_ATOL : float
        Slack [m] allowed on the "radius does not exceed the reference radius"
        wall check. Default: 1e-6
    ENERGY_RTOL : float
        Relative tolerance of the energy consistency check done before
        following a constant-energy contour. Default: 1e-6
    INTEGRATION_RTOL : float
        Relative tolerance of the orbit integrator. Default: 1e-8
    INTEGRATION_ATOL : float
        Absolute tolerance of the orbit integrator. Default: 1e-12
    INTEGRATION_METHOD : str
        Name of the scipy stepper used by ScipyIntegrator. Default: 'DOP853'
    DEFAULT_NSTEP : int
        Number of points of the integration time grid. Default: 3000
    DEFAULT_TMAX : float
        Length of the integration time grid [microseconds]. Default: 500.0
    AXIS_SEARCH_DZ : float
        Half-height [m] of the bracket searched for the minimum-flux vertical
        position. Default: 0.2
    AXIS_SEARCH_XATOL : float
        Absolute tolerance [m] of that search. Default: 1e-9
    CONTOUR_TOL : float
        Residual tolerance [keV] of the contour follower corrector.
        Default: 1e-8
    CONTOUR_STEP_RANGE : tuple of float
        Minimum and maximum contour step [m]. Default: (1e-6, 0.01)
    CONTOUR_MAX_STEP : int
        Maximum number of contour vertices. Default: 3000
    STAGNATION_STD : tuple of float
        Standard deviations [m] of r and z below which a contour is treated
        as a stagnation orbit. Default: (0.01, 0.01)
    STRICT_VALIDATION : bool
        If True, coordinate validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    DEFAULT_PLOT_COLORSCALE : str
        Plotly colorscale used to colour orbits by time. Default: 'Bluered'
    DEFAULT_PLOT_WIDTH : int
        Line width of plotted orbits. Default: 2
    """

    # Orbit classification
    PITCH_ATOL: float = 1.5e-2
    CLOSURE_RADIAL_ATOL: float = 1e-3
    BOUNDARY_RADIAL_ATOL: float = 1e-6
    ENERGY_RTOL: float = 1e-6

    # Integration
    INTEGRATION_RTOL: float = 1e-8
    INTEGRATION_ATOL: float = 1e-12
    INTEGRATION_METHOD: str = 'DOP853'
    DEFAULT_NSTEP: int = 3000
    DEFAULT_TMAX: float = 500.0

    # Coordinate construction
    AXIS_SEARCH_DZ: float = 0.2
    AXIS_SEARCH_XATOL: float = 1e-9

    # Contour following
    CONTOUR_TOL: float = 1e-8
    CONTOUR_STEP_RANGE: Tuple[float, float] = (1e-6, 0.01)
    CONTOUR_MAX_STEP: int = 3000
    STAGNATION_STD: Tuple[float, float] = (0.01, 0.01)

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Plotting defaults
    DEFAULT_PLOT_COLORSCALE: str = 'Bluered'
    DEFAULT_PLOT_WIDTH: int = 2

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import gcorbit
        >>> gcorbit.config.DEFAULT_NSTEP = 10  # Modify
        >>> gcorbit.config.reset()  # Back to defaults
        >>> gcorbit.config.DEFAULT_NSTEP
        3000
        """
        defaults = GCOrbitConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["GCOrbitConfig:"]
        lines.append("  Orbit Classification:")
        lines.append(f"    PITCH_ATOL = {self.PITCH_ATOL}")
        lines.append(f"    CLOSURE_RADIAL_ATOL = {self.CLOSURE_RADIAL_ATOL}")
        lines.append(f"    BOUNDARY_RADIAL_ATOL = {self.BOUNDARY_RADIAL_ATOL}")
        lines.append(f"    ENERGY_RTOL = {self.ENERGY_RTOL}")
        lines.append("  Integration:")
        lines.append(f"    INTEGRATION_RTOL = {self.INTEGRATION_RTOL}")
        lines.append(f"    INTEGRATION_ATOL = {self.INTEGRATION_ATOL}")
        lines.append(f"    INTEGRATION_METHOD = '{self.INTEGRATION_METHOD}'")
        lines.append(f"    DEFAULT_NSTEP = {self.DEFAULT_NSTEP}")
        lines.append(f"    DEFAULT_TMAX = {self.DEFAULT_TMAX}")
        lines.append("  Coordinates:")
        lines.append(f"    AXIS_SEARCH_DZ = {self.AXIS_SEARCH_DZ}")
        lines.append(f"    AXIS_SEARCH_XATOL = {self.AXIS_SEARCH_XATOL}")
        lines.append("  Contour:")
        lines.append(f"    CONTOUR_TOL = {self.CONTOUR_TOL}")
        lines.append(f"    CONTOUR_STEP_RANGE = {self.CONTOUR_STEP_RANGE}")
        lines.append(f"    CONTOUR_MAX_STEP = {self.CONTOUR_MAX_STEP}")
        lines.append(f"    STAGNATION_STD = {self.STAGNATION_STD}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PLOT_COLORSCALE = '{self.DEFAULT_PLOT_COLORSCALE}'")
        lines.append(f"    DEFAULT_PLOT_WIDTH = {self.DEFAULT_PLOT_WIDTH}")
        return "\n".join(lines)


# Global configuration instance
config = GCOrbitConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import gcorbit
    >>> with gcorbit.temp_config(DEFAULT_NSTEP=500, DEFAULT_TMAX=50.0):
    ...     orbit = gcorbit.trace_orbit(eq, ref)
    >>> # Original config restored here
    >>> gcorbit.config.DEFAULT_NSTEP
    3000

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"GCOrbitConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
