'''Guiding-center orbit package
Orbit class definition'''

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from typing import Optional, Tuple
from .config import config
from .coordinates import HamiltonianCoordinate


class Orbit:
    """
    A traced guiding-center orbit in the poloidal plane.

    Attributes:
        hcoord: Canonical coordinate (constants of motion) of the orbit
        coordinate: Reference-point coordinate the orbit was traced from
        r, z: Major radius and vertical position of each sample [m]
        phi: Toroidal angle of each sample [rad]
        dt: Time interval attached to each sample [s]
        hits_boundary: True if the orbit left the domain or wall
        complete: True if the orbit closed with a recognised topology

    All arrays are read-only; derived quantities are computed on demand.
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, hcoord: HamiltonianCoordinate, coordinate,
                 r, z, phi, dt, hits_boundary: bool, complete: bool):
        arrays = [np.array(a, dtype=float) for a in (r, z, phi, dt)]
        n = arrays[0].size
        if any(a.ndim != 1 or a.size != n for a in arrays):
            raise ValueError(
                f"r, z, phi and dt must be 1-D arrays of equal length, "
                f"got sizes {[a.size for a in arrays]}"
            )
        for a in arrays:
            a.flags.writeable = False
        self._r, self._z, self._phi, self._dt = arrays
        self._hcoord = hcoord
        self._coordinate = coordinate
        self._hits_boundary = bool(hits_boundary)
        self._complete = bool(complete)

    # ========== PROPERTY ACCESS ==========
    @property
    def hcoord(self) -> HamiltonianCoordinate:
        return self._hcoord

    @property
    def coordinate(self):
        return self._coordinate

    @property
    def r(self) -> np.ndarray:
        return self._r

    @property
    def z(self) -> np.ndarray:
        return self._z

    @property
    def phi(self) -> np.ndarray:
        return self._phi

    @property
    def dt(self) -> np.ndarray:
        return self._dt

    @property
    def hits_boundary(self) -> bool:
        return self._hits_boundary

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def n_points(self) -> int:
        return self._r.size

    # ========== DERIVED QUANTITIES ==========
    @property
    def time(self) -> np.ndarray:
        """Cumulative time at each sample [s]"""
        return np.cumsum(self._dt)

    @property
    def duration(self) -> float:
        """Total time covered by the samples, about one poloidal period for a complete orbit [s]"""
        return float(np.sum(self._dt))

    @property
    def x(self) -> np.ndarray:
        """Cartesian x of each sample [m]"""
        return self._r*np.cos(self._phi)

    @property
    def y(self) -> np.ndarray:
        """Cartesian y of each sample [m]"""
        return self._r*np.sin(self._phi)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Export orbit samples to pandas DataFrame.

        Returns:
            DataFrame with columns time, dt, r, z, phi, x, y
        """
        data = {
            'time': self.time,
            'dt': self._dt,
            'r': self._r,
            'z': self._z,
            'phi': self._phi,
            'x': self.x,
            'y': self.y,
        }
        return pd.DataFrame(data)

    # ========== PLOTTING ==========
    def plot(self, rlim: Optional[Tuple[float, float]] = None,
             zlim: Optional[Tuple[float, float]] = None,
             colorscale: Optional[str] = None,
             wall=None) -> go.Figure:
        """
        Plot the orbit in the poloidal plane and seen from above.

        Parameters:
            rlim, zlim: Axis limits of the poloidal view [m] (default: auto)
            colorscale: Plotly colorscale for time colouring
                        (default: config.DEFAULT_PLOT_COLORSCALE)
            wall: Optional Wall drawn in the poloidal view

        Returns:
            Plotly Figure object
        """
        if colorscale is None:
            colorscale = config.DEFAULT_PLOT_COLORSCALE
        t_us = self.time*1e6

        fig = make_subplots(rows=1, cols=2, column_widths=[0.38, 0.62],
                            subplot_titles=("Poloidal", "Top-down"))
        marker = dict(color=t_us, colorscale=colorscale, size=3,
                      colorbar=dict(title='t [µs]'))

        fig.add_trace(go.Scatter(
            x=self._r, y=self._z,
            mode='lines+markers',
            line=dict(color='lightgray', width=config.DEFAULT_PLOT_WIDTH),
            marker=marker,
            name='Orbit (R, Z)',
            hovertemplate='R: %{x:.4f}<br>Z: %{y:.4f}<extra></extra>'
        ), row=1, col=1)

        if wall is not None:
            fig.add_trace(go.Scatter(
                x=np.append(wall.r, wall.r[0]), y=np.append(wall.z, wall.z[0]),
                mode='lines', line=dict(color='black', width=1), name='Wall'
            ), row=1, col=1)

        fig.add_trace(go.Scatter(
            x=self.x, y=self.y,
            mode='lines+markers',
            line=dict(color='lightgray', width=config.DEFAULT_PLOT_WIDTH),
            marker=dict(color=t_us, colorscale=colorscale, size=3),
            name='Orbit (X, Y)',
            hovertemplate='X: %{x:.4f}<br>Y: %{y:.4f}<extra></extra>'
        ), row=1, col=2)

        fig.update_xaxes(title_text='R [m]', range=rlim, row=1, col=1)
        fig.update_yaxes(title_text='Z [m]', range=zlim, scaleanchor='x',
                         row=1, col=1)
        fig.update_xaxes(title_text='X [m]', row=1, col=2)
        fig.update_yaxes(title_text='Y [m]', scaleanchor='x2', row=1, col=2)
        fig.update_layout(showlegend=False, title=self._title())
        return fig

    def _title(self):
        if self._complete:
            status = 'complete'
        elif self._hits_boundary:
            status = 'lost'
        else:
            status = 'incomplete'
        return f"Guiding-center orbit ({status}, E = {self._hcoord.energy:.1f} keV)"

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        return self.n_points

    def __repr__(self):
        return (f"Orbit(n_points={self.n_points}, complete={self._complete}, "
                f"hits_boundary={self._hits_boundary}, duration={self.duration:.3e})")

    def __str__(self):
        return (f"Orbit with {self.n_points} points: "
                f"complete={self._complete}, hits_boundary={self._hits_boundary}")
