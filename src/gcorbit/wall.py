'''Guiding-center orbit package
Wall class definition'''

import numpy as np
from matplotlib.path import Path as MplPath


class Wall:
    """
    First-wall (limiter) contour in the poloidal plane.

    Parameters
    ----------
    r : array_like
        Radial coordinates of the polygon vertices [m]
    z : array_like
        Vertical coordinates of the polygon vertices [m]

    Notes
    -----
    The polygon is closed automatically. Vertices are stored read-only.
    """

    def __init__(self, r, z):
        r = np.asarray(r, dtype=float)
        z = np.asarray(z, dtype=float)
        if r.ndim != 1 or r.shape != z.shape:
            raise ValueError(
                f"Wall r and z must be 1-D arrays of equal length, "
                f"got shapes {r.shape} and {z.shape}"
            )
        if r.size < 3:
            raise ValueError(f"Wall needs at least 3 vertices, got {r.size}")
        if not (np.all(np.isfinite(r)) and np.all(np.isfinite(z))):
            raise ValueError("Wall vertices contain NaN or Inf")

        self._vertices = np.column_stack([r, z])
        self._vertices.flags.writeable = False
        self._path = MplPath(self._vertices, closed=False)

    @classmethod
    def from_limits(cls, r_domain, z_domain):
        """Rectangular wall spanning the given radial and vertical extent."""
        rmin, rmax = r_domain
        zmin, zmax = z_domain
        return cls([rmin, rmax, rmax, rmin], [zmin, zmin, zmax, zmax])

    @property
    def r(self) -> np.ndarray:
        return self._vertices[:, 0]

    @property
    def z(self) -> np.ndarray:
        return self._vertices[:, 1]

    @property
    def vertices(self) -> np.ndarray:
        """Polygon vertices, shape (n, 2) (read-only)"""
        return self._vertices

    def inside(self, r: float, z: float) -> bool:
        """True if (r, z) lies inside the wall polygon."""
        return bool(self._path.contains_point((r, z)))

    def __contains__(self, point) -> bool:
        r, z = point
        return self.inside(r, z)

    def __repr__(self):
        return (f"Wall(n_vertices={len(self._vertices)}, "
                f"r=[{self.r.min():.3f}, {self.r.max():.3f}], "
                f"z=[{self.z.min():.3f}, {self.z.max():.3f}])")
