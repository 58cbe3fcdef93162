"""Ray tests against triangle meshes.

`RaySurface` is the capability the terrain fitter needs from the road:
given many ray origins sharing one direction, report how far along
each ray the surface is first hit.  `TriangleMeshSurface` implements it
for an indexed triangle mesh with a vectorised Moller-Trumbore test.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

# Upper bound on rays x triangles evaluated in one numpy batch.
_BATCH_ELEMENTS = 2_000_000


class RaySurface(ABC):
    """A surface that can be intersected with rays."""

    @abstractmethod
    def raycast(self, origins: np.ndarray, direction, max_distance: float) -> np.ndarray:
        """Distance to the first hit along each ray.

        Parameters
        ----------
        origins : numpy.ndarray
            Ray origins of shape (N, 3).
        direction : array_like
            Unit direction shared by all rays.
        max_distance : float
            Rays are tested up to this length.

        Returns
        -------
        numpy.ndarray
            Array of shape (N,) with the hit distance, or ``inf`` where
            the ray misses.
        """

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """World-space bounding box, or None if unknown."""
        return None


class TriangleMeshSurface(RaySurface):
    """Two-sided ray tests against an indexed triangle mesh.

    Parameters
    ----------
    vertices : numpy.ndarray
        Vertex positions of shape (V, 3), in the same space as the rays.
    triangles : numpy.ndarray
        Integer indices of shape (T, 3).
    """

    def __init__(self, vertices: np.ndarray, triangles: np.ndarray, eps: float = 1e-12):
        self.vertices = np.asarray(vertices, dtype=float)
        self.triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
        if len(self.triangles) and self.triangles.max() >= len(self.vertices):
            raise ValueError("triangle index exceeds vertex count")
        self.eps = eps
        v0 = self.vertices[self.triangles[:, 0]]
        self._v0 = v0
        self._e1 = self.vertices[self.triangles[:, 1]] - v0
        self._e2 = self.vertices[self.triangles[:, 2]] - v0

    @classmethod
    def from_road_mesh(cls, mesh, frame=None, use_collision: bool = True) -> "TriangleMeshSurface":
        """Surface of a `RoadMesh`, optionally moved to world space.

        The collision hull is preferred when the mesh carries one.
        """
        vertices = mesh.vertices
        if use_collision and mesh.collision_vertices is not None:
            vertices = mesh.collision_vertices
        if frame is not None and len(vertices):
            vertices = frame.to_world(vertices)
        return cls(vertices, mesh.triangles)

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        if len(self.triangles) == 0:
            return None
        used = self.vertices[np.unique(self.triangles)]
        return used.min(axis=0), used.max(axis=0)

    def raycast(self, origins: np.ndarray, direction, max_distance: float) -> np.ndarray:
        origins = np.asarray(origins, dtype=float).reshape(-1, 3)
        direction = np.asarray(direction, dtype=float)
        best = np.full(len(origins), np.inf)
        n_tris = len(self.triangles)
        if n_tris == 0 or len(origins) == 0:
            return best

        # Per-triangle terms that do not depend on the ray origin.
        p = np.cross(direction, self._e2)
        det = np.einsum("ij,ij->i", self._e1, p)
        parallel = np.abs(det) < self.eps
        inv_det = np.where(parallel, 0.0, 1.0 / np.where(parallel, 1.0, det))

        chunk = max(1, _BATCH_ELEMENTS // max(len(origins), 1))
        for start in range(0, n_tris, chunk):
            sl = slice(start, start + chunk)
            s = origins[:, None, :] - self._v0[None, sl, :]
            u = np.einsum("nck,ck->nc", s, p[sl]) * inv_det[sl]
            q = np.cross(s, self._e1[None, sl, :])
            v = (q @ direction) * inv_det[sl]
            t = np.einsum("nck,ck->nc", q, self._e2[sl]) * inv_det[sl]
            hit = (
                ~parallel[sl]
                & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0)
                & (t >= 0.0) & (t <= max_distance)
            )
            t = np.where(hit, t, np.inf)
            best = np.minimum(best, t.min(axis=1))
        return best
