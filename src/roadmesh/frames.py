"""Host capabilities injected into a road.

The road geometry lives in the road object's local frame, while the
points a designer draws and the terrains the road rests on live in
world space.  `CoordinateFrame` converts between the two; `MeshSink`
receives every generated mesh (the host's renderer and collider).
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np


class CoordinateFrame(ABC):
    """Transform between the road's local frame and world space."""

    @property
    @abstractmethod
    def up(self) -> np.ndarray:
        """Up axis of the road object, in local coordinates."""

    @abstractmethod
    def to_local(self, points: np.ndarray) -> np.ndarray:
        """Convert (N, 3) world points to local points."""

    @abstractmethod
    def to_world(self, points: np.ndarray) -> np.ndarray:
        """Convert (N, 3) local points to world points."""


class IdentityFrame(CoordinateFrame):
    """Local frame coincides with world space (y-up)."""

    @property
    def up(self) -> np.ndarray:
        return np.array([0.0, 1.0, 0.0])

    def to_local(self, points: np.ndarray) -> np.ndarray:
        return np.asarray(points, dtype=float).reshape(-1, 3).copy()

    def to_world(self, points: np.ndarray) -> np.ndarray:
        return np.asarray(points, dtype=float).reshape(-1, 3).copy()


class AffineFrame(CoordinateFrame):
    """Frame given by a 4x4 local-to-world matrix.

    Parameters
    ----------
    matrix : array_like
        Homogeneous transform taking local points to world points.
    local_up : array_like, optional
        Up axis in local coordinates; defaults to +y.
    """

    def __init__(self, matrix, local_up=(0.0, 1.0, 0.0)):
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError("matrix must be 4x4")
        self.matrix = matrix
        self.inverse = np.linalg.inv(matrix)
        self._up = np.asarray(local_up, dtype=float)

    @classmethod
    def from_translation(cls, offset, local_up=(0.0, 1.0, 0.0)) -> "AffineFrame":
        matrix = np.eye(4)
        matrix[:3, 3] = np.asarray(offset, dtype=float)
        return cls(matrix, local_up)

    @property
    def up(self) -> np.ndarray:
        return self._up.copy()

    @staticmethod
    def _apply(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        homogeneous = np.column_stack([pts, np.ones(len(pts))])
        return (homogeneous @ matrix.T)[:, :3]

    def to_local(self, points: np.ndarray) -> np.ndarray:
        return self._apply(self.inverse, points)

    def to_world(self, points: np.ndarray) -> np.ndarray:
        return self._apply(self.matrix, points)


class MeshSink(ABC):
    """Receiver of generated road meshes."""

    @abstractmethod
    def publish(self, mesh) -> None:
        """Replace the host's mesh with ``mesh`` (a `RoadMesh`)."""


class InMemoryMeshSink(MeshSink):
    """Keeps published meshes; useful for tools without a renderer."""

    def __init__(self):
        self.history: List = []

    @property
    def mesh(self) -> Optional[object]:
        return self.history[-1] if self.history else None

    def publish(self, mesh) -> None:
        self.history.append(mesh)
