"""Terrain heightfields.

A terrain is a regular grid of normalised heights placed in world
space.  Heights are stored row-major as ``heights[y, x]`` with values
in ``[0, 1]``; a height ``h`` corresponds to the world elevation
``origin.y + h * size.y``.  Grid column ``x`` runs along world x and
row ``y`` along world z, spanning ``size.x`` by ``size.z``.
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


@dataclass
class Terrain:
    """Heightfield grid with its world placement."""

    heights: np.ndarray
    """Normalised heights of shape (grid_height, grid_width)."""

    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    """World position of cell (0, 0) at height 0."""

    size: np.ndarray = field(default_factory=lambda: np.array([100.0, 50.0, 100.0]))
    """World extent (x, height, z) of the terrain."""

    name: str = "Terrain"

    def __post_init__(self):
        self.heights = np.asarray(self.heights, dtype=float)
        self.origin = np.asarray(self.origin, dtype=float)
        self.size = np.asarray(self.size, dtype=float)
        if self.heights.ndim != 2 or min(self.heights.shape) < 1:
            raise ValueError("heights must be a non-empty 2D grid")
        if self.origin.shape != (3,) or self.size.shape != (3,):
            raise ValueError("origin and size must be 3D vectors")
        if self.size[1] <= 0:
            raise ValueError("terrain height extent must be positive")

    @classmethod
    def flat(
        cls,
        grid_width: int,
        grid_height: int,
        level: float = 0.0,
        origin=(0.0, 0.0, 0.0),
        size=(100.0, 50.0, 100.0),
        name: str = "Terrain",
    ) -> "Terrain":
        """Terrain with every cell at normalised height ``level``."""
        return cls(np.full((grid_height, grid_width), level), np.asarray(origin), np.asarray(size), name)

    @property
    def grid_width(self) -> int:
        return self.heights.shape[1]

    @property
    def grid_height(self) -> int:
        return self.heights.shape[0]

    def cell_spacing(self) -> Tuple[float, float]:
        """World distance between neighbouring cells along x and z."""
        dx = self.size[0] / (self.grid_width - 1) if self.grid_width > 1 else 0.0
        dz = self.size[2] / (self.grid_height - 1) if self.grid_height > 1 else 0.0
        return dx, dz

    def cell_positions(self) -> Tuple[np.ndarray, np.ndarray]:
        """World x of every column and world z of every row."""
        dx, dz = self.cell_spacing()
        xs = self.origin[0] + np.arange(self.grid_width) * dx
        zs = self.origin[2] + np.arange(self.grid_height) * dz
        return xs, zs

    def to_normalized(self, elevation):
        """Convert world elevations to (unclamped) normalised heights."""
        return (np.asarray(elevation, dtype=float) - self.origin[1]) / self.size[1]

    def to_elevation(self, heights):
        """Convert normalised heights to world elevations."""
        return self.origin[1] + np.asarray(heights, dtype=float) * self.size[1]
