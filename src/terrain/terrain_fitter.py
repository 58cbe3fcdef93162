"""Fit terrain heightfields to the underside of a road.

The fitter casts one vertical ray per grid cell against the road
surface.  Cells whose ray hits the road (contact cells) take the hit
elevation, which pulls the ground up or down to the road's underside.
A ring of cells around the footprint is then blended by replacing
each ring cell with the mean of its neighbourhood, so the ground
slopes into the road instead of stepping.

Algorithm:

1. For every grid cell, cast a ray upwards, starting half the ray
   length below the middle of the terrain's height range.  The first
   hit is the underside of the road.
2. On a hit, record the contact and store the hit elevation as a
   normalised height.  Heights outside ``[0, 1]`` are clamped and
   reported.
3. Mark all non-contact cells within ``neighbor_radius`` (Chebyshev
   distance) of a contact.
4. Replace each marked cell by the mean of its window of radius
   ``neighbor_radius``, computed from the heights as they were after
   step 2.  Windows are clipped at the grid edges.

The functions here never log; problems are returned in a `FitReport`.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from .heightfield import Terrain
from .raycast import RaySurface

_UP = np.array([0.0, 1.0, 0.0])


@dataclass
class FitReport:
    """Outcome of fitting one heightfield."""

    terrain: str
    contacts: Set[Tuple[int, int]] = field(default_factory=set)
    """Grid coordinates ``(x, y)`` where the road touched the terrain."""

    smoothed_cells: int = 0
    clamped_cells: int = 0
    sampled_cells: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def contact_cells(self) -> int:
        return len(self.contacts)

    @property
    def ok(self) -> bool:
        return not self.warnings

    def to_dict(self) -> Dict:
        """Summary without the contact coordinates."""
        return {
            "terrain": self.terrain,
            "contact_cells": self.contact_cells,
            "smoothed_cells": self.smoothed_cells,
            "clamped_cells": self.clamped_cells,
            "sampled_cells": self.sampled_cells,
            "warnings": list(self.warnings),
        }


def _window_bounds(n: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    idx = np.arange(n)
    return np.clip(idx - radius, 0, n - 1), np.clip(idx + radius, 0, n - 1) + 1


def window_sums(values: np.ndarray, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sum and count of every clipped ``(2r+1) x (2r+1)`` window.

    Uses a summed-area table, so the cost does not depend on the
    radius.
    """
    h, w = values.shape
    table = np.zeros((h + 1, w + 1))
    table[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    y0, y1 = _window_bounds(h, radius)
    x0, x1 = _window_bounds(w, radius)
    sums = (
        table[y1[:, None], x1[None, :]]
        - table[y0[:, None], x1[None, :]]
        - table[y1[:, None], x0[None, :]]
        + table[y0[:, None], x0[None, :]]
    )
    counts = (y1 - y0)[:, None] * (x1 - x0)[None, :]
    return sums, counts


def smoothing_ring(contact: np.ndarray, radius: int) -> np.ndarray:
    """Non-contact cells within ``radius`` grid steps of a contact."""
    if radius <= 0:
        return np.zeros_like(contact, dtype=bool)
    near, _ = window_sums(contact.astype(float), radius)
    return (near > 0) & ~contact


def smooth_ring(heights: np.ndarray, contact: np.ndarray, radius: int) -> np.ndarray:
    """Blend the ring around the contact cells in place.

    Every ring cell gets the mean of its window taken from the values
    before any ring cell changed.  Returns the ring mask.
    """
    ring = smoothing_ring(contact, radius)
    if ring.any():
        sums, counts = window_sums(heights, radius)
        heights[ring] = (sums / counts)[ring]
    return ring


def fit_heightfield(
    heights: np.ndarray,
    grid_width: int,
    grid_height: int,
    surface: RaySurface,
    vertical_extent: float,
    neighbor_radius: int,
    origin=(0.0, 0.0, 0.0),
    size=(100.0, 50.0, 100.0),
    footprint: Optional[Tuple[np.ndarray, np.ndarray]] = None,
    name: str = "Terrain",
) -> FitReport:
    """Fit a raw heightfield array in place; see the module docstring.

    Parameters
    ----------
    heights : numpy.ndarray
        Normalised heights of shape (grid_height, grid_width); modified
        in place.
    grid_width, grid_height : int
        Grid resolution; must match ``heights``.
    surface : RaySurface
        The road in world space.
    vertical_extent : float
        Length of each ray.
    neighbor_radius : int
        Radius of the smoothing ring; 0 disables smoothing.
    origin, size : array_like
        World placement of the grid, see `Terrain`.
    footprint : (min, max), optional
        World bounding box of the road.  Only cells under it are
        sampled.
    name : str
        Label used in the report.

    Returns
    -------
    FitReport
        Contacts, smoothed and clamped cell counts, and warnings.
    """
    terrain = Terrain(heights, np.asarray(origin, dtype=float), np.asarray(size, dtype=float), name)
    if terrain.heights is not heights:
        raise ValueError("heights must be a float numpy array to be updated in place")
    if heights.shape != (grid_height, grid_width):
        raise ValueError(
            f"heights shape {heights.shape} does not match grid {grid_height}x{grid_width}"
        )
    if neighbor_radius < 0:
        raise ValueError("neighbor_radius must be non-negative")
    if vertical_extent <= 0:
        raise ValueError("vertical_extent must be positive")

    report = FitReport(terrain=name)
    xs, zs = terrain.cell_positions()
    sample = np.ones(heights.shape, dtype=bool)
    if footprint is not None:
        lo, hi = footprint
        sample &= ((zs >= lo[2]) & (zs <= hi[2]))[:, None]
        sample &= ((xs >= lo[0]) & (xs <= hi[0]))[None, :]

    rows, cols = np.nonzero(sample)
    report.sampled_cells = len(rows)
    contact = np.zeros(heights.shape, dtype=bool)
    if len(rows):
        start_y = terrain.origin[1] + terrain.size[1] / 2.0 - vertical_extent / 2.0
        origins = np.column_stack([xs[cols], np.full(len(rows), start_y), zs[rows]])
        distances = surface.raycast(origins, _UP, vertical_extent)
        hit = np.isfinite(distances)
        rows, cols = rows[hit], cols[hit]
        levels = terrain.to_normalized(start_y + distances[hit])
        out_of_range = (levels < 0.0) | (levels > 1.0)
        report.clamped_cells = int(out_of_range.sum())
        heights[rows, cols] = np.clip(levels, 0.0, 1.0)
        contact[rows, cols] = True
        report.contacts = {(int(x), int(y)) for x, y in zip(cols, rows)}

    if report.clamped_cells:
        report.warnings.append(
            f"{report.clamped_cells} contact cells of {name!r} lie outside the terrain "
            f"height range [{terrain.origin[1]:.3f}, {terrain.origin[1] + terrain.size[1]:.3f}]; "
            "heights were clamped"
        )

    if contact.any():
        report.smoothed_cells = int(smooth_ring(heights, contact, neighbor_radius).sum())
    return report


@dataclass
class TerrainFitter:
    """Conform terrains to a road surface."""

    neighbor_radius: int = 1
    """Radius in grid cells of the blended ring around the road."""

    vertical_extent: Optional[float] = None
    """Ray length; None uses twice the terrain height so hits slightly
    outside the terrain's range are still found."""

    restrict_to_footprint: bool = True
    """Only cast rays under the road's bounding box."""

    def __post_init__(self):
        if self.neighbor_radius < 0:
            raise ValueError("neighbor_radius must be non-negative")

    def fit(self, terrain: Terrain, surface: RaySurface) -> FitReport:
        """Fit ``terrain.heights`` to ``surface`` in place."""
        extent = self.vertical_extent
        if extent is None:
            extent = 2.0 * float(terrain.size[1])
        # Surfaces without known bounds are sampled over the whole grid.
        footprint = surface.bounds() if self.restrict_to_footprint else None
        return fit_heightfield(
            terrain.heights,
            terrain.grid_width,
            terrain.grid_height,
            surface,
            vertical_extent=extent,
            neighbor_radius=self.neighbor_radius,
            origin=terrain.origin,
            size=terrain.size,
            footprint=footprint,
            name=terrain.name,
        )
