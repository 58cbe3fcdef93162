"""Path smoothing for designer-drawn road lines.

Raw road lines are captured by dragging the pointer across the scene,
which produces many closely spaced and slightly noisy points.  This
module turns such a polyline into a usable centre line.  Two
interchangeable methods are provided:

* ``simplify`` -- Ramer-Douglas-Peucker simplification; drops points
  that lie within a tolerance of the line between retained neighbours.
* ``average`` -- a biased moving average.  The window is clamped at the
  ends of the sequence instead of wrapped or zero padded, so the
  endpoints weigh more heavily in the averages near them and smoothing
  does not pull the road ends inward.

`dedupe_consecutive` collapses repeated points, which must happen
before section directions are computed.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np


def _as_points(points: Iterable[Tuple[float, float, float]]) -> np.ndarray:
    coords = np.asarray(points, dtype=float)
    if coords.size == 0:
        return np.zeros((0, 3))
    if coords.ndim != 2 or coords.shape[1] != 3:
        raise ValueError("points must be an iterable of 3D coordinates")
    return coords


def biased_moving_average(points: Iterable[Tuple[float, float, float]], avg_points: int) -> np.ndarray:
    """Smooth a polyline with an endpoint-biased moving average.

    Output point ``i`` is the mean of input samples
    ``i + j - avg_points // 2`` for ``j`` in ``range(avg_points)``,
    with every sample index clamped to the valid range.

    Parameters
    ----------
    points : iterable of (x, y, z)
        Ordered points of the rough line.
    avg_points : int
        Number of samples per average.  1 returns the input unchanged.

    Returns
    -------
    numpy.ndarray
        Smoothed points of shape (N, 3); same length as the input.
    """
    if avg_points < 1:
        raise ValueError("avg_points must be >= 1")
    coords = _as_points(points)
    if len(coords) == 0:
        return coords
    # Edge padding repeats the endpoints, which is the same as clamping
    # the window indices.  Even windows reach one sample further back.
    before = avg_points // 2
    after = avg_points - 1 - before
    padded = np.pad(coords, ((before, after), (0, 0)), mode="edge")
    kernel = np.ones(avg_points) / avg_points
    smoothed = np.vstack([
        np.convolve(padded[:, i], kernel, mode="valid") for i in range(3)
    ]).T
    return smoothed


def _perpendicular_distance(pts: np.ndarray, start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """Distance from each point to the segment ``start``-``end``."""
    seg = end - start
    seg_len_sq = float(np.dot(seg, seg))
    if seg_len_sq < 1e-18:
        return np.linalg.norm(pts - start, axis=1)
    t = np.clip((pts - start) @ seg / seg_len_sq, 0.0, 1.0)
    proj = start + t[:, None] * seg
    return np.linalg.norm(pts - proj, axis=1)


def simplify_polyline(points: Iterable[Tuple[float, float, float]], tolerance: float) -> np.ndarray:
    """Ramer-Douglas-Peucker polyline simplification.

    Parameters
    ----------
    points : iterable of (x, y, z)
        Ordered points of the rough line.
    tolerance : float
        Points closer than this to the line between their retained
        neighbours are removed.

    Returns
    -------
    numpy.ndarray
        The retained points, in input order.  Inputs with two points or
        fewer are returned unchanged.
    """
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    coords = _as_points(points)
    if len(coords) <= 2:
        return coords

    keep = np.zeros(len(coords), dtype=bool)
    keep[0] = True
    keep[-1] = True
    # Explicit stack instead of recursion; long drawn lines can exceed
    # the interpreter's recursion limit.
    stack = [(0, len(coords) - 1)]
    while stack:
        start, end = stack.pop()
        if end <= start + 1:
            continue
        dists = _perpendicular_distance(coords[start + 1:end], coords[start], coords[end])
        idx = int(np.argmax(dists))
        if dists[idx] > tolerance:
            split = start + 1 + idx
            keep[split] = True
            stack.append((start, split))
            stack.append((split, end))
    return coords[keep]


def dedupe_consecutive(points: Iterable[Tuple[float, float, float]], eps: float = 1e-9) -> np.ndarray:
    """Collapse runs of consecutive points closer than ``eps``.

    The first point of each run is kept, and each point is compared
    with the last kept point.
    """
    coords = _as_points(points)
    if len(coords) < 2:
        return coords
    kept = [coords[0]]
    for p in coords[1:]:
        if np.linalg.norm(p - kept[-1]) > eps:
            kept.append(p)
    return np.asarray(kept)


@dataclass
class PathSmoother:
    """Turn a raw captured road line into a centre line."""

    method: str = "average"
    """Either ``"average"`` (biased moving average) or ``"simplify"``
    (polyline simplification)."""

    avg_points: int = 10
    """Window length for the moving average.  Larger windows give
    smoother roads but round off sharp corners."""

    tolerance: float = 1.0
    """Simplification tolerance in road-local units."""

    def __post_init__(self):
        if self.method not in ("average", "simplify"):
            raise ValueError(f"unknown smoothing method: {self.method!r}")

    def smooth(self, points: Iterable[Tuple[float, float, float]]) -> np.ndarray:
        """Smooth a sequence of 3D positions.

        Parameters
        ----------
        points : iterable of (x, y, z)
            The raw road line samples.

        Returns
        -------
        numpy.ndarray
            Centre line of shape (M, 3).  ``M == N`` for the moving
            average; the simplification may return fewer points.
        """
        if self.method == "simplify":
            return simplify_polyline(points, self.tolerance)
        return biased_moving_average(points, self.avg_points)
