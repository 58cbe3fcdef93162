"""Road line smoothing.

Converts noisy, user-drawn polylines into centre lines suitable for
cross-section construction.
"""

from .path_smoother import PathSmoother, biased_moving_average, simplify_polyline, dedupe_consecutive

__all__ = [
    "PathSmoother",
    "biased_moving_average",
    "simplify_polyline",
    "dedupe_consecutive",
]
