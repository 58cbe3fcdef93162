"""Terrain heightfields and road-conforming terrain fitting."""

from .heightfield import Terrain
from .raycast import RaySurface, TriangleMeshSurface
from .terrain_fitter import TerrainFitter, FitReport, fit_heightfield

__all__ = [
    "Terrain",
    "RaySurface",
    "TriangleMeshSurface",
    "TerrainFitter",
    "FitReport",
    "fit_heightfield",
]
