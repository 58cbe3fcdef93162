"""The road entity.

`Road` owns a centre line and the mesh generated from it.  Points are
handed over in world space, stored in the road's local frame, and
turned into a mesh on `generate`.  The mesh is published to the
injected `MeshSink` and can be used to fit terrains to the road.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..terrain.heightfield import Terrain
from ..terrain.raycast import TriangleMeshSurface
from ..terrain.terrain_fitter import FitReport, TerrainFitter
from ..utils.config import RoadSettings
from ..utils.logging import get_logger
from .cross_section import CrossSectionProfile
from .frames import AffineFrame, CoordinateFrame, InMemoryMeshSink, MeshSink
from .mesh_builder import DirectionPolicy, RoadMesh, RoadMeshBuilder

logger = get_logger(__name__)


class Road:
    """A generated road with its centre line and mesh.

    Parameters
    ----------
    settings : RoadSettings, optional
        Road dimensions and generation options.
    frame : CoordinateFrame, optional
        Local-to-world transform of the road object.  Defaults to the
        identity with the configured up axis.
    sink : MeshSink, optional
        Receiver of generated meshes.  Defaults to an in-memory sink.
    """

    def __init__(
        self,
        settings: Optional[RoadSettings] = None,
        frame: Optional[CoordinateFrame] = None,
        sink: Optional[MeshSink] = None,
    ):
        self.settings = settings or RoadSettings()
        self.frame = frame or AffineFrame(np.eye(4), local_up=self.settings.up)
        self.sink = sink or InMemoryMeshSink()
        self.centerline = np.zeros((0, 3))
        self.mesh: Optional[RoadMesh] = None

    @property
    def name(self) -> str:
        return self.settings.road_name

    def builder(self) -> RoadMeshBuilder:
        s = self.settings
        return RoadMeshBuilder(
            width=s.width,
            thickness=s.thickness,
            up=tuple(self.frame.up),
            direction_policy=DirectionPolicy(s.direction_policy),
            profile=CrossSectionProfile(s.profile),
            hitbox_depth=s.hitbox_depth,
            untangle_joints=s.untangle_joints,
            name=f"{s.road_name} Custom Mesh",
        )

    def set_path(self, world_points: Iterable[Sequence[float]]) -> None:
        """Replace the centre line with ``world_points``.

        Nothing is generated until `generate` is called.
        """
        pts = np.asarray(list(world_points), dtype=float)
        if pts.size == 0:
            self.centerline = np.zeros((0, 3))
            return
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError("world_points must be a sequence of 3D points")
        self.centerline = self.frame.to_local(pts)

    def generate(self) -> RoadMesh:
        """Rebuild the mesh from the centre line and publish it."""
        self.mesh = self.builder().build(self.centerline)
        if self.mesh.is_empty:
            logger.info("%s: cleared mesh (%d centre-line points)", self.name, len(self.centerline))
        else:
            logger.info(
                "%s: generated %d sections, %d vertices, %d triangles",
                self.name, self.mesh.section_count, len(self.mesh.vertices), len(self.mesh.triangles),
            )
        self.sink.publish(self.mesh)
        return self.mesh

    def clear(self) -> RoadMesh:
        """Drop the centre line and publish an empty mesh."""
        self.centerline = np.zeros((0, 3))
        return self.generate()

    def fit_terrain(self, terrains: Iterable[Terrain], neighbor_radius: Optional[int] = None) -> List[FitReport]:
        """Conform each terrain to the road's underside, in place.

        Parameters
        ----------
        terrains : iterable of Terrain
            Heightfields to modify.
        neighbor_radius : int, optional
            Smoothing radius; defaults to the configured value.

        Returns
        -------
        list of FitReport
            One report per terrain, in input order.
        """
        if self.mesh is None:
            raise RuntimeError("generate() must be called before fit_terrain()")
        radius = self.settings.neighbor_radius if neighbor_radius is None else neighbor_radius
        fitter = TerrainFitter(
            neighbor_radius=radius,
            vertical_extent=self.settings.vertical_extent,
            restrict_to_footprint=self.settings.restrict_to_footprint,
        )
        surface = TriangleMeshSurface.from_road_mesh(self.mesh, self.frame)
        reports = []
        for terrain in terrains:
            if self.mesh.is_empty:
                report = FitReport(terrain=terrain.name)
            else:
                report = fitter.fit(terrain, surface)
            for message in report.warnings:
                logger.warning("%s: %s", self.name, message)
            logger.info(
                "%s: fitted %s (%d contact cells, %d smoothed)",
                self.name, terrain.name, report.contact_cells, report.smoothed_cells,
            )
            reports.append(report)
        return reports

    def debug_road_line(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        """World-space segments of the centre line."""
        if len(self.centerline) < 2:
            return []
        world = self.frame.to_world(self.centerline)
        return list(zip(world[:-1], world[1:]))

    def debug_cross_sections(self) -> List[dict]:
        """World-space outlines of every cross section of the mesh."""
        if self.mesh is None or self.mesh.is_empty:
            return []
        outlines = []
        for outline in self.mesh.section_outlines():
            outlines.append({
                edge: tuple(self.frame.to_world(np.vstack(seg)))
                for edge, seg in outline.items()
            })
        return outlines
