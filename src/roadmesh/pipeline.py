"""End-to-end road generation pipeline.

This module chains the road tools into one workflow: smooth a raw
drawn line, generate the road mesh, fit terrains to the road, and run
QA on the result.  It also provides a command-line entry point that
reads the raw line from a CSV file and writes the mesh buffers to an
``.npz`` archive.

Usage:
    python -m src.roadmesh.pipeline --input line.csv --output road.npz \
        --config configs/road.yaml [--plots qa_vis/]
"""

import argparse
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import sys

import numpy as np
import pandas as pd

from ..qa.mesh_qa import MeshQA
from ..qa.road_visualizer import RoadVisualizer
from ..smoothing.path_smoother import PathSmoother
from ..terrain.heightfield import Terrain
from ..terrain.terrain_fitter import FitReport
from ..utils.config import RoadSettings, load_config
from ..utils.logging import get_logger
from .frames import CoordinateFrame, MeshSink
from .mesh_builder import RoadMesh
from .road import Road

logger = get_logger(__name__)


class RoadPipeline:
    """Smooth, generate, fit and check a road in one call.

    Parameters
    ----------
    settings : RoadSettings, optional
        Road configuration.
    frame : CoordinateFrame, optional
        Local-to-world transform of the road.
    sink : MeshSink, optional
        Receiver of the generated mesh.
    """

    def __init__(
        self,
        settings: Optional[RoadSettings] = None,
        frame: Optional[CoordinateFrame] = None,
        sink: Optional[MeshSink] = None,
    ):
        self.settings = settings or RoadSettings()
        self.smoother = PathSmoother(
            method=self.settings.smoothing_method,
            avg_points=self.settings.average_window,
            tolerance=self.settings.simplify_tolerance,
        )
        self.road = Road(self.settings, frame=frame, sink=sink)
        self.qa = MeshQA()
        self.reports: List[FitReport] = []

    def step_1_smooth_path(self, raw_points) -> np.ndarray:
        """Step 1: turn the raw drawn line into a centre line."""
        raw = np.asarray(raw_points, dtype=float).reshape(-1, 3)
        centerline = self.smoother.smooth(raw)
        logger.info(
            "Smoothed %d raw points into %d centre-line points (%s)",
            len(raw), len(centerline), self.smoother.method,
        )
        return centerline

    def step_2_generate_mesh(self, centerline: np.ndarray) -> RoadMesh:
        """Step 2: set the road path and generate the mesh."""
        self.road.set_path(centerline)
        return self.road.generate()

    def step_3_fit_terrain(self, terrains: Sequence[Terrain]) -> List[FitReport]:
        """Step 3: conform the terrains to the road."""
        if not terrains:
            return []
        return self.road.fit_terrain(terrains)

    def step_4_qa(self, mesh: RoadMesh) -> Dict[str, bool]:
        """Step 4: structural QA of the generated mesh."""
        flags = self.qa.run(mesh)
        failed = [name for name, ok in flags.items() if not ok]
        if failed:
            logger.warning("Mesh QA failed: %s", ", ".join(failed))
        else:
            logger.info("Mesh QA passed")
        return flags

    def run(self, raw_points, terrains: Sequence[Terrain] = ()) -> Dict:
        """Run the complete pipeline.

        Parameters
        ----------
        raw_points : array_like
            Raw drawn points of shape (N, 3), in world space.
        terrains : sequence of Terrain
            Terrains to fit; modified in place.

        Returns
        -------
        dict
            Summary statistics.
        """
        centerline = self.step_1_smooth_path(raw_points)
        mesh = self.step_2_generate_mesh(centerline)
        reports = self.step_3_fit_terrain(terrains)
        self.reports = reports
        qa_flags = self.step_4_qa(mesh)
        return {
            "input_points": int(np.asarray(raw_points).reshape(-1, 3).shape[0]),
            "centerline_points": len(centerline),
            "sections": mesh.section_count,
            "vertices": len(mesh.vertices),
            "triangles": len(mesh.triangles),
            "terrains": [r.to_dict() for r in reports],
            "qa": qa_flags,
        }

    @staticmethod
    def export_mesh(mesh: RoadMesh, path: Path) -> Path:
        """Save the mesh buffers to an ``.npz`` archive."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        arrays = {
            "vertices": mesh.vertices,
            "triangles": mesh.triangles,
            "normals": mesh.normals,
        }
        if mesh.collision_vertices is not None:
            arrays["collision_vertices"] = mesh.collision_vertices
        np.savez(path, **arrays)
        return path


def read_points_csv(path: str) -> np.ndarray:
    """Read raw points from a CSV file.

    Columns named ``x``, ``y`` and ``z`` are used when present,
    otherwise the first three columns.
    """
    frame = pd.read_csv(path)
    columns = [c for c in ("x", "y", "z") if c in frame.columns]
    if len(columns) != 3:
        if frame.shape[1] < 3:
            raise ValueError(f"{path} needs at least three columns")
        columns = list(frame.columns[:3])
    return frame[columns].to_numpy(dtype=float)


def main(argv=None):
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a road mesh from a drawn line"
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="CSV file with the raw line points (x, y, z)"
    )
    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output .npz file for the mesh buffers"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/road.yaml",
        help="Road configuration file (default: configs/road.yaml)"
    )
    parser.add_argument(
        "--heightfield",
        type=str,
        default=None,
        help="Optional .npy heightfield to fit to the road"
    )
    parser.add_argument(
        "--terrain-origin",
        type=float,
        nargs=3,
        default=(0.0, 0.0, 0.0),
        help="World origin of the heightfield (x y z)"
    )
    parser.add_argument(
        "--terrain-size",
        type=float,
        nargs=3,
        default=(100.0, 50.0, 100.0),
        help="World size of the heightfield (x height z)"
    )
    parser.add_argument(
        "--plots",
        type=str,
        default=None,
        help="Optional directory for QA visualizations"
    )

    args = parser.parse_args(argv)

    settings = RoadSettings.from_config(load_config(args.config))
    pipeline = RoadPipeline(settings)
    raw = read_points_csv(args.input)

    terrains = []
    if args.heightfield:
        terrains.append(Terrain(
            np.load(args.heightfield),
            origin=np.asarray(args.terrain_origin),
            size=np.asarray(args.terrain_size),
            name=Path(args.heightfield).stem,
        ))

    summary = pipeline.run(raw, terrains)
    out = pipeline.export_mesh(pipeline.road.mesh, Path(args.output))
    for terrain in terrains:
        hf_path = out.with_name(f"{out.stem}_{terrain.name}.npy")
        np.save(hf_path, terrain.heights)
        print(f"Fitted heightfield saved to {hf_path}")

    print(f"Sections:   {summary['sections']}")
    print(f"Vertices:   {summary['vertices']}")
    print(f"Triangles:  {summary['triangles']}")
    print(f"Mesh saved to {out}")

    if args.plots:
        visualizer = RoadVisualizer(Path(args.plots))
        print(f"Created {visualizer.plot_road(pipeline.road)}")
        for terrain, report in zip(terrains, pipeline.reports):
            print(f"Created {visualizer.plot_terrain(terrain, report)}")
        print(f"Created {visualizer.create_overview_report(summary)}")
    return 0 if all(summary["qa"].values()) else 1


if __name__ == "__main__":
    sys.exit(main())
