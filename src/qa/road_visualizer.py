"""QA visualizer for generated roads and fitted terrains.

Renders the debug geometry a road exposes (centre line and cross
section outlines) and the heightfields fitted to it, so generation and
terrain fitting can be inspected without a host renderer.

Usage:
    python -m src.roadmesh.pipeline --input line.csv --output road.npz \
        --plots qa_vis/
"""

from pathlib import Path
from typing import Dict, Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from ..roadmesh.road import Road
from ..terrain.heightfield import Terrain
from ..terrain.terrain_fitter import FitReport


class RoadVisualizer:
    """Visualize roads and fitted terrains for QA purposes."""

    def __init__(self, output_dir: Path):
        """Initialize visualizer.

        Parameters
        ----------
        output_dir : Path
            Directory for output visualizations.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def plot_road(self, road: Road, name: Optional[str] = None) -> Path:
        """Top-down and elevation views of a road.

        The left panel shows the centre line and every cross-section
        outline projected on the x/z plane; the right panel shows the
        centre-line elevation against distance along the road.

        Parameters
        ----------
        road : Road
            Road with a generated mesh.
        name : str, optional
            File stem; defaults to the road name.

        Returns
        -------
        Path
            Path to the saved image.
        """
        fig, axes = plt.subplots(1, 2, figsize=(16, 7))

        ax = axes[0]
        outlines = road.debug_cross_sections()
        for outline in outlines:
            top_left, top_right = outline['top']
            ax.plot([top_left[0], top_right[0]], [top_left[2], top_right[2]],
                    color='gray', linewidth=0.6)
        # Side edges between consecutive sections
        for edge, color in (('left', 'tab:blue'), ('right', 'tab:red')):
            if outlines:
                tops = np.array([o[edge][0] for o in outlines])
                ax.plot(tops[:, 0], tops[:, 2], color=color, linewidth=1.0, label=f'{edge} edge')
        for start, end in road.debug_road_line():
            ax.plot([start[0], end[0]], [start[2], end[2]], color='black', linewidth=1.5)
        ax.set_xlabel('X')
        ax.set_ylabel('Z')
        ax.set_title('Road outline (top view)')
        ax.set_aspect('equal')
        if outlines:
            ax.legend()

        ax = axes[1]
        segments = road.debug_road_line()
        if segments:
            points = np.vstack([segments[0][0]] + [end for _, end in segments])
            distance = np.concatenate([[0.0], np.cumsum(np.linalg.norm(np.diff(points, axis=0), axis=1))])
            ax.plot(distance, points[:, 1], color='black')
        ax.set_xlabel('Distance along road')
        ax.set_ylabel('Elevation (Y)')
        ax.set_title('Centre-line profile')
        ax.grid(True, alpha=0.3)

        plt.tight_layout()

        stem = (name or road.name).replace(' ', '_')
        output_path = self.output_dir / f'{stem}_road.png'
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_path

    def plot_terrain(self, terrain: Terrain, report: Optional[FitReport] = None) -> Path:
        """Height map of a fitted terrain with its contact cells.

        Parameters
        ----------
        terrain : Terrain
            Fitted terrain.
        report : FitReport, optional
            Fit result; contact cells are marked when given.

        Returns
        -------
        Path
            Path to the saved image.
        """
        fig, ax = plt.subplots(figsize=(9, 8))
        x0, z0 = terrain.origin[0], terrain.origin[2]
        extent = [x0, x0 + terrain.size[0], z0, z0 + terrain.size[2]]
        im = ax.imshow(terrain.to_elevation(terrain.heights), origin='lower', extent=extent, cmap='terrain')
        plt.colorbar(im, ax=ax, label='Elevation (Y)')

        if report is not None and report.contacts:
            xs, zs = terrain.cell_positions()
            cells = np.array(sorted(report.contacts))
            ax.scatter(xs[cells[:, 0]], zs[cells[:, 1]], s=2, color='red', label='Contact cells')
            ax.legend(loc='upper right')
            ax.set_title(
                f'{terrain.name}: {report.contact_cells} contacts, '
                f'{report.smoothed_cells} smoothed, {report.clamped_cells} clamped'
            )
        else:
            ax.set_title(terrain.name)
        ax.set_xlabel('X')
        ax.set_ylabel('Z')

        output_path = self.output_dir / f'{terrain.name}_terrain.png'
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_path

    def create_overview_report(self, summary: Dict) -> Path:
        """Text overview of a pipeline run.

        Parameters
        ----------
        summary : dict
            Summary returned by `RoadPipeline.run`.

        Returns
        -------
        Path
            Path to the saved image.
        """
        fig, ax = plt.subplots(figsize=(8, 6))
        ax.axis('off')
        ax.set_title('Road Pipeline Summary', fontweight='bold')

        qa_lines = "\n".join(
            f"  {name}: {'PASS' if ok else 'FAIL'}" for name, ok in summary.get('qa', {}).items()
        )
        terrain_lines = "\n".join(
            f"  {t['terrain']}: {t['contact_cells']} contacts, {t['smoothed_cells']} smoothed"
            for t in summary.get('terrains', [])
        ) or "  (none)"
        stats_text = f"""
Input points: {summary.get('input_points', 0)}
Centre-line points: {summary.get('centerline_points', 0)}
Sections: {summary.get('sections', 0)}
Vertices: {summary.get('vertices', 0)}
Triangles: {summary.get('triangles', 0)}

Mesh QA:
{qa_lines}

Terrains:
{terrain_lines}
        """

        ax.text(0.05, 0.95, stats_text, fontsize=11,
                verticalalignment='top', family='monospace')

        output_path = self.output_dir / 'qa_overview.png'
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_path
