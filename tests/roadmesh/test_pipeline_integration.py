"""Integration tests for the complete road pipeline."""

import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import yaml

from src.roadmesh.pipeline import RoadPipeline, main, read_points_csv
from src.terrain.heightfield import Terrain
from src.utils.config import RoadSettings


class TestPipelineIntegration:
    """Integration tests for RoadPipeline."""

    def create_drawn_arc(self, n_points=60, radius=50.0, noise=0.0, seed=0):
        """Create a quarter arc at elevation 10, as a designer would draw it."""
        rng = np.random.default_rng(seed)
        t = np.linspace(0.0, np.pi / 2, n_points)
        x = 10.0 + radius * np.sin(t)
        z = 10.0 + radius * (1.0 - np.cos(t))
        y = np.full(n_points, 10.0)
        points = np.column_stack([x, y, z])
        points[:, [0, 2]] += rng.normal(0.0, noise, (n_points, 2))
        return points

    def test_full_pipeline(self):
        pipeline = RoadPipeline(RoadSettings(width=4.0, thickness=0.5))
        terrain = Terrain.flat(101, 101, level=0.1)

        summary = pipeline.run(self.create_drawn_arc(), [terrain])

        assert summary["input_points"] == 60
        assert summary["centerline_points"] == 60
        assert summary["sections"] == 60
        assert summary["vertices"] == 240
        assert summary["triangles"] == 59 * 8 + 4
        assert all(summary["qa"].values())

        fit = summary["terrains"][0]
        assert fit["contact_cells"] > 0
        assert fit["smoothed_cells"] > 0
        assert fit["warnings"] == []
        # Contacts sit at the road's underside, 9.75 m up a 50 m terrain
        assert terrain.heights.max() == pytest.approx(9.75 / 50.0, abs=1e-3)

    def test_noisy_line_is_smoothed(self):
        raw = self.create_drawn_arc(n_points=200, noise=0.02, seed=4)
        pipeline = RoadPipeline(RoadSettings(width=4.0, average_window=15))

        summary = pipeline.run(raw)

        assert summary["terrains"] == []
        assert all(summary["qa"].values())

    def test_simplify_method(self):
        raw = self.create_drawn_arc(n_points=200)
        pipeline = RoadPipeline(RoadSettings(smoothing_method="simplify", simplify_tolerance=0.5))

        summary = pipeline.run(raw)

        assert 2 < summary["centerline_points"] < 200
        assert all(summary["qa"].values())

    def test_empty_input(self):
        pipeline = RoadPipeline()

        summary = pipeline.run(np.zeros((0, 3)))

        assert summary["sections"] == 0
        assert all(summary["qa"].values())

    def test_export_mesh(self):
        pipeline = RoadPipeline(RoadSettings(profile="extended"))
        pipeline.run(self.create_drawn_arc())

        with tempfile.TemporaryDirectory() as tmpdir:
            out = pipeline.export_mesh(pipeline.road.mesh, Path(tmpdir) / "mesh" / "road.npz")
            data = np.load(out)

            assert set(data.files) == {"vertices", "triangles", "normals", "collision_vertices"}
            assert np.array_equal(data["triangles"], pipeline.road.mesh.triangles)


class TestCommandLine:
    """Tests for the command-line entry point."""

    def test_read_points_csv_by_name(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "line.csv"
            pd.DataFrame({"z": [0.0, 1.0], "x": [2.0, 3.0], "y": [4.0, 5.0]}).to_csv(path, index=False)

            points = read_points_csv(path)

        assert np.allclose(points, [[2.0, 4.0, 0.0], [3.0, 5.0, 1.0]])

    def test_read_points_csv_too_few_columns(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "line.csv"
            pd.DataFrame({"a": [0.0], "b": [1.0]}).to_csv(path, index=False)

            with pytest.raises(ValueError):
                read_points_csv(path)

    def test_main(self):
        arc = TestPipelineIntegration().create_drawn_arc()
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            pd.DataFrame(arc, columns=["x", "y", "z"]).to_csv(tmp / "line.csv", index=False)
            with open(tmp / "road.yaml", "w", encoding="utf-8") as f:
                yaml.safe_dump({"road": {"width": 4.0}, "smoothing": {"average_window": 5}}, f)
            np.save(tmp / "ground.npy", np.zeros((51, 51)))

            code = main([
                "--input", str(tmp / "line.csv"),
                "--output", str(tmp / "out" / "road.npz"),
                "--config", str(tmp / "road.yaml"),
                "--heightfield", str(tmp / "ground.npy"),
                "--plots", str(tmp / "plots"),
            ])

            assert code == 0
            assert (tmp / "out" / "road.npz").is_file()
            fitted = np.load(tmp / "out" / "road_ground.npy")
            assert fitted.shape == (51, 51)
            assert fitted.max() > 0.0
            assert (tmp / "plots" / "qa_overview.png").is_file()
            assert (tmp / "plots" / "ground_terrain.png").is_file()
