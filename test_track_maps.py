"""
    tests for the static and interactive maps
"""
import os
import tempfile
import unittest
from pathlib import Path

import folium
import pandas as pd

from stop_detector import StopParams, detect_stops, empty_stops
from track_errors import RenderError
from track_kinematics import enrich
from track_maps import (
    BoundingBox,
    MapConfig,
    bounding_box,
    circle_radius_m,
    interactive_map,
    marker_area,
    plot_path,
    render,
)

START = pd.Timestamp("2021-01-12 14:42:01", tz="UTC")


def run_with_a_stop():
    """
    out along a line, five minutes standing still, then on again
    """
    lats = [42.3270 + 0.0002 * i for i in range(10)]
    lats += [lats[-1]] * 31
    lats += [lats[-1] + 0.0002 * i for i in range(1, 10)]
    seconds = list(range(0, 50, 5))
    seconds += [seconds[-1] + 10 * i for i in range(1, 32)]
    seconds += [seconds[-1] + 5 * i for i in range(1, 10)]
    return enrich(
        pd.DataFrame(
            {
                "segment": 0,
                "latitude": lats,
                "longitude": -71.1087,
                "dt": [START + pd.Timedelta(seconds=s) for s in seconds],
            }
        )
    )


class TestBoundingBox(unittest.TestCase):
    def test_box(self):
        box = bounding_box(run_with_a_stop())
        self.assertAlmostEqual(box.min_lat, 42.3270)
        self.assertAlmostEqual(box.max_lat, 42.3270 + 0.0002 * 18)
        self.assertEqual(box.min_lon, box.max_lon)

    def test_padded_and_center(self):
        box = BoundingBox(1.0, 2.0, 3.0, 4.0)
        self.assertEqual(box.center, (2.0, 3.0))
        padded = box.padded(0.5)
        self.assertEqual(padded, BoundingBox(0.5, 1.5, 3.5, 4.5))
        self.assertEqual(padded.center, box.center)
        self.assertEqual(box.corners(), [[1.0, 2.0], [3.0, 4.0]])

    def test_sizes_grow_with_duration(self):
        self.assertLess(marker_area(60), marker_area(600))
        self.assertLess(circle_radius_m(60), circle_radius_m(600))
        self.assertEqual(circle_radius_m(0), 5.0)


class TestRender(unittest.TestCase):
    def setUp(self):
        self.enriched = run_with_a_stop()
        self.stops = detect_stops(
            self.enriched, StopParams(min_duration_s=300, radius_m=10)
        )

    def test_fixture_has_one_stop(self):
        self.assertEqual(len(self.stops), 1)

    def test_render_writes_all_artifacts(self):
        with tempfile.TemporaryDirectory() as tmp:
            artifacts = render(self.enriched, self.stops, Path(tmp) / "maps")
            self.assertEqual(set(artifacts), {"path", "stops", "map"})
            for artifact in artifacts.values():
                self.assertTrue(artifact.exists(), artifact)
                self.assertGreater(artifact.stat().st_size, 0)
            with open(artifacts["path"], "rb") as png:
                self.assertEqual(png.read(8), b"\x89PNG\r\n\x1a\n")
            html = artifacts["map"].read_text(encoding="utf-8")
        self.assertIn("L.polyline", html)
        self.assertIn("L.circle(", html)

    def test_render_without_stops(self):
        with tempfile.TemporaryDirectory() as tmp:
            artifacts = render(self.enriched, empty_stops(), tmp)
            self.assertTrue(artifacts["stops"].exists())
            html = artifacts["map"].read_text(encoding="utf-8")
        self.assertNotIn("L.circle(", html)

    def test_interactive_map(self):
        fmap = interactive_map(
            self.enriched, self.stops, MapConfig(zoom_start=12)
        )
        self.assertIsInstance(fmap, folium.Map)
        circles = [
            child
            for child in fmap._children.values()
            if isinstance(child, folium.Circle)
        ]
        self.assertEqual(len(circles), 1)

    def test_write_failure_is_a_render_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            missing = os.path.join(tmp, "no", "such", "dir", "path.png")
            with self.assertRaises(RenderError) as ctx:
                plot_path(self.enriched, missing)
        self.assertIsInstance(ctx.exception.__cause__, OSError)


if __name__ == "__main__":
    unittest.main()
