#! /usr/bin/env python3
"""
    stop_analyzer: find out where and for how long a run stopped
"""
import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

import gpxpy.gpx

from stop_detector import StopParams, detect_stops, stopped_time
from track_errors import RenderError, TrackError
from track_kinematics import elapsed_time, enrich, pace, total_distance
from track_loader import load_track
from track_maps import MapConfig, render

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "longitude",
    "latitude",
    "datetime",
    "distance_to_next_m",
    "elapsed_to_next_s",
    "speed_mps",
    "speed_kmh",
    "degenerate",
    "segment",
]


class StopAnalysis:
    """
    The track is held in this object as pandas DataFrames, one per stage:
    track_data (positions), enriched_data (plus distance and speed) and
    stop_data (one row per stop)
    """

    def __init__(self, params=None, map_config=None):
        """
        build the internal data structure
        """
        self.params = params or StopParams()
        self.map_config = map_config or MapConfig()
        self.track_data = pd.DataFrame()
        self.enriched_data = pd.DataFrame()
        self.stop_data = pd.DataFrame()

    def slurp(self, filename):
        """
        parse a gpx file, then derive speeds and stops from it
        """
        # bad thresholds abort before anything is read
        self.params.validate()
        self.track_data = load_track(filename)
        self.process()
        return self

    def process(self):
        """
        run the enrichment and detection stages over track_data
        """
        self.enriched_data = enrich(self.track_data)
        self.stop_data = detect_stops(self.enriched_data, self.params)
        return self.stop_data

    def export_csv(self, filename):
        """
        write one row per sample, in recorded order
        """
        out_df = self.enriched_data.copy()
        out_df["datetime"] = out_df["dt"].map(lambda x: x.isoformat())
        out_df[EXPORT_COLUMNS].to_csv(filename, index=False)
        logger.info("exported %s samples to %s", len(out_df), filename)
        return Path(filename)

    def export_stops_csv(self, filename):
        """
        write one row per stop
        """
        out_df = self.stop_data.copy()
        for col in ("start_time", "end_time"):
            out_df[col] = out_df[col].map(lambda x: x.isoformat())
        out_df.to_csv(filename, index=False)
        logger.info("exported %s stops to %s", len(out_df), filename)
        return Path(filename)

    def summary(self):
        """
        a set of stats similar to those shown in the summary of a Strava
        track, with the time spent in stops taken out of the moving time
        """
        distance = total_distance(self.enriched_data)
        elapsed = elapsed_time(self.enriched_data)
        stopped = stopped_time(self.stop_data)
        moving = max(elapsed - stopped, pd.Timedelta(seconds=0))
        if moving.total_seconds() > 0:
            avg_speed_kmh = distance / moving.total_seconds() * 3.6
        else:
            avg_speed_kmh = 0.0
        return {
            "distance_m": distance,
            "elapsed_time": elapsed,
            "stopped_time": stopped,
            "moving_time": moving,
            "avg_speed_kmh": avg_speed_kmh,
            "avg_pace": pace(distance, moving),
            "stops": len(self.stop_data),
            "degenerate_samples": int(self.enriched_data["degenerate"].sum()),
        }

    def render(self, out_dir):
        """
        draw the path and stops into out_dir
        """
        return render(
            self.enriched_data, self.stop_data, out_dir, self.map_config
        )


def build_parser():
    """
    command line options, defaults taken from StopParams and MapConfig
    """
    parser = argparse.ArgumentParser(
        description="find the stops in a recorded run"
    )
    parser.add_argument("filename", help="gpx track to be read", type=str)
    parser.add_argument(
        "--min-stop",
        help="shortest stop in seconds (default %(default)s)",
        type=float,
        default=StopParams.min_duration_s,
    )
    parser.add_argument(
        "--radius",
        help="metres within which the runner counts as stationary "
        "(default %(default)s)",
        type=float,
        default=StopParams.radius_m,
    )
    parser.add_argument(
        "--margin",
        help="map margin around the track in degrees (default %(default)s)",
        type=float,
        default=MapConfig.margin_deg,
    )
    parser.add_argument(
        "--zoom",
        help="initial zoom of the interactive map (default %(default)s)",
        type=int,
        default=MapConfig.zoom_start,
    )
    parser.add_argument(
        "--out-dir",
        help="where the export and maps are written (default %(default)s)",
        type=Path,
        default=Path("."),
    )
    parser.add_argument(
        "--no-maps", help="only write the csv exports", action="store_true"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    """
    slurp in a file, export its samples and stops, then draw them
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    analysis = StopAnalysis(
        StopParams(min_duration_s=args.min_stop, radius_m=args.radius),
        MapConfig(margin_deg=args.margin, zoom_start=args.zoom),
    )
    try:
        analysis.slurp(args.filename)
    except (TrackError, gpxpy.gpx.GPXException, OSError) as exc:
        logger.error("cannot analyse %s: %s", args.filename, exc)
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(args.filename).stem
    analysis.export_csv(args.out_dir / f"{stem}_samples.csv")
    analysis.export_stops_csv(args.out_dir / f"{stem}_stops.csv")

    for key, value in analysis.summary().items():
        print(f"{key}: {value}")

    if args.no_maps:
        return 0
    try:
        analysis.render(args.out_dir)
    except RenderError as exc:
        logger.error("maps not drawn, exports are in %s: %s", args.out_dir, exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
