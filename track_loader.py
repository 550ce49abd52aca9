"""
    track_loader: read a recorded track into a pandas DataFrame of
    timestamped positions
"""
import datetime
import logging

import pandas as pd

import gpxpy

from track_errors import EmptyTrackError

logger = logging.getLogger(__name__)

POSITION_COLUMNS = ["segment", "latitude", "longitude", "dt"]


def as_utc(timestamp):
    """
    normalise a gpxpy time to an aware UTC datetime, a GPX time without an
    offset is taken to be UTC already
    """
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=datetime.timezone.utc)
    return timestamp.astimezone(datetime.timezone.utc)


def get_point_info(segment_number, track_segment):
    """
    extract the timed points of a segment as rows, elevation and any
    extensions are dropped. Returns (rows, number of untimed points)
    """
    rows = []
    skipped = 0
    for point in track_segment.points:
        if point.time is None:
            skipped += 1
            continue
        rows.append(
            (
                segment_number,
                point.latitude,
                point.longitude,
                as_utc(point.time),
            )
        )
    return rows, skipped


def parse_track(input_file):
    """
    iterate over the tracks and their segments in the file and build one
    DataFrame of positions in the order they were recorded
    """
    gpx = gpxpy.parse(input_file)

    rows = []
    skipped = 0
    usable_segment = False
    seg_no = 0
    for track in gpx.tracks:
        for segment in track.segments:
            seg_rows, seg_skipped = get_point_info(seg_no, segment)
            logger.debug(
                "segment %s: %s timed points, %s without time",
                seg_no,
                len(seg_rows),
                seg_skipped,
            )
            usable_segment = usable_segment or len(seg_rows) >= 2
            rows.extend(seg_rows)
            skipped += seg_skipped
            seg_no += 1

    if skipped:
        logger.warning("skipped %s points without a timestamp", skipped)
    if not usable_segment:
        raise EmptyTrackError(
            f"no track segment with at least two timed points "
            f"({seg_no} segments, {len(rows)} timed points)"
        )

    track_data = pd.DataFrame(rows, columns=POSITION_COLUMNS)
    track_data["dt"] = pd.to_datetime(track_data["dt"], utc=True)
    return track_data


def load_track(filename):
    """
    parse a gpx file into a DataFrame of positions
    """
    with open(filename, encoding="utf-8") as gpx_file:
        track_data = parse_track(gpx_file)
    logger.info("loaded %s points from %s", len(track_data), filename)
    return track_data


def read_track_csv(filename):
    """
    re-import the positions from a tabular export written by
    StopAnalysis.export_csv, floats are parsed so that they round-trip
    """
    in_df = pd.read_csv(filename, float_precision="round_trip")
    missing = {"latitude", "longitude", "datetime"} - set(in_df.columns)
    if missing:
        raise KeyError(f"export is missing columns {sorted(missing)}")
    if len(in_df) < 2:
        raise EmptyTrackError(f"{filename} holds fewer than two samples")

    track_data = pd.DataFrame(
        {
            "segment": in_df["segment"] if "segment" in in_df else 0,
            "latitude": in_df["latitude"],
            "longitude": in_df["longitude"],
            "dt": pd.to_datetime(in_df["datetime"], utc=True, format="ISO8601"),
        }
    )
    return track_data
