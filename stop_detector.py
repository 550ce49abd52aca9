"""
    stop_detector: find the places where the runner stood still
"""
import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from track_errors import InvalidThresholdError
from track_kinematics import haversine_m

logger = logging.getLogger(__name__)

STOP_COLUMNS = [
    "start_index",
    "end_index",
    "start_time",
    "end_time",
    "duration_s",
    "latitude",
    "longitude",
    "points",
]


@dataclass(frozen=True)
class StopParams:
    """
    min_duration_s: a stationary run shorter than this is not a stop
    radius_m: samples within this distance of the first sample of a run
        count as the same place
    """

    min_duration_s: float = 300.0
    radius_m: float = 20.0

    def validate(self):
        """
        raise InvalidThresholdError unless both thresholds are usable
        """
        if math.isnan(self.min_duration_s) or self.min_duration_s < 0:
            raise InvalidThresholdError(
                f"min_duration_s must be >= 0, got {self.min_duration_s}"
            )
        if math.isnan(self.radius_m) or self.radius_m <= 0:
            raise InvalidThresholdError(
                f"radius_m must be > 0, got {self.radius_m}"
            )


def empty_stops():
    """
    a stop table with no rows
    """
    return pd.DataFrame(
        {
            "start_index": pd.Series(dtype="int64"),
            "end_index": pd.Series(dtype="int64"),
            "start_time": pd.Series(dtype="datetime64[ns, UTC]"),
            "end_time": pd.Series(dtype="datetime64[ns, UTC]"),
            "duration_s": pd.Series(dtype=float),
            "latitude": pd.Series(dtype=float),
            "longitude": pd.Series(dtype=float),
            "points": pd.Series(dtype="int64"),
        }
    )


def run_end(lat, lon, start, radius_m):
    """
    index of the last sample after start which, along with every sample
    between, lies within radius_m of the sample at start
    """
    distances = haversine_m(
        lat[start], lon[start], lat[start + 1 :], lon[start + 1 :]
    )
    outside = np.flatnonzero(distances > radius_m)
    if outside.size:
        return start + int(outside[0])
    return len(lat) - 1


def detect_stops(enriched, params=None):
    """
    scan the track for stationary runs lasting at least
    params.min_duration_s and summarise each one as a row of the returned
    DataFrame.

    A run is anchored on its first sample and grows while the following
    samples stay within params.radius_m of it. A run long enough to be a
    stop is reported and the scan carries on after its last sample,
    otherwise the scan moves on to the next sample as a new anchor. Stops
    are therefore in time order and never overlap.
    """
    params = params or StopParams()
    params.validate()

    if len(enriched) < 2:
        return empty_stops()

    lat = enriched["latitude"].to_numpy(dtype=float)
    lon = enriched["longitude"].to_numpy(dtype=float)
    times = enriched["dt"].reset_index(drop=True)

    stop_list = []
    start = 0
    last = len(lat) - 1
    while start < last:
        end = run_end(lat, lon, start, params.radius_m)
        # exact, timestamps may carry fractions of a second
        duration = (times.iloc[end] - times.iloc[start]).total_seconds()
        if end > start and duration >= params.min_duration_s:
            stop_list.append(
                {
                    "start_index": start,
                    "end_index": end,
                    "start_time": times.iloc[start],
                    "end_time": times.iloc[end],
                    "duration_s": float(duration),
                    "latitude": float(np.mean(lat[start : end + 1])),
                    "longitude": float(np.mean(lon[start : end + 1])),
                    "points": end - start + 1,
                }
            )
            start = end + 1
        else:
            start += 1

    logger.info(
        "found %s stops of at least %ss within %sm",
        len(stop_list),
        params.min_duration_s,
        params.radius_m,
    )
    if not stop_list:
        return empty_stops()
    return pd.DataFrame(stop_list, columns=STOP_COLUMNS)


def stopped_time(stops):
    """
    total time spent in stops as a pd.Timedelta
    """
    return pd.Timedelta(seconds=float(stops["duration_s"].sum()))
