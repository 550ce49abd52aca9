"""
    track_kinematics: distance, elapsed time and speed between consecutive
    samples of a track
"""
import logging
import warnings

import numpy as np
import pandas as pd

from track_errors import (
    DegenerateSampleWarning,
    EmptyTrackError,
    NonMonotonicTimeError,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0  # mean radius, spherical earth
MPS_TO_KMH = 3.6

DERIVED_COLUMNS = [
    "distance_to_next_m",
    "elapsed_to_next_s",
    "speed_mps",
    "speed_kmh",
]


def haversine_m(lat1, lon1, lat2, lon2):
    """
    great-circle distance in metres between points given in degrees,
    accepts scalars or numpy arrays
    """
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = np.radians(np.subtract(lon2, lon1))

    a = (
        np.sin(d_phi / 2.0) ** 2
        + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def enrich(track_data):
    """
    add distance, elapsed time and speed to the next sample to every row.

    The last row has no next sample: has_next is False and the derived
    columns are NaN. Where two samples share a timestamp the speed is set to
    0 and the row is flagged degenerate.
    """
    if len(track_data) < 2:
        raise EmptyTrackError("need at least two samples to derive speeds")

    df = track_data.reset_index(drop=True).copy()  # don't modify original

    lat = df["latitude"].to_numpy(dtype=float)
    lon = df["longitude"].to_numpy(dtype=float)
    elapsed = df["dt"].diff().shift(-1).dt.total_seconds().to_numpy()

    backwards = np.flatnonzero(elapsed[:-1] < 0)
    if backwards.size:
        row = int(backwards[0])
        raise NonMonotonicTimeError(row, float(elapsed[row]))

    distance = np.full(len(df), np.nan)
    distance[:-1] = haversine_m(lat[:-1], lon[:-1], lat[1:], lon[1:])

    degenerate = np.zeros(len(df), dtype=bool)
    degenerate[:-1] = elapsed[:-1] == 0

    speed = np.full(len(df), np.nan)
    moving = ~degenerate[:-1]
    speed[:-1][moving] = distance[:-1][moving] / elapsed[:-1][moving]
    speed[degenerate] = 0.0

    if degenerate.any():
        count = int(degenerate.sum())
        logger.warning(
            "%s samples share a timestamp with the next one, speed set to 0",
            count,
        )
        warnings.warn(
            f"{count} samples with zero elapsed time to the next sample",
            DegenerateSampleWarning,
            stacklevel=2,
        )

    df["distance_to_next_m"] = distance
    df["elapsed_to_next_s"] = elapsed
    df["speed_mps"] = speed
    df["speed_kmh"] = speed * MPS_TO_KMH
    df["has_next"] = np.arange(len(df)) < len(df) - 1
    df["degenerate"] = degenerate

    logger.debug(
        "enriched %s samples, %.1f m in total",
        len(df),
        np.nansum(distance),
    )
    return df


def total_distance(enriched):
    """
    length of the track in metres
    """
    return float(enriched["distance_to_next_m"].sum(skipna=True))


def elapsed_time(enriched):
    """
    time from the first to the last sample
    """
    return enriched["dt"].iloc[-1] - enriched["dt"].iloc[0]


def pace(distance_m, duration):
    """
    time per km as a pd.Timedelta, or NaT where no distance was covered
    """
    if distance_m <= 0:
        return pd.NaT
    return pd.Timedelta(seconds=duration.total_seconds() / distance_m * 1000)
