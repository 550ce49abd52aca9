"""
    track_maps: draw the track and its stops, as static images with
    matplotlib and as an interactive folium map
"""
import logging
import math
from dataclasses import dataclass
from pathlib import Path

import folium
from matplotlib.figure import Figure

from track_errors import RenderError

logger = logging.getLogger(__name__)

RENDER_FAILURES = (OSError, ValueError, RuntimeError)


@dataclass(frozen=True)
class BoundingBox:
    """
    smallest lat/lon rectangle holding every sample
    """

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @property
    def center(self):
        """
        middle of the box as (lat, lon)
        """
        return (
            (self.min_lat + self.max_lat) / 2.0,
            (self.min_lon + self.max_lon) / 2.0,
        )

    def padded(self, margin_deg):
        """
        the box grown by margin_deg on every side
        """
        return BoundingBox(
            self.min_lat - margin_deg,
            self.min_lon - margin_deg,
            self.max_lat + margin_deg,
            self.max_lon + margin_deg,
        )

    def corners(self):
        """
        south-west and north-east corners, the way folium wants them
        """
        return [[self.min_lat, self.min_lon], [self.max_lat, self.max_lon]]


@dataclass(frozen=True)
class MapConfig:
    """
    how the maps are framed and drawn
    """

    margin_deg: float = 0.002
    zoom_start: int = 15
    tiles: str = "OpenStreetMap"
    dpi: int = 100


def bounding_box(track_data):
    """
    bounding box of the samples in a positions DataFrame
    """
    return BoundingBox(
        float(track_data["latitude"].min()),
        float(track_data["longitude"].min()),
        float(track_data["latitude"].max()),
        float(track_data["longitude"].max()),
    )


def marker_area(duration_s):
    """
    scatter marker area (points^2) for a stop of the given length
    """
    return 20.0 + duration_s / 6.0


def circle_radius_m(duration_s):
    """
    folium circle radius: grows with the square root of the duration so the
    drawn area is proportional to the time stopped
    """
    return 5.0 + math.sqrt(max(duration_s, 0.0))


def _path_figure(track_data, config):
    """
    a figure with the raw path drawn, framed on the padded bounding box
    """
    box = bounding_box(track_data).padded(config.margin_deg)
    fig = Figure(figsize=(8, 8), dpi=config.dpi)
    ax = fig.add_subplot()
    ax.plot(
        track_data["longitude"],
        track_data["latitude"],
        color="tab:blue",
        linewidth=1.5,
    )
    ax.set_xlim(box.min_lon, box.max_lon)
    ax.set_ylim(box.min_lat, box.max_lat)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.ticklabel_format(useOffset=False)
    return fig, ax


def _save_figure(fig, filename):
    """
    write the figure, turning a failure into RenderError
    """
    try:
        fig.savefig(filename)
    except RENDER_FAILURES as exc:
        raise RenderError(f"could not write {filename}: {exc}") from exc
    logger.debug("wrote %s", filename)
    return Path(filename)


def plot_path(track_data, filename, config=None):
    """
    static image of the raw path
    """
    config = config or MapConfig()
    fig, ax = _path_figure(track_data, config)
    ax.set_title("Track")
    return _save_figure(fig, filename)


def plot_stops(track_data, stops, filename, config=None):
    """
    static image of the path with each stop drawn as a circle whose area
    scales with how long it lasted
    """
    config = config or MapConfig()
    fig, ax = _path_figure(track_data, config)
    if not stops.empty:
        ax.scatter(
            stops["longitude"],
            stops["latitude"],
            s=stops["duration_s"].apply(marker_area),
            color="tab:red",
            alpha=0.5,
            zorder=3,
        )
    ax.set_title(f"Stops ({len(stops)})")
    return _save_figure(fig, filename)


def interactive_map(track_data, stops, config=None):
    """
    folium map of the path as a line and the stops as circles sized by
    duration, framed on the padded bounding box
    """
    config = config or MapConfig()
    box = bounding_box(track_data)
    try:
        fmap = folium.Map(
            location=list(box.center),
            zoom_start=config.zoom_start,
            tiles=config.tiles,
        )
        positions = list(
            zip(track_data["latitude"].tolist(), track_data["longitude"].tolist())
        )
        folium.PolyLine(positions, color="blue", weight=3, opacity=0.9).add_to(
            fmap
        )
        for stop in stops.itertuples(index=False):
            folium.Circle(
                location=[stop.latitude, stop.longitude],
                radius=circle_radius_m(stop.duration_s),
                color="red",
                fill=True,
                fill_opacity=0.4,
                popup=(
                    f"{stop.start_time:%H:%M:%S} - {stop.end_time:%H:%M:%S}"
                    f"<br>{stop.duration_s:.0f}s"
                ),
            ).add_to(fmap)
        fmap.fit_bounds(box.padded(config.margin_deg).corners())
    except RENDER_FAILURES as exc:
        raise RenderError(f"could not build the interactive map: {exc}") from exc
    return fmap


def save_map(fmap, filename):
    """
    write the folium map as html, turning a failure into RenderError
    """
    try:
        fmap.save(str(filename))
    except RENDER_FAILURES as exc:
        raise RenderError(f"could not write {filename}: {exc}") from exc
    logger.debug("wrote %s", filename)
    return Path(filename)


def render(track_data, stops, out_dir, config=None):
    """
    write path.png, stops.png and map.html into out_dir, returning the
    artifact paths keyed by kind
    """
    config = config or MapConfig()
    out_dir = Path(out_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RenderError(f"could not create {out_dir}: {exc}") from exc

    artifacts = {
        "path": plot_path(track_data, out_dir / "path.png", config),
        "stops": plot_stops(track_data, stops, out_dir / "stops.png", config),
        "map": save_map(
            interactive_map(track_data, stops, config), out_dir / "map.html"
        ),
    }
    logger.info("rendered %s", ", ".join(str(p) for p in artifacts.values()))
    return artifacts
