#!/usr/bin/env python3
"""
Playback visualization using folium maps.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import logging
import folium
from folium.plugins import TimestampedGeoJson
from folium.template import Template

from .metrics import Frame, PlaybackMetrics
from .route import Route

logger = logging.getLogger(__name__)

# Frame times are offsets; the animation needs absolute timestamps
ANIMATION_EPOCH = datetime(2000, 1, 1)


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as m:ss, or 00:00 when there is nothing to show."""
    if not seconds:
        return "00:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def format_distance_km(meters: float) -> str:
    """Format a distance in meters as kilometers with one decimal."""
    return f"{meters / 1000:.1f} km"


def format_iso_seconds(seconds: float) -> str:
    """
    Format seconds as an ISO-8601 duration such as PT0.5S.

    Fixed-point notation to the millisecond; anything shorter is shown as
    one millisecond since the animation cannot step faster than that.
    """
    text = f"{max(seconds, 0.001):.3f}".rstrip("0").rstrip(".")
    return f"PT{text}S"


class PlaybackLegend(folium.MacroElement):
    """Legend box with route length and replay duration."""

    def __init__(self, metrics: PlaybackMetrics, speed_multiplier: float):
        super().__init__()
        self.distance_text = format_distance_km(metrics.total_distance)
        self.duration_text = format_duration(metrics.simulated_duration)
        self.speed_text = f"{speed_multiplier:g}x"

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="playback-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 200px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Replay</b><br>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #2E86AB; font-weight: bold; font-size: 18px;">—</span>
                Route ({{ this.distance_text }})
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                Duration {{ this.duration_text }} at {{ this.speed_text }}
            </div>
        </div>
        {% endmacro %}
        """
        )


def frames_to_features(frames: List[Frame]) -> List[Dict[str, Any]]:
    """
    Convert recorded frames to GeoJSON point features for TimestampedGeoJson.

    Frames without a position (empty route) are skipped.
    """
    features = []
    for elapsed, state in frames:
        position = state.current_position
        if position is None:
            continue
        timestamp = (ANIMATION_EPOCH + timedelta(seconds=elapsed)).isoformat()
        features.append(
            {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [position.longitude, position.latitude],
                },
                "properties": {
                    "times": [timestamp],
                    "popup": (
                        f"{state.progress * 100:.1f}% "
                        f"heading {state.current_heading:.0f}°"
                    ),
                    "icon": "circle",
                    "iconstyle": {
                        "fillColor": "#D23C4C",
                        "fillOpacity": 0.9,
                        "stroke": "true",
                        "radius": 6,
                    },
                },
            }
        )
    return features


def create_playback_map(
    route: Route,
    output_filename: str,
    frames: List[Frame],
    metrics: PlaybackMetrics,
    speed_multiplier: float = 1.0,
    frame_interval: float = 1.0,
) -> None:
    """
    Create an interactive map replaying the route, save as HTML.

    Args:
        route: Route object representing the route
        output_filename: Path where HTML map file should be saved
        frames: Recorded (time, state) pairs of a playback run
        metrics: PlaybackMetrics of the same run
        speed_multiplier: Playback rate the frames were recorded at
        frame_interval: Simulated seconds between frames

    Raises:
        ValueError: If route is empty
    """
    if not route:
        raise ValueError("Cannot create map for empty route")

    south, west, north, east = route.get_bbox()

    center_lat = (south + north) / 2
    center_lon = (west + east) / 2

    logger.debug(f"Creating map centered at ({center_lat:.4f}, {center_lon:.4f})")

    route_map = folium.Map(
        location=[center_lat, center_lon],
        tiles=None,
    )

    folium.TileLayer(
        tiles="CartoDB positron",
        attr=(
            "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
            "contributors &copy; <a href='https://carto.com/attributions'>CARTO</a>"
        ),
        name="Standard",
        control=True,
        show=True,
    ).add_to(route_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        name="Satellite",
        control=True,
        show=False,
    ).add_to(route_map)

    folium.LayerControl().add_to(route_map)

    coordinates = [[pos.latitude, pos.longitude] for pos in route.coords]

    if len(coordinates) > 1:
        folium.PolyLine(
            coordinates,
            color="#2E86AB",
            weight=3,
            opacity=0.6,
            popup="Recorded Route",
            z_index=1,
        ).add_to(route_map)

    folium.Marker(
        [route[0].latitude, route[0].longitude],
        popup="Start",
        icon=folium.Icon(color="green", icon="play"),
    ).add_to(route_map)

    folium.Marker(
        [route[-1].latitude, route[-1].longitude],
        popup="End",
        icon=folium.Icon(color="red", icon="stop"),
    ).add_to(route_map)

    features = frames_to_features(frames)
    if features:
        TimestampedGeoJson(
            {"type": "FeatureCollection", "features": features},
            period=format_iso_seconds(frame_interval),
            duration=format_iso_seconds(frame_interval),
            transition_time=max(1, int(frame_interval * 1000)),
            add_last_point=False,
            auto_play=False,
            loop=False,
            date_options="HH:mm:ss",
        ).add_to(route_map)

    route_map.add_child(PlaybackLegend(metrics, speed_multiplier))

    bounds = [[south, west], [north, east]]
    route_map.fit_bounds(bounds)

    route_map.save(output_filename)

    logger.debug(
        f"Map saved to {output_filename} with {len(features)} animation frames"
    )
