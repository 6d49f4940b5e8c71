"""Interactive HTML map of nearby points."""

import html
from typing import Optional

import folium

from .config import CATEGORIES, category_info
from .geo import distance_meters, format_distance


def create_map(location, points, radius: Optional[float] = None,
               zoom_start: int = 14) -> folium.Map:
    """Map centered on location with one colored marker per point."""
    m = folium.Map(
        location=[location.lat, location.lon],
        zoom_start=zoom_start,
        tiles="CartoDB positron"
    )
    folium.TileLayer("OpenStreetMap", name="OpenStreetMap").add_to(m)

    if radius:
        folium.Circle(
            [location.lat, location.lon],
            radius=radius,
            color="#007AFF",
            weight=1,
            fill=True,
            fill_opacity=0.05,
        ).add_to(m)

    # One layer per category so they can be toggled like filter chips
    layers: dict[str, folium.FeatureGroup] = {}
    for point in points:
        info = category_info(point.category)
        layer = layers.get(info.tag)
        if layer is None:
            layer = folium.FeatureGroup(name=info.display_name, show=True)
            layers[info.tag] = layer

        name = html.escape(point.name)
        popup_text = f"""
            <b>{name}</b><br>
            {info.display_name}<br>
            {format_distance(distance_meters(location, point))} away
        """
        folium.CircleMarker(
            [point.lat, point.lon],
            radius=7,
            color=info.color,
            fill=True,
            fill_color=info.color,
            fill_opacity=0.9,
            popup=folium.Popup(popup_text, max_width=220),
            tooltip=name,
        ).add_to(layer)

    for tag in CATEGORIES:
        if tag in layers:
            layers[tag].add_to(m)

    folium.Marker(
        [location.lat, location.lon],
        popup="You are here",
        icon=folium.Icon(color="blue", icon="user")
    ).add_to(m)

    folium.LayerControl().add_to(m)
    return m


def save_map(path: str, location, points, radius: Optional[float] = None) -> str:
    m = create_map(location, points, radius)
    m.save(path)
    return path
