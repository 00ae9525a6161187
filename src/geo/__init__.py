"""Geo module - Web Mercator tile math."""

from .mercator import (
    GeoPoint,
    TileIndex,
    clamp_latitude,
    resolve_center_tile,
    tile_bounds,
    tile_to_latlng,
    tiles_per_axis,
    validate_point,
    validate_zoom,
)

__all__ = [
    'GeoPoint',
    'TileIndex',
    'clamp_latitude',
    'resolve_center_tile',
    'tile_bounds',
    'tile_to_latlng',
    'tiles_per_axis',
    'validate_point',
    'validate_zoom',
]
