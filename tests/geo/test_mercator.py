"""Tests for Web Mercator tile math."""

import math

import pytest

from domain.errors import InvalidInputError
from geo.mercator import (
    GeoPoint,
    TileIndex,
    clamp_latitude,
    resolve_center_tile,
    tile_bounds,
    tile_to_latlng,
)
from shared.constants import MERCATOR_MAX_LAT_DEG


class TestResolveCenterTile:
    """Tests for resolve_center_tile."""

    def test_london_zoom_14(self):
        """Well-known slippy map tile for central London."""
        tile = resolve_center_tile(GeoPoint(51.5, -0.12), 14)
        assert tile == TileIndex(14, 8186, 5448)

    def test_origin_zoom_0(self):
        """Zoom 0 has a single tile covering the world."""
        assert resolve_center_tile(GeoPoint(0.0, 0.0), 0) == TileIndex(0, 0, 0)

    def test_origin_zoom_1_is_south_east_quadrant(self):
        """(0, 0) sits on the corner; floor puts it in tile (1, 1)."""
        assert resolve_center_tile(GeoPoint(0.0, 0.0), 1) == TileIndex(1, 1, 1)

    def test_west_edge(self):
        tile = resolve_center_tile(GeoPoint(10.0, -180.0), 5)
        assert tile.x == 0

    def test_east_edge_folds_onto_last_column(self):
        """Longitude 180 is the antimeridian, same as -180; stays in range."""
        tile = resolve_center_tile(GeoPoint(10.0, 180.0), 5)
        assert tile.x == 31

    def test_polar_latitude_clamped_north(self):
        tile = resolve_center_tile(GeoPoint(89.0, 0.0), 10)
        assert tile.y == 0

    def test_polar_latitude_clamped_south(self):
        tile = resolve_center_tile(GeoPoint(-89.0, 0.0), 10)
        assert tile.y == 1023

    def test_mercator_limit_maps_to_first_row(self):
        tile = resolve_center_tile(GeoPoint(MERCATOR_MAX_LAT_DEG, 0.0), 12)
        assert tile.y == 0

    @pytest.mark.parametrize('lat', [90.0, -90.0, 95.0, -120.0])
    def test_poles_rejected(self, lat):
        """Projection is undefined at the poles: explicit error, not NaN."""
        with pytest.raises(InvalidInputError):
            resolve_center_tile(GeoPoint(lat, 0.0), 14)

    @pytest.mark.parametrize('lat,lng', [(math.nan, 0.0), (0.0, math.inf)])
    def test_non_finite_rejected(self, lat, lng):
        with pytest.raises(InvalidInputError):
            resolve_center_tile(GeoPoint(lat, lng), 3)

    def test_longitude_out_of_range_rejected(self):
        with pytest.raises(InvalidInputError, match='Долгота'):
            resolve_center_tile(GeoPoint(0.0, 180.5), 3)

    @pytest.mark.parametrize('zoom', [-1, 23])
    def test_zoom_out_of_range_rejected(self, zoom):
        with pytest.raises(InvalidInputError):
            resolve_center_tile(GeoPoint(0.0, 0.0), zoom)

    def test_invalid_input_is_value_error(self):
        """Callers catching ValueError also see precondition violations."""
        with pytest.raises(ValueError):
            resolve_center_tile(GeoPoint(90.0, 0.0), 0)


class TestInverse:
    """Tests for tile_to_latlng and tile_bounds."""

    def test_world_corner(self):
        lat, lng = tile_to_latlng(0, 0, 0)
        assert lat == pytest.approx(MERCATOR_MAX_LAT_DEG, abs=1e-6)
        assert lng == pytest.approx(-180.0)

    def test_bounds_contain_point(self):
        point = GeoPoint(51.5, -0.12)
        south, west, north, east = tile_bounds(resolve_center_tile(point, 14))
        assert south <= point.latitude < north
        assert west <= point.longitude < east

    def test_clamp_latitude(self):
        assert clamp_latitude(89.9) == MERCATOR_MAX_LAT_DEG
        assert clamp_latitude(-89.9) == -MERCATOR_MAX_LAT_DEG
        assert clamp_latitude(45.0) == 45.0

    def test_tile_index_str(self):
        assert str(TileIndex(14, 8192, 5461)) == '14/8192/5461'
