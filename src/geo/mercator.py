"""Web Mercator (slippy map) tile math."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

from domain.errors import InvalidInputError
from shared.constants import (
    MAX_ZOOM,
    MERCATOR_MAX_LAT_DEG,
    MIN_ZOOM,
    WORLD_LAT_MAX_DEG,
    WORLD_LNG_HALF_SPAN_DEG,
    WORLD_LNG_SPAN_DEG,
)


@dataclass(frozen=True)
class GeoPoint:
    """Точка WGS84 в градусах."""

    latitude: float
    longitude: float


class TileIndex(NamedTuple):
    """Адрес растрового тайла (z, x, y)."""

    zoom: int
    x: int
    y: int

    def __str__(self) -> str:
        return f'{self.zoom}/{self.x}/{self.y}'


def tiles_per_axis(zoom: int) -> int:
    return 1 << zoom


def validate_zoom(zoom: int) -> int:
    if isinstance(zoom, bool) or not isinstance(zoom, int):
        msg = f'Уровень масштаба должен быть целым числом, получено {zoom!r}'
        raise InvalidInputError(msg)
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        msg = f'Уровень масштаба {zoom} вне диапазона [{MIN_ZOOM}, {MAX_ZOOM}]'
        raise InvalidInputError(msg)
    return zoom


def validate_point(point: GeoPoint) -> GeoPoint:
    """
    Проверяет, что точка проецируема в Web Mercator.

    Полюса (|lat| >= 90) — сингулярность tan/sec, такие точки отклоняются явно,
    чтобы NaN/inf не попадали в индексы тайлов.
    """
    lat, lng = point.latitude, point.longitude
    if not (math.isfinite(lat) and math.isfinite(lng)):
        msg = f'Координаты должны быть конечными числами: ({lat}, {lng})'
        raise InvalidInputError(msg)
    if abs(lat) >= WORLD_LAT_MAX_DEG:
        msg = f'Широта {lat} вне открытого интервала (-90, 90)'
        raise InvalidInputError(msg)
    if abs(lng) > WORLD_LNG_HALF_SPAN_DEG:
        msg = f'Долгота {lng} вне диапазона [-180, 180]'
        raise InvalidInputError(msg)
    return point


def clamp_latitude(lat_deg: float) -> float:
    """Обрезает широту до предела Web Mercator (±85.0511°)."""
    return min(max(lat_deg, -MERCATOR_MAX_LAT_DEG), MERCATOR_MAX_LAT_DEG)


def resolve_center_tile(point: GeoPoint, zoom: int) -> TileIndex:
    """
    Возвращает тайл, содержащий точку, на уровне zoom.

    x = floor((lng + 180) / 360 * n)
    y = floor((1 - ln(tan(lat) + sec(lat)) / pi) / 2 * n)

    Широта за пределами ±85.0511° обрезается, строка y удерживается в [0, n).
    Долгота 180 совпадает с -180 и попадает в последний столбец.
    Столбец x в остальном не нормализуется (см. tiles.coverage.EdgePolicy).
    """
    validate_point(point)
    validate_zoom(zoom)

    n = tiles_per_axis(zoom)
    x = math.floor(
        (point.longitude + WORLD_LNG_HALF_SPAN_DEG) / WORLD_LNG_SPAN_DEG * n,
    )
    if x == n:
        x = n - 1

    lat_rad = math.radians(clamp_latitude(point.latitude))
    merc = math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad))
    y = math.floor((1.0 - merc / math.pi) / 2.0 * n)
    y = min(max(y, 0), n - 1)

    return TileIndex(zoom, x, y)


def tile_to_latlng(zoom: int, x: float, y: float) -> tuple[float, float]:
    """Обратное преобразование: северо-западный угол тайла -> (lat, lng)."""
    n = tiles_per_axis(zoom)
    lng = x / n * WORLD_LNG_SPAN_DEG - WORLD_LNG_HALF_SPAN_DEG
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n))))
    return lat, lng


def tile_bounds(tile: TileIndex) -> tuple[float, float, float, float]:
    """Границы тайла (south, west, north, east) в градусах."""
    north, west = tile_to_latlng(tile.zoom, tile.x, tile.y)
    south, east = tile_to_latlng(tile.zoom, tile.x + 1, tile.y + 1)
    return south, west, north, east
