from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from domain.errors import InvalidInputError
from geo.mercator import (
    GeoPoint,
    TileIndex,
    resolve_center_tile,
    tiles_per_axis,
    validate_point,
    validate_zoom,
)
from shared.constants import EdgePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence


@dataclass(frozen=True)
class TileRequestSet:
    """Tiles to make available offline for one prefetch call."""

    center: GeoPoint
    zoom_levels: tuple[int, ...]
    radius: int
    edge_policy: EdgePolicy
    tiles: tuple[TileIndex, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[TileIndex]:
        return iter(self.tiles)

    def __contains__(self, tile: object) -> bool:
        return tile in self.tiles

    def by_zoom(self) -> dict[int, list[TileIndex]]:
        out: dict[int, list[TileIndex]] = {z: [] for z in self.zoom_levels}
        for t in self.tiles:
            out.setdefault(t.zoom, []).append(t)
        return out


def validate_radius(radius: int) -> int:
    if isinstance(radius, bool) or not isinstance(radius, int):
        msg = f'Radius must be an integer, got {radius!r}'
        raise InvalidInputError(msg)
    if radius < 0:
        msg = f'Radius must be >= 0, got {radius}'
        raise InvalidInputError(msg)
    return radius


def normalize_zoom_levels(zoom_levels: Iterable[int]) -> tuple[int, ...]:
    """Validate zoom levels and drop repeats, keeping first-seen order."""
    seen: dict[int, None] = {}
    for z in zoom_levels:
        seen.setdefault(validate_zoom(z), None)
    if not seen:
        msg = 'At least one zoom level is required'
        raise InvalidInputError(msg)
    return tuple(seen)


def expand_to_area(center: TileIndex, radius: int) -> list[TileIndex]:
    """
    Square neighborhood of side 2*radius+1 around center, same zoom.

    Indices are returned as-is, even outside [0, 2**zoom); see normalize_tile.
    """
    validate_radius(radius)
    return [
        TileIndex(center.zoom, center.x + dx, center.y + dy)
        for dx in range(-radius, radius + 1)
        for dy in range(-radius, radius + 1)
    ]


def normalize_tile(tile: TileIndex, policy: EdgePolicy) -> TileIndex | None:
    """Apply edge policy; None means the tile does not exist and is dropped."""
    if policy is EdgePolicy.NONE:
        return tile
    n = tiles_per_axis(tile.zoom)
    if not 0 <= tile.y < n:
        return None
    if 0 <= tile.x < n:
        return tile
    if policy is EdgePolicy.WRAP:
        return TileIndex(tile.zoom, tile.x % n, tile.y)
    return None


def build_request_set(
    center: GeoPoint,
    zoom_levels: Sequence[int],
    radius: int,
    edge_policy: EdgePolicy = EdgePolicy.CLIP,
) -> TileRequestSet:
    """Resolve the center once per zoom and expand it into the tiles to fetch."""
    validate_point(center)
    validate_radius(radius)
    levels = normalize_zoom_levels(zoom_levels)
    policy = EdgePolicy(edge_policy)

    tiles: dict[TileIndex, None] = {}
    for z in levels:
        center_tile = resolve_center_tile(center, z)
        for t in expand_to_area(center_tile, radius):
            norm = normalize_tile(t, policy)
            if norm is not None:
                tiles.setdefault(norm, None)

    return TileRequestSet(
        center=center,
        zoom_levels=levels,
        radius=radius,
        edge_policy=policy,
        tiles=tuple(tiles),
    )
