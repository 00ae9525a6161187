"""File-hierarchy tile cache.

Tiles are stored as ``<dest_root>/tiles/<z>/<x>/<y>.png``, the same layout the
offline map display resolves by substituting z/x/y into a local template.
The presence of the file is the only cache-hit signal; there is no index.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from geo.mercator import TileIndex
from shared.constants import PARTIAL_FILE_SUFFIX, TILE_FILE_EXT, TILES_SUBDIR

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Statistics about the tile cache."""

    total_tiles: int = 0
    total_size_bytes: int = 0
    tiles_by_zoom: dict[int, int] = field(default_factory=dict)
    size_by_zoom: dict[int, int] = field(default_factory=dict)


def _parse_int(name: str) -> int | None:
    """Canonical decimal only: "05", "+5" and " 5" are not tile names."""
    try:
        value = int(name)
    except ValueError:
        return None
    return value if str(value) == name else None


class TileCache:
    """On-disk tile store keyed by (zoom, x, y).

    Usage:
        cache = TileCache('/data/offline')
        if not cache.exists(tile):
            cache.write_atomic(tile, png_bytes)
    """

    def __init__(self, dest_root: str | Path) -> None:
        self.dest_root = Path(dest_root)
        self.root = self.dest_root / TILES_SUBDIR

    def path_for(self, tile: TileIndex) -> Path:
        return self.root / str(tile.zoom) / str(tile.x) / f'{tile.y}{TILE_FILE_EXT}'

    def exists(self, tile: TileIndex) -> bool:
        return self.path_for(tile).is_file()

    def ensure_dir(self, tile: TileIndex) -> Path:
        """Create the z/x directory for a tile (idempotent, race-safe)."""
        directory = self.path_for(tile).parent
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def read(self, tile: TileIndex) -> bytes | None:
        path = self.path_for(tile)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write_atomic(self, tile: TileIndex, data: bytes) -> bool:
        """Persist tile bytes via temp file + rename.

        Returns False without touching anything when the final file already
        exists. On error the temp file is removed and the exception propagates;
        the final path never holds a truncated tile.
        """
        final = self.path_for(tile)
        directory = self.ensure_dir(tile)
        if final.exists():
            return False

        fd, tmp_name = tempfile.mkstemp(
            dir=directory,
            prefix=f'{tile.y}.',
            suffix=PARTIAL_FILE_SUFFIX,
        )
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, 'wb') as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            if final.exists():
                tmp.unlink()
                return False
            os.replace(tmp, final)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise
        return True

    def iter_cached(self) -> Iterator[TileIndex]:
        """Yield tiles present on disk; foreign files are skipped."""
        if not self.root.is_dir():
            return
        for zdir in self.root.iterdir():
            zoom = _parse_int(zdir.name)
            if zoom is None or not zdir.is_dir():
                continue
            for xdir in zdir.iterdir():
                x = _parse_int(xdir.name)
                if x is None or not xdir.is_dir():
                    continue
                for f in xdir.iterdir():
                    if f.suffix != TILE_FILE_EXT or not f.is_file():
                        continue
                    y = _parse_int(f.stem)
                    if y is not None:
                        yield TileIndex(zoom, x, y)

    def stats(self) -> CacheStats:
        st = CacheStats()
        for tile in self.iter_cached():
            size = self.path_for(tile).stat().st_size
            st.total_tiles += 1
            st.total_size_bytes += size
            st.tiles_by_zoom[tile.zoom] = st.tiles_by_zoom.get(tile.zoom, 0) + 1
            st.size_by_zoom[tile.zoom] = st.size_by_zoom.get(tile.zoom, 0) + size
        st.tiles_by_zoom = dict(sorted(st.tiles_by_zoom.items()))
        st.size_by_zoom = dict(sorted(st.size_by_zoom.items()))
        return st

    def cleanup_partials(self) -> int:
        """Remove temp files left behind by an interrupted run."""
        if not self.root.is_dir():
            return 0
        removed = 0
        for p in self.root.rglob(f'*{PARTIAL_FILE_SUFFIX}'):
            try:
                p.unlink()
            except OSError as e:
                logger.debug('Could not remove partial tile %s: %s', p, e)
            else:
                removed += 1
        if removed:
            logger.info('Removed %d partial tile file(s) under %s', removed, self.root)
        return removed
