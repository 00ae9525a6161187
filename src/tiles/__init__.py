"""Offline tile prefetching.

This module provides:
- build_request_set / expand_to_area: tile indices covering an area
- TileCache: zoom/x/y file hierarchy on local storage
- TileFetcher: bounded concurrent downloader with per-tile results
- FetchReport: aggregated outcome of a batch
"""

from tiles.cache import CacheStats, TileCache
from tiles.coverage import (
    TileRequestSet,
    build_request_set,
    expand_to_area,
    normalize_tile,
)
from tiles.fetcher import TileFetcher, ensure_cached
from tiles.report import FetchReport, TileResult, TileStatus

__all__ = [
    'CacheStats',
    'FetchReport',
    'TileCache',
    'TileFetcher',
    'TileRequestSet',
    'TileResult',
    'TileStatus',
    'build_request_set',
    'ensure_cached',
    'expand_to_area',
    'normalize_tile',
]
