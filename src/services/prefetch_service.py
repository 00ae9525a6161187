"""Prefetch service - one call that makes an area available offline."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from geo.mercator import GeoPoint
from infrastructure.http.client import make_http_session
from tiles.cache import TileCache
from tiles.coverage import build_request_set
from tiles.fetcher import TileFetcher

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import aiohttp

    from domain.models import PrefetchSettings
    from tiles.coverage import TileRequestSet
    from tiles.report import FetchReport

logger = logging.getLogger(__name__)


def plan_prefetch(settings: PrefetchSettings) -> TileRequestSet:
    """Validate the request and compute the tiles to fetch (no I/O).

    Raises InvalidInputError for coordinates, zooms or radius that cannot be
    projected; this is the only failure that aborts the whole operation.
    """
    center = GeoPoint(settings.latitude, settings.longitude)
    return build_request_set(
        center,
        settings.zoom_levels,
        settings.radius,
        settings.edge_policy,
    )


async def prefetch_area(
    settings: PrefetchSettings,
    *,
    session: aiohttp.ClientSession | None = None,
    on_progress: Callable[[int, int], Awaitable[None]] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> FetchReport:
    request = plan_prefetch(settings)
    cfg = settings.fetcher
    logger.info(
        'Prefetching %d tiles around (%.6f, %.6f) zooms=%s radius=%d into %s',
        len(request),
        settings.latitude,
        settings.longitude,
        list(request.zoom_levels),
        request.radius,
        cfg.dest_root,
    )

    own_session = session is None
    client = session if session is not None else make_http_session(cfg)
    try:
        fetcher = TileFetcher(cfg, client, TileCache(cfg.dest_root))
        report = await fetcher.ensure_cached(
            request.tiles,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
    finally:
        if own_session:
            await client.close()

    logger.info('Fetcher stats: %s', fetcher.stats)
    return report


def run_prefetch(
    settings: PrefetchSettings,
    *,
    on_progress: Callable[[int, int], Awaitable[None]] | None = None,
) -> FetchReport:
    """Synchronous entry point for callers without an event loop."""
    return asyncio.run(prefetch_area(settings, on_progress=on_progress))
