from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING

import aiohttp
from PIL import Image

from domain.errors import FailureKind, TileFetchError
from domain.models import FetcherConfig
from infrastructure.http.client import make_http_session
from shared.constants import HTTP_5XX_MAX, HTTP_5XX_MIN, HTTP_OK, HTTP_TOO_MANY_REQUESTS
from tiles.cache import TileCache
from tiles.report import FetchReport, TileResult, TileStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from geo.mercator import TileIndex

logger = logging.getLogger(__name__)


def _check_image(data: bytes, tile: TileIndex) -> None:
    """Reject payloads that are not a decodable raster (e.g. HTML error pages)."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except Exception as e:
        msg = f'Tile {tile} payload is not a valid image ({len(data)} bytes): {e}'
        raise TileFetchError(msg, FailureKind.INVALID_PAYLOAD) from e


class TileFetcher:
    """Makes tiles available offline, downloading only those missing on disk.

    Each tile is handled independently: a failed download is recorded in the
    FetchReport and never aborts the rest of the batch. Duplicate indices are
    collapsed so that no two workers write the same path.
    """

    def __init__(
        self,
        config: FetcherConfig,
        session: aiohttp.ClientSession,
        cache: TileCache | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self.cache = cache or TileCache(config.dest_root)
        self._sem = asyncio.Semaphore(config.concurrency)
        self._stats_cache_hits = 0
        self._stats_downloads = 0
        self._stats_errors = 0
        self._stats_bytes = 0

    @property
    def stats(self) -> dict[str, int]:
        return {
            'cache_hits': self._stats_cache_hits,
            'downloads': self._stats_downloads,
            'errors': self._stats_errors,
            'bytes_downloaded': self._stats_bytes,
        }

    async def ensure_cached(
        self,
        tiles: Iterable[TileIndex],
        *,
        on_progress: Callable[[int, int], Awaitable[None]] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> FetchReport:
        """Ensure every tile exists under the cache root; report per-tile outcome.

        ``on_progress(done, total)`` is awaited after each tile finishes, where
        ``total`` is the number of distinct tiles. Callback errors are logged
        and do not affect the batch.
        """
        unique = list(dict.fromkeys(tiles))
        total = len(unique)
        done = 0
        started = time.monotonic()
        self.cache.cleanup_partials()

        async def _worker(tile: TileIndex) -> TileResult:
            nonlocal done
            result = await self._ensure_one(tile, cancel_event)
            done += 1
            if on_progress is not None:
                try:
                    await on_progress(done, total)
                except Exception as e:
                    logger.debug('Progress callback failed: %s', e)
            return result

        results = await asyncio.gather(*(_worker(t) for t in unique))

        report = FetchReport(elapsed_s=time.monotonic() - started)
        for r in results:
            report.add(r)
        if report.failed:
            logger.warning('Prefetch finished with gaps: %s', report.summary())
        else:
            logger.info('Prefetch finished: %s', report.summary())
        return report

    async def _ensure_one(
        self,
        tile: TileIndex,
        cancel_event: asyncio.Event | None,
    ) -> TileResult:
        path = self.cache.path_for(tile)
        if self.cache.exists(tile):
            return self._hit(tile, path)

        async with self._sem:
            if cancel_event is not None and cancel_event.is_set():
                return self._failure(
                    tile, path, TileFetchError('Cancelled', FailureKind.CANCELLED)
                )
            try:
                self.cache.ensure_dir(tile)
            except OSError as e:
                err = TileFetchError(f'Cannot create directory: {e}', FailureKind.STORAGE)
                return self._failure(tile, path, err)

            try:
                data = await self._download(tile)
                _check_image(data, tile)
            except TileFetchError as e:
                return self._failure(tile, path, e)

            try:
                written = self.cache.write_atomic(tile, data)
            except OSError as e:
                err = TileFetchError(f'Cannot write tile: {e}', FailureKind.STORAGE)
                return self._failure(tile, path, err)

        if not written:
            # Появился параллельно (другой процесс); существующий файл главнее
            return self._hit(tile, path)
        self._stats_downloads += 1
        self._stats_bytes += len(data)
        logger.debug('Saved tile %s -> %s (%d bytes)', tile, path, len(data))
        return TileResult(tile, TileStatus.FETCHED, path, size_bytes=len(data))

    async def _download(self, tile: TileIndex) -> bytes:
        """
        Download one tile with retries.

        401/403/404 and other unexpected statuses fail at once; 429/5xx,
        connection errors and timeouts are retried with exponential backoff.
        """
        url = self.config.tile_url(tile.zoom, tile.x, tile.y)
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_s)

        last_exc: TileFetchError | None = None
        for attempt in range(self.config.retries):
            if attempt:
                await asyncio.sleep(self.config.backoff_factor**attempt)
            try:
                resp = await self.session.get(url, timeout=timeout)
                try:
                    sc = resp.status
                    if sc == HTTP_OK:
                        return await resp.read()
                    msg = f'HTTP {sc} for tile {tile} url={url}'
                    err = TileFetchError(msg, FailureKind.HTTP_STATUS)
                    is_rate_or_5xx = sc == HTTP_TOO_MANY_REQUESTS or (
                        HTTP_5XX_MIN <= sc < HTTP_5XX_MAX
                    )
                    if not is_rate_or_5xx:
                        raise err
                    last_exc = err
                finally:
                    with contextlib.suppress(Exception):
                        resp.release()
            except asyncio.TimeoutError as e:
                last_exc = TileFetchError(
                    f'Timeout after {self.config.timeout_s}s for tile {tile} url={url}',
                    FailureKind.TIMEOUT,
                )
                last_exc.__cause__ = e
            except aiohttp.ClientError as e:
                last_exc = TileFetchError(
                    f'Network error for tile {tile} url={url}: {e}',
                    FailureKind.NETWORK,
                )
                last_exc.__cause__ = e
            logger.debug('Attempt %d for %s failed: %s', attempt + 1, tile, last_exc)

        if last_exc is None:
            msg = f'No download attempts for tile {tile} (retries={self.config.retries})'
            raise TileFetchError(msg, FailureKind.NETWORK)
        raise last_exc

    def _hit(self, tile: TileIndex, path: Path) -> TileResult:
        self._stats_cache_hits += 1
        size = 0
        with contextlib.suppress(OSError):
            size = path.stat().st_size
        logger.debug('Tile %s already cached', tile)
        return TileResult(tile, TileStatus.ALREADY_CACHED, path, size_bytes=size)

    def _failure(self, tile: TileIndex, path: Path, err: TileFetchError) -> TileResult:
        self._stats_errors += 1
        logger.warning('Failed to fetch tile %s: %s', tile, err)
        return TileResult(
            tile,
            TileStatus.FAILED,
            path,
            reason=str(err),
            kind=err.kind,
        )


async def ensure_cached(
    tiles: Iterable[TileIndex],
    dest_root: str | Path,
    remote_template: str,
    *,
    config: FetcherConfig | None = None,
    session: aiohttp.ClientSession | None = None,
    on_progress: Callable[[int, int], Awaitable[None]] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> FetchReport:
    """One-shot helper: fetch tiles into dest_root from remote_template."""
    base = config or FetcherConfig()
    cfg = base.model_copy(
        update={'dest_root': Path(dest_root), 'remote_template': remote_template},
    )
    # model_copy не валидирует update — проверяем шаблон явно
    cfg = FetcherConfig.model_validate(cfg.model_dump())

    own_session = session is None
    client = session if session is not None else make_http_session(cfg)
    try:
        fetcher = TileFetcher(cfg, client)
        return await fetcher.ensure_cached(
            tiles, on_progress=on_progress, cancel_event=cancel_event
        )
    finally:
        if own_session:
            await client.close()
