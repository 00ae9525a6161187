"""Command-line entry point for the offline tile prefetcher."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from domain.errors import InvalidInputError
from domain.models import PrefetchSettings
from domain.profiles import load_profile, save_profile
from geo.mercator import tile_bounds
from services.prefetch_service import plan_prefetch, prefetch_area
from shared.constants import LOG_FORMAT, EdgePolicy
from shared.progress import ConsoleProgress
from tiles.cache import TileCache

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_INPUT = 2
EXIT_INTERRUPTED = 130


def setup_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure application logging to stderr and optionally to a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding='utf-8'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tile-prefetch',
        description='Download slippy-map tiles around a point for offline use',
    )
    parser.add_argument('--lat', type=float, help='Center latitude, degrees')
    parser.add_argument('--lon', type=float, help='Center longitude, degrees')
    parser.add_argument(
        '--zoom', type=int, nargs='+', metavar='Z', help='Zoom levels (default: 14 15)'
    )
    parser.add_argument('--radius', type=int, help='Tiles on each side of the center')
    parser.add_argument('--dest', type=Path, help='Destination root directory')
    parser.add_argument('--template', help='Tile URL template with {z} {x} {y}')
    parser.add_argument('--concurrency', type=int, help='Parallel downloads')
    parser.add_argument('--timeout', type=float, help='Per-request timeout, seconds')
    parser.add_argument('--retries', type=int, help='Attempts per tile')
    parser.add_argument(
        '--edge-policy',
        choices=[p.value for p in EdgePolicy],
        help='Out-of-range tile handling (default: clip)',
    )
    parser.add_argument('--profile', type=Path, help='Load settings from TOML profile')
    parser.add_argument('--save-profile', type=Path, help='Write effective settings to TOML')
    parser.add_argument('--stats', action='store_true', help='Print cache statistics')
    parser.add_argument('--no-progress', action='store_true', help='Hide progress bar')
    parser.add_argument('--log-file', type=Path, help='Also log to this file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def resolve_settings(args: argparse.Namespace) -> PrefetchSettings:
    """Defaults < profile < explicit command-line flags."""
    data: dict = {}
    if args.profile is not None:
        data = load_profile(args.profile).model_dump()

    overrides = {
        'latitude': args.lat,
        'longitude': args.lon,
        'zoom_levels': args.zoom,
        'radius': args.radius,
        'edge_policy': args.edge_policy,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})

    fetcher_overrides = {
        'dest_root': args.dest,
        'remote_template': args.template,
        'concurrency': args.concurrency,
        'timeout_s': args.timeout,
        'retries': args.retries,
    }
    fetcher = dict(data.get('fetcher') or {})
    fetcher.update({k: v for k, v in fetcher_overrides.items() if v is not None})
    data['fetcher'] = fetcher

    return PrefetchSettings.model_validate(data)


def _print_stats(cache: TileCache) -> None:
    st = cache.stats()
    print(f'Cache {cache.root}: {st.total_tiles} tiles, {st.total_size_bytes} bytes')
    for z, count in st.tiles_by_zoom.items():
        print(f'  z{z}: {count} tiles, {st.size_by_zoom[z]} bytes')


async def _run(settings: PrefetchSettings, *, show_progress: bool):
    progress = None
    if show_progress:
        progress = ConsoleProgress(label='Tiles')
        progress.update(0, len(plan_prefetch(settings)))
    try:
        return await prefetch_area(settings, on_progress=progress)
    finally:
        if progress is not None:
            progress.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        settings = resolve_settings(args)
        request = plan_prefetch(settings)
    except (ValidationError, InvalidInputError, FileNotFoundError, TOMLKitError) as e:
        logger.error('Invalid input: %s', e)
        return EXIT_INVALID_INPUT

    if args.save_profile is not None:
        try:
            path = save_profile(args.save_profile, settings)
        except OSError as e:
            logger.error('Cannot save profile %s: %s', args.save_profile, e)
            return EXIT_INVALID_INPUT
        logger.info('Settings saved to %s', path)

    for z, tiles in request.by_zoom().items():
        if not tiles:
            continue
        south = min(tile_bounds(t)[0] for t in tiles)
        west = min(tile_bounds(t)[1] for t in tiles)
        north = max(tile_bounds(t)[2] for t in tiles)
        east = max(tile_bounds(t)[3] for t in tiles)
        logger.info(
            'z%d: %d tiles covering lat %.5f..%.5f lon %.5f..%.5f',
            z, len(tiles), south, north, west, east,
        )

    try:
        report = asyncio.run(_run(settings, show_progress=not args.no_progress))
    except KeyboardInterrupt:
        logger.warning('Interrupted; tiles saved so far remain in the cache')
        return EXIT_INTERRUPTED

    print(report.summary())
    for r in report.failed:
        print(f'  failed {r.tile}: [{r.kind.value if r.kind else "?"}] {r.reason}')

    if args.stats:
        _print_stats(TileCache(settings.fetcher.dest_root))
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
