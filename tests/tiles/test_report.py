"""Tests for FetchReport."""

from pathlib import Path

from domain.errors import FailureKind
from geo.mercator import TileIndex
from tiles.report import FetchReport, TileResult, TileStatus


def _report() -> FetchReport:
    report = FetchReport(elapsed_s=2.0)
    report.add(TileResult(TileIndex(14, 1, 1), TileStatus.FETCHED, Path('a'), 100))
    report.add(TileResult(TileIndex(14, 1, 2), TileStatus.ALREADY_CACHED, Path('b'), 50))
    report.add(
        TileResult(
            TileIndex(15, 2, 2),
            TileStatus.FAILED,
            Path('c'),
            reason='HTTP 500',
            kind=FailureKind.HTTP_STATUS,
        )
    )
    return report


def test_views():
    report = _report()
    assert len(report) == 3
    assert [r.tile for r in report.fetched] == [TileIndex(14, 1, 1)]
    assert [r.tile for r in report.already_cached] == [TileIndex(14, 1, 2)]
    assert [r.tile for r in report.failed] == [TileIndex(15, 2, 2)]
    assert len(report.succeeded) == 2
    assert not report.is_complete
    assert report.bytes_fetched == 100


def test_counts():
    report = _report()
    assert report.counts() == {
        TileStatus.ALREADY_CACHED: 1,
        TileStatus.FETCHED: 1,
        TileStatus.FAILED: 1,
    }
    by_zoom = report.counts_by_zoom()
    assert list(by_zoom) == [14, 15]
    assert by_zoom[14][TileStatus.FETCHED] == 1
    assert by_zoom[15][TileStatus.FAILED] == 1


def test_summary():
    assert _report().summary() == (
        '3 tiles: 1 fetched, 1 already cached, 1 failed in 2.0s'
    )


def test_empty_report_is_complete():
    report = FetchReport()
    assert report.is_complete
    assert report.summary().startswith('0 tiles')
