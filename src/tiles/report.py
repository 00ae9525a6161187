"""Per-tile outcomes of a prefetch batch.

Failures are data here, not exceptions: a batch with gaps is an acceptable
result and the caller decides how to present it.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from domain.errors import FailureKind
    from geo.mercator import TileIndex


class TileStatus(str, Enum):
    ALREADY_CACHED = 'already_cached'
    FETCHED = 'fetched'
    FAILED = 'failed'


@dataclass(frozen=True)
class TileResult:
    """Outcome for one tile."""

    tile: TileIndex
    status: TileStatus
    path: Path
    size_bytes: int = 0
    reason: str | None = None
    kind: FailureKind | None = None

    @property
    def ok(self) -> bool:
        return self.status is not TileStatus.FAILED


@dataclass
class FetchReport:
    """Aggregated results of TileFetcher.ensure_cached."""

    results: dict[TileIndex, TileResult] = field(default_factory=dict)
    elapsed_s: float = 0.0

    def add(self, result: TileResult) -> None:
        self.results[result.tile] = result

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, tile: TileIndex) -> TileResult:
        return self.results[tile]

    def __contains__(self, tile: object) -> bool:
        return tile in self.results

    def status_of(self, tile: TileIndex) -> TileStatus:
        return self.results[tile].status

    def _with_status(self, status: TileStatus) -> list[TileResult]:
        return [r for r in self.results.values() if r.status is status]

    @property
    def already_cached(self) -> list[TileResult]:
        return self._with_status(TileStatus.ALREADY_CACHED)

    @property
    def fetched(self) -> list[TileResult]:
        return self._with_status(TileStatus.FETCHED)

    @property
    def failed(self) -> list[TileResult]:
        return self._with_status(TileStatus.FAILED)

    @property
    def succeeded(self) -> list[TileResult]:
        return [r for r in self.results.values() if r.ok]

    @property
    def is_complete(self) -> bool:
        """True when every requested tile is now available offline."""
        return not self.failed

    @property
    def bytes_fetched(self) -> int:
        return sum(r.size_bytes for r in self.fetched)

    def counts(self) -> dict[TileStatus, int]:
        c = Counter(r.status for r in self.results.values())
        return {s: c.get(s, 0) for s in TileStatus}

    def counts_by_zoom(self) -> dict[int, dict[TileStatus, int]]:
        out: dict[int, dict[TileStatus, int]] = {}
        for r in self.results.values():
            per = out.setdefault(r.tile.zoom, dict.fromkeys(TileStatus, 0))
            per[r.status] += 1
        return dict(sorted(out.items()))

    def summary(self) -> str:
        c = self.counts()
        return (
            f'{len(self)} tiles: {c[TileStatus.FETCHED]} fetched, '
            f'{c[TileStatus.ALREADY_CACHED]} already cached, '
            f'{c[TileStatus.FAILED]} failed in {self.elapsed_s:.1f}s'
        )
