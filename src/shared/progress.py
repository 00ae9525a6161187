import sys
import time
from collections.abc import Callable
from typing import TextIO


class SingleLineRenderer:
    """Перерисовывает одну строку терминала (\\r без перевода строки)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stderr
        self._last_len = 0

    def write_line(self, msg: str) -> None:
        pad = max(0, self._last_len - len(msg))
        self._stream.write('\r' + msg + ' ' * pad)
        self._stream.flush()
        self._last_len = len(msg)

    def finish(self) -> None:
        if self._last_len:
            self._stream.write('\n')
            self._stream.flush()
        self._last_len = 0


def format_duration(seconds: float) -> str:
    s = max(0, int(round(seconds)))
    if s < 60:
        return f'{s}s'
    m, s = divmod(s, 60)
    if m < 60:
        return f'{m}m{s:02d}s'
    h, m = divmod(m, 60)
    return f'{h}h{m:02d}m'


class ConsoleProgress:
    """Строка прогресса загрузки тайлов.

    Экземпляр сам является колбэком ``on_progress(done, total)`` для
    TileFetcher: состояние целиком берётся из аргументов, без накопления.
    """

    BAR_WIDTH = 24

    def __init__(
        self,
        label: str = 'Tiles',
        writer: SingleLineRenderer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.label = label
        self.done = 0
        self.total = 0
        self._clock = clock
        self._started = clock()
        self._writer = writer or SingleLineRenderer()

    async def __call__(self, done: int, total: int) -> None:
        self.update(done, total)

    def update(self, done: int, total: int) -> None:
        self.total = max(0, total)
        self.done = min(max(0, done), self.total)
        self._writer.write_line(self.format_line())

    def format_line(self) -> str:
        share = self.done / self.total if self.total else 1.0
        filled = round(self.BAR_WIDTH * share)
        bar = '#' * filled + '.' * (self.BAR_WIDTH - filled)
        line = f'{self.label} [{bar}] {self.done}/{self.total} {share:4.0%}'
        if 0 < self.done < self.total:
            elapsed = self._clock() - self._started
            left = elapsed / self.done * (self.total - self.done)
            line += f' ~{format_duration(left)} left'
        return line

    def close(self) -> None:
        self._writer.finish()
