"""Pytest configuration and fixtures for tile prefetcher tests."""

import sys
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

TEST_TEMPLATE = 'https://tiles.test/{z}/{x}/{y}.png'


def create_test_png(color: str = 'red') -> bytes:
    """Create a minimal valid PNG for testing."""
    from PIL import Image

    img = Image.new('RGB', (8, 8), color=color)
    buffer = BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()


def make_response(status: int = 200, body: bytes = b'') -> MagicMock:
    resp = MagicMock()
    resp.status = status
    resp.read = AsyncMock(return_value=body)
    resp.release = MagicMock()
    return resp


class FakeTileServer:
    """Stands in for aiohttp.ClientSession; serves a PNG for every URL.

    ``responses`` overrides a URL with a status code, an exception instance,
    or a list of those consumed one per call.
    """

    def __init__(self, body: bytes | None = None) -> None:
        self.body = body if body is not None else create_test_png()
        self.responses: dict[str, object] = {}
        self.calls: list[str] = []
        self.session = MagicMock()
        self.session.get = AsyncMock(side_effect=self._get)
        self.session.close = AsyncMock()

    async def _get(self, url, **kwargs):
        self.calls.append(url)
        spec = self.responses.get(url, 200)
        if isinstance(spec, list):
            spec = spec.pop(0) if len(spec) > 1 else spec[0]
        if isinstance(spec, BaseException):
            raise spec
        if isinstance(spec, bytes):
            return make_response(200, spec)
        return make_response(spec, self.body if spec == 200 else b'error')

    def url(self, z: int, x: int, y: int) -> str:
        return TEST_TEMPLATE.format(z=z, x=x, y=y)


@pytest.fixture
def png_bytes():
    return create_test_png()


@pytest.fixture
def tile_server():
    return FakeTileServer()


@pytest.fixture
def fetcher_config(tmp_path):
    from domain.models import FetcherConfig

    return FetcherConfig(
        dest_root=tmp_path / 'offline',
        remote_template=TEST_TEMPLATE,
        concurrency=4,
        timeout_s=5.0,
        retries=3,
        backoff_factor=0.0,
    )
