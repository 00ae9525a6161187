from __future__ import annotations

import ssl
from typing import TYPE_CHECKING

import aiohttp
import certifi

if TYPE_CHECKING:
    from domain.models import FetcherConfig


def make_ssl_context() -> ssl.SSLContext:
    # Сертификаты из certifi, чтобы не зависеть от системного хранилища
    return ssl.create_default_context(cafile=certifi.where())


def make_http_session(config: FetcherConfig) -> aiohttp.ClientSession:
    """Создаёт HTTP-сессию для загрузки тайлов.

    Число соединений на хост ограничено concurrency загрузчика; таймаут
    задаётся на каждый запрос отдельно в TileFetcher.
    """
    connector = aiohttp.TCPConnector(
        ssl=make_ssl_context(),
        limit_per_host=config.concurrency,
    )
    headers = {'User-Agent': config.user_agent} if config.user_agent else None
    return aiohttp.ClientSession(connector=connector, headers=headers)
