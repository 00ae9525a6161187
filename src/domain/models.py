from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from shared.constants import (
    DEFAULT_DEST_ROOT,
    DEFAULT_RADIUS,
    DEFAULT_USER_AGENT,
    DEFAULT_ZOOM_LEVELS,
    DOWNLOAD_CONCURRENCY,
    HTTP_BACKOFF_FACTOR,
    HTTP_RETRIES_DEFAULT,
    HTTP_TIMEOUT_DEFAULT,
    MAX_ZOOM,
    MIN_ZOOM,
    TILE_URL_PLACEHOLDERS,
    TILE_URL_TEMPLATE,
    EdgePolicy,
    default_edge_policy,
)


class FetcherConfig(BaseModel):
    """Настройки загрузчика тайлов: источник, каталог назначения, сеть."""

    model_config = {'extra': 'ignore'}

    # Шаблон URL с плейсхолдерами {z}, {x}, {y}
    remote_template: str = TILE_URL_TEMPLATE
    # Корень офлайн-хранилища (тайлы лягут в <dest_root>/tiles)
    dest_root: Path = Path(DEFAULT_DEST_ROOT)
    # Число одновременных загрузок
    concurrency: int = Field(default=DOWNLOAD_CONCURRENCY, ge=1)
    # Таймаут одного HTTP-запроса, секунды
    timeout_s: float = Field(default=HTTP_TIMEOUT_DEFAULT, gt=0)
    # Число попыток на тайл (429/5xx/сетевые ошибки)
    retries: int = Field(default=HTTP_RETRIES_DEFAULT, ge=1)
    backoff_factor: float = Field(default=HTTP_BACKOFF_FACTOR, ge=0)
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator('remote_template')
    @classmethod
    def _check_template(cls, v: str) -> str:
        missing = [p for p in TILE_URL_PLACEHOLDERS if p not in v]
        if missing:
            msg = f'URL template is missing placeholders: {", ".join(missing)}'
            raise ValueError(msg)
        if not v.startswith(('http://', 'https://')):
            msg = 'URL template must be an http(s) URL'
            raise ValueError(msg)
        return v

    def tile_url(self, z: int, x: int, y: int) -> str:
        return (
            self.remote_template.replace('{z}', str(z))
            .replace('{x}', str(x))
            .replace('{y}', str(y))
        )


class PrefetchSettings(BaseModel):
    """Параметры одной операции «скачать район»."""

    model_config = {'extra': 'ignore'}

    latitude: float
    longitude: float
    zoom_levels: list[int] = Field(default_factory=lambda: list(DEFAULT_ZOOM_LEVELS))
    radius: int = Field(default=DEFAULT_RADIUS, ge=0)
    edge_policy: EdgePolicy = Field(default_factory=default_edge_policy)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)

    @field_validator('zoom_levels')
    @classmethod
    def _check_zoom_levels(cls, v: list[int]) -> list[int]:
        if not v:
            msg = 'At least one zoom level is required'
            raise ValueError(msg)
        bad = [z for z in v if not MIN_ZOOM <= z <= MAX_ZOOM]
        if bad:
            msg = f'Zoom levels out of range [{MIN_ZOOM}, {MAX_ZOOM}]: {bad}'
            raise ValueError(msg)
        return list(dict.fromkeys(v))
