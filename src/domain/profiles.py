import logging
from pathlib import Path

import tomlkit

from domain.models import PrefetchSettings

logger = logging.getLogger(__name__)


def load_profile(path: str | Path) -> PrefetchSettings:
    """
    Загрузка и валидация профиля TOML -> PrefetchSettings.

    Настройки загрузчика читаются из таблицы [fetcher].
    """
    p = Path(path)
    if not p.exists():
        msg = f'Профиль не найден: {p}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(p.read_text(encoding='utf-8'))
    settings = PrefetchSettings.model_validate(data.unwrap())
    logger.info(
        'Profile %s loaded: center=(%s, %s) zooms=%s radius=%s',
        p,
        settings.latitude,
        settings.longitude,
        settings.zoom_levels,
        settings.radius,
    )
    return settings


def save_profile(path: str | Path, settings: PrefetchSettings) -> Path:
    """Сохранение профиля в TOML (без атомарности и бэкапов)."""
    p = Path(path)
    data = settings.model_dump(mode='json')
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(tomlkit.dumps(data), encoding='utf-8')
    return p
