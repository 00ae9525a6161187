from enum import Enum

# Шаблон URL тайл-сервера по умолчанию (OpenStreetMap standard layer)
TILE_URL_TEMPLATE = 'https://tile.openstreetmap.org/{z}/{x}/{y}.png'

# Плейсхолдеры, обязательные в шаблоне URL
TILE_URL_PLACEHOLDERS = ('{z}', '{x}', '{y}')

# Уровни масштаба и радиус по умолчанию (14–15, по 2 тайла в каждую сторону)
DEFAULT_ZOOM_LEVELS = (14, 15)
DEFAULT_RADIUS = 2

# Допустимый диапазон уровней масштаба Web Mercator
MIN_ZOOM = 0
MAX_ZOOM = 22

# Широта, за которой Web Mercator обрезается (atan(sinh(pi)) в градусах)
MERCATOR_MAX_LAT_DEG = 85.0511287798

# Полюс: проекция не определена
WORLD_LAT_MAX_DEG = 90.0
WORLD_LNG_SPAN_DEG = 360.0
WORLD_LNG_HALF_SPAN_DEG = 180.0

# Раскладка на диске: <dest_root>/tiles/<z>/<x>/<y>.png
TILES_SUBDIR = 'tiles'
TILE_FILE_EXT = '.png'

# Суффикс временного файла при атомарной записи тайла
PARTIAL_FILE_SUFFIX = '.part'

# Каталог назначения по умолчанию (относительно текущего каталога)
DEFAULT_DEST_ROOT = '.offline_map'

# Максимальное число параллельных HTTP-запросов
DOWNLOAD_CONCURRENCY = 8

# Сетевые таймауты и ретраи
HTTP_TIMEOUT_DEFAULT = 20.0
HTTP_RETRIES_DEFAULT = 3
HTTP_BACKOFF_FACTOR = 1.6

HTTP_OK = 200
HTTP_TOO_MANY_REQUESTS = 429
HTTP_5XX_MIN = 500
HTTP_5XX_MAX = 600

# tile.openstreetmap.org требует идентифицирующий User-Agent
DEFAULT_USER_AGENT = 'tile-prefetch/0.1 (+offline map cache)'

# Формат логов приложения
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class EdgePolicy(str, Enum):
    """Что делать с индексами тайлов за пределами [0, 2**z)."""

    CLIP = 'clip'
    WRAP = 'wrap'
    NONE = 'none'


def default_edge_policy() -> EdgePolicy:
    return EdgePolicy.CLIP
