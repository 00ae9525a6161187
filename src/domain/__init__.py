"""Domain layer - settings models, profiles and errors."""
from domain.errors import (
    FailureKind,
    InvalidInputError,
    PrefetchError,
    TileFetchError,
)
from domain.models import FetcherConfig, PrefetchSettings
from domain.profiles import load_profile, save_profile

__all__ = [
    'FailureKind',
    'FetcherConfig',
    'InvalidInputError',
    'PrefetchError',
    'PrefetchSettings',
    'TileFetchError',
    'load_profile',
    'save_profile',
]
