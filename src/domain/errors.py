"""Exception hierarchy for tile prefetching."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Why a single tile could not be cached."""

    HTTP_STATUS = 'http_status'
    NETWORK = 'network'
    TIMEOUT = 'timeout'
    STORAGE = 'storage'
    INVALID_PAYLOAD = 'invalid_payload'
    CANCELLED = 'cancelled'


class PrefetchError(Exception):
    """Base class for prefetch errors."""


class InvalidInputError(PrefetchError, ValueError):
    """Precondition violation: bad coordinates, zoom or radius."""


class TileFetchError(PrefetchError, RuntimeError):
    """A single tile failed to download or persist."""

    def __init__(self, message: str, kind: FailureKind) -> None:
        super().__init__(message)
        self.kind = kind
