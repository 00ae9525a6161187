"""Shared utilities and helpers."""
from shared.progress import ConsoleProgress, SingleLineRenderer

__all__ = [
    'ConsoleProgress',
    'SingleLineRenderer',
]
