"""Services package - prefetch orchestration."""

from services.prefetch_service import plan_prefetch, prefetch_area, run_prefetch

__all__ = [
    'plan_prefetch',
    'prefetch_area',
    'run_prefetch',
]
