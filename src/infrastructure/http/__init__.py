"""HTTP client infrastructure."""
from infrastructure.http.client import make_http_session, make_ssl_context

__all__ = [
    'make_http_session',
    'make_ssl_context',
]
