"""Query path: in-process service and HTTP clients."""

from .client import AsyncHttpQueryClient, HttpQueryClient
from .service import QueryService

__all__ = [
    "AsyncHttpQueryClient",
    "HttpQueryClient",
    "QueryService",
]
