"""REST runtime abstractions."""

from .http_client import HTTPClient, ResponseHook
from .transport import HTTPChunkFetcher, HTTPChunkListSource

__all__ = [
    "HTTPClient",
    "ResponseHook",
    "HTTPChunkFetcher",
    "HTTPChunkListSource",
]
