"""Configuration and listener models."""

from .listeners import Handler, ListenerSet
from .settings import ChunkatronSettings

__all__ = [
    "ChunkatronSettings",
    "ListenerSet",
    "Handler",
]
