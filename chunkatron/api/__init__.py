"""High-level API."""

from .chunkatron import Chunkatron

__all__ = ["Chunkatron"]
