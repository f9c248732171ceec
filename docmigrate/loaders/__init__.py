"""Destination writers."""

from .base import BaseLoader
from .api_loader import DocumentAPILoader

__all__ = [
    "BaseLoader",
    "DocumentAPILoader",
]
