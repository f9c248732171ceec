"""Source readers."""

from .base import BaseExtractor
from .api_extractor import TableAPIExtractor

__all__ = [
    "BaseExtractor",
    "TableAPIExtractor",
]
