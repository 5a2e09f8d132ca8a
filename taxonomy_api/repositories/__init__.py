"""
Repository implementations
"""

from .base import BaseRepository
from .category import CategoryRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
]
