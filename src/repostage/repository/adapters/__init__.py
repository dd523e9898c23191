"""Decorator adapters that compose over any repository."""

from repostage.repository.adapters._cached import Cached
from repostage.repository.adapters._staged import Staged
from repostage.repository.adapters._subdirectory import Subdirectory

__all__ = [
    "Cached",
    "Staged",
    "Subdirectory",
]
