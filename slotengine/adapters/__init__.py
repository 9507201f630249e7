"""
Adapters layer - Storage integrations (snapshot files, REST database API).
"""

from .memory_repository import InMemoryRepository
from .rest_repository import RestRepository

__all__ = ["InMemoryRepository", "RestRepository"]
