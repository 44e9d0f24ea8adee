"""
Link repositories.

Strategy Pattern for swappable link storage (database or in-memory).
"""

from .errors import RepositoryError, DuplicateShortenedUrlError, LinkNotFoundError
from .strategies import LinkRepository, LinkRow, SQLAlchemyLinkRepository, InMemoryLinkRepository
from .factory import LinkRepositoryFactory, RepositoryBackend

__all__ = [
    "RepositoryError",
    "DuplicateShortenedUrlError",
    "LinkNotFoundError",
    "LinkRepository",
    "LinkRow",
    "SQLAlchemyLinkRepository",
    "InMemoryLinkRepository",
    "LinkRepositoryFactory",
    "RepositoryBackend",
]
