"""
Factory for creating link repositories.

The SQLAlchemy backend is bound to a request's session, so a new one is built
per request. The in-memory backend holds the data itself and is a singleton.
"""

from enum import Enum
from typing import Optional
import logging

from sqlalchemy.orm import Session

from .strategies import LinkRepository, SQLAlchemyLinkRepository, InMemoryLinkRepository
from brevly_app.config import settings

logger = logging.getLogger("brevly.repository")


class RepositoryBackend(Enum):
    """Available link repository backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class LinkRepositoryFactory:
    """Simple factory for link repositories."""
    
    _memory_instance: InMemoryLinkRepository = None  # Shared in-memory store
    
    @classmethod
    def create(
        cls,
        backend: RepositoryBackend,
        db: Optional[Session] = None
    ) -> LinkRepository:
        """
        Create a repository for the given backend.
        
        Args:
            backend: Type of repository backend (from enum)
            db: Database session, required for the SQLAlchemy backend
            
        Returns:
            LinkRepository instance
        """
        if backend == RepositoryBackend.SQLALCHEMY:
            if db is None:
                raise ValueError("SQLAlchemy repository needs a database session")
            return SQLAlchemyLinkRepository(db, stream_batch_size=settings.stream_batch_size)
        
        elif backend == RepositoryBackend.MEMORY:
            if cls._memory_instance is None:
                cls._memory_instance = InMemoryLinkRepository()
                logger.info("In-memory link repository initialized")
            return cls._memory_instance
        
        else:
            raise ValueError(f"Unknown repository backend: {backend}")
    
    @classmethod
    def clear_instance(cls):
        """Clear cached in-memory instance (for testing)"""
        cls._memory_instance = None
