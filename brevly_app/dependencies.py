"""
FastAPI dependencies for dependency injection.

Routes depend on the LinkService only; the service gets its repository and
object storage from here, so tests can swap any of them with
app.dependency_overrides.
"""

from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from brevly_app.config import settings
from brevly_app.database.connection import get_db
from brevly_app.repositories.factory import LinkRepositoryFactory, RepositoryBackend
from brevly_app.repositories.strategies import LinkRepository
from brevly_app.services.link_service import LinkService
from brevly_app.storage.factory import ObjectStorageFactory, StorageBackend, StorageNotConfiguredError
from brevly_app.storage.strategies import ObjectStorageStrategy

logger = logging.getLogger("brevly.storage")


@lru_cache()
def get_object_storage() -> Optional[ObjectStorageStrategy]:
    """
    Get object storage instance (singleton).
    
    Returns:
        ObjectStorageStrategy instance based on settings, or None when the
        selected backend isn't configured. Only exports need storage, so the
        other routes keep working and exports report EXPORT_FAILED.
    """
    backend = StorageBackend(settings.storage_backend)
    try:
        return ObjectStorageFactory.create(backend)
    except StorageNotConfiguredError as e:
        logger.error(f"Object storage unavailable: {e}")
        return None


def get_link_repository(db: Session = Depends(get_db)) -> LinkRepository:
    """Repository for the configured backend, bound to this request's session"""
    backend = RepositoryBackend(settings.repository_backend)
    return LinkRepositoryFactory.create(backend, db=db)


def get_link_service(
    repository: LinkRepository = Depends(get_link_repository),
    storage: Optional[ObjectStorageStrategy] = Depends(get_object_storage)
) -> LinkService:
    """Get LinkService with all dependencies injected."""
    return LinkService(repository=repository, storage=storage)
