from typing import Optional
import logging
import time

from brevly_app.config import settings
from brevly_app.repositories.errors import (
    DuplicateShortenedUrlError,
    LinkNotFoundError,
    RepositoryError,
)
from brevly_app.repositories.strategies import LinkRepository
from brevly_app.schemas.link import LinkPage, LinkRead
from brevly_app.services.csv_export import CSV_CONTENT_TYPE, run_export_pipeline
from brevly_app.services.result import LinkErrorType, Result, Success, failure
from brevly_app.storage.strategies import ObjectStorageStrategy

logger = logging.getLogger("brevly.service")


class LinkService:
    """
    Link lifecycle rules on top of an injected repository.
    
    The service adds the checks the repository doesn't do on its own:
    - key uniqueness before create/update
    - existence before delete, lookup and access counting
    
    These checks are a best-effort pre-check. Two requests creating the same
    key at once can both pass them; the storage's unique constraint rejects
    the second insert and that is reported the same way.
    
    Expected failures come back as Failure(...), never as exceptions.
    """
    
    def __init__(
        self,
        repository: LinkRepository,
        storage: Optional[ObjectStorageStrategy] = None
    ):
        """
        Initialize link service with dependencies.
        
        Args:
            repository: Link repository (database or in-memory)
            storage: Object storage for CSV exports (only needed for export)
        """
        self.repository = repository
        self.storage = storage

    async def create_link(self, original_url: str, shortened_url: str) -> Result[LinkRead]:
        """Create a link, failing with DUPLICATE_SHORTENED_URL if the key is taken"""
        existing = await self.repository.find_by_shortened_url(shortened_url)
        if existing:
            return failure(LinkErrorType.DUPLICATE_SHORTENED_URL)
        
        try:
            created = await self.repository.create(original_url, shortened_url)
        except DuplicateShortenedUrlError:
            # Lost the race against a concurrent create
            logger.info(f"Concurrent create for '{shortened_url}' rejected by storage")
            return failure(LinkErrorType.DUPLICATE_SHORTENED_URL)
        
        logger.info(f"Created link {created.id} -> '{shortened_url}'")
        return Success(created)

    async def update_link(
        self,
        current_shortened_url: str,
        original_url: Optional[str] = None,
        shortened_url: Optional[str] = None
    ) -> Result[LinkRead]:
        """
        Change the original URL and/or the key of the link at current_shortened_url.
        
        Renaming to a key held by another link fails with
        DUPLICATE_SHORTENED_URL and leaves both links untouched. Any other
        storage error is reported as INVALID_DATA with its message.
        """
        existing = await self.repository.find_by_shortened_url(current_shortened_url)
        if not existing:
            return failure(LinkErrorType.NOT_FOUND)
        
        if shortened_url and shortened_url != current_shortened_url:
            conflicting = await self.repository.find_by_shortened_url(shortened_url)
            # Only a conflict if it's a different link
            if conflicting and conflicting.id != existing.id:
                return failure(LinkErrorType.DUPLICATE_SHORTENED_URL)
        
        try:
            updated = await self.repository.update(
                existing.id,
                original_url=original_url,
                shortened_url=shortened_url,
            )
        except DuplicateShortenedUrlError:
            return failure(LinkErrorType.DUPLICATE_SHORTENED_URL)
        except LinkNotFoundError:
            return failure(LinkErrorType.NOT_FOUND)
        except RepositoryError as e:
            logger.warning(f"Update of link {existing.id} rejected: {e}")
            return failure(LinkErrorType.INVALID_DATA, str(e))
        
        return Success(updated)

    async def delete_link(self, shortened_url: str) -> Result[None]:
        existing = await self.repository.find_by_shortened_url(shortened_url)
        if not existing:
            return failure(LinkErrorType.NOT_FOUND)
        
        try:
            await self.repository.delete(existing.id)
        except LinkNotFoundError:
            # Deleted by someone else in between
            return failure(LinkErrorType.NOT_FOUND)
        
        logger.info(f"Deleted link {existing.id} ('{shortened_url}')")
        return Success(None)

    async def get_original_url(self, shortened_url: str) -> Result[str]:
        link = await self.repository.find_by_shortened_url(shortened_url)
        if not link:
            return failure(LinkErrorType.NOT_FOUND)
        return Success(link.original_url)

    async def increment_access_count(self, shortened_url: str) -> Result[str]:
        """
        Count one access and return the original URL.
        
        Redirect callers use the returned URL as the redirect target, so one
        call both records the visit and resolves the destination.
        """
        link = await self.repository.find_by_shortened_url(shortened_url)
        if not link:
            return failure(LinkErrorType.NOT_FOUND)
        
        await self.repository.increment_access_count(shortened_url)
        return Success(link.original_url)

    async def list_links(self, limit: int = 20, cursor: Optional[str] = None) -> LinkPage:
        """Paginated listing for infinite scroll (pass-through to the repository)"""
        return await self.repository.get_all_links(limit, cursor)

    async def export_links_to_csv_file(self) -> Result[str]:
        """
        Export every link as CSV to object storage and return its public URL.
        
        Rows are streamed from the repository straight into the upload, so
        the collection is never held in memory. Succeeds only after the whole
        file is uploaded; any failure on the way gives EXPORT_FAILED.
        """
        if self.storage is None:
            logger.error("Export requested but no object storage is configured")
            return failure(LinkErrorType.EXPORT_FAILED)
        
        file_name = f"links-{int(time.time() * 1000)}.csv"
        
        async def upload(chunks):
            return await self.storage.upload_stream(
                folder=settings.export_folder,
                file_name=file_name,
                chunks=chunks,
                content_type=CSV_CONTENT_TYPE,
            )
        
        try:
            stored = await run_export_pipeline(
                self.repository.stream_all_links(),
                upload,
                buffer_size=settings.export_buffer_size,
                timeout=settings.export_timeout_seconds,
            )
        except Exception:
            logger.exception("Failed to export links")
            return failure(LinkErrorType.EXPORT_FAILED)
        
        logger.info(f"Exported links to {stored.key}")
        return Success(stored.url)
