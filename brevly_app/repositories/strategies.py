"""
Link repository strategies using Strategy Pattern.

Two interchangeable backends behind one contract:
- SQLAlchemy: durable storage (SQLite in development, PostgreSQL in production)
- In-memory: tests and demos, no database needed

The service layer only sees LinkRepository, the concrete class is injected.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List, Optional, Tuple
from datetime import datetime, timezone
import asyncio
import logging

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from brevly_app.models.link import Link, new_link_id
from brevly_app.schemas.link import LinkPage, LinkRead
from .errors import DuplicateShortenedUrlError, LinkNotFoundError, RepositoryError

logger = logging.getLogger("brevly.repository")

# (original_url, shortened_url, access_count, created_at)
LinkRow = Tuple[str, str, int, datetime]


class LinkRepository(ABC):
    """
    Abstract base class for link storage.
    
    Lookups return None on a miss; the caller decides whether that is an
    error. Writes that target a missing id raise LinkNotFoundError, and any
    write that would break shortened_url uniqueness raises
    DuplicateShortenedUrlError.
    
    All methods are async so backends doing network I/O fit the same interface.
    """
    
    @abstractmethod
    async def find_by_shortened_url(self, shortened_url: str) -> Optional[LinkRead]:
        """Exact-match lookup by short key"""
        pass
    
    @abstractmethod
    async def find_by_id(self, link_id: str) -> Optional[LinkRead]:
        """Exact-match lookup by id"""
        pass
    
    @abstractmethod
    async def create(self, original_url: str, shortened_url: str) -> LinkRead:
        """
        Insert a new link with a fresh id, created_at=now and access_count=0.
        
        Raises:
            DuplicateShortenedUrlError: if the key is already taken
        """
        pass
    
    @abstractmethod
    async def update(
        self,
        link_id: str,
        original_url: Optional[str] = None,
        shortened_url: Optional[str] = None
    ) -> LinkRead:
        """
        Apply only the fields that are given.
        
        Raises:
            LinkNotFoundError: if no link has this id
            DuplicateShortenedUrlError: if the new key is already taken
        """
        pass
    
    @abstractmethod
    async def delete(self, link_id: str) -> None:
        """
        Remove a link.
        
        Raises:
            LinkNotFoundError: if no link has this id
        """
        pass
    
    @abstractmethod
    async def increment_access_count(self, shortened_url: str) -> None:
        """Add one to the access counter. No-op when the key doesn't exist."""
        pass
    
    @abstractmethod
    async def get_access_count(self, shortened_url: str) -> int:
        """Current access count, 0 when the key doesn't exist"""
        pass
    
    @abstractmethod
    async def get_all_links(self, limit: int = 20, cursor: Optional[str] = None) -> LinkPage:
        """
        One page of links in ascending id order.
        
        Args:
            limit: Page size
            cursor: Id of the last link of the previous page (exclusive)
            
        Returns:
            LinkPage whose next_cursor is set only when more links follow
        """
        pass
    
    @abstractmethod
    def stream_all_links(self) -> AsyncIterator[LinkRow]:
        """
        Lazily yield every link as a LinkRow, ascending by id.
        
        Single pass: each call starts a new scan. Rows are produced as the
        consumer asks for them, so the collection is never loaded at once.
        """
        pass


def _page(links: List[LinkRead], limit: int) -> LinkPage:
    """Build a page from up to limit + 1 fetched links"""
    if len(links) > limit:
        page = links[:limit]
        return LinkPage(links=page, next_cursor=page[-1].id)
    return LinkPage(links=links, next_cursor=None)


class SQLAlchemyLinkRepository(LinkRepository):
    """
    Durable repository on top of a SQLAlchemy session.
    
    Uniqueness of shortened_url is enforced by the table's unique constraint;
    IntegrityError from the driver is translated to DuplicateShortenedUrlError.
    
    Note: Async for interface consistency, queries run on the sync session.
    """
    
    def __init__(self, db: Session, stream_batch_size: int = 500):
        """
        Args:
            db: Request-scoped database session
            stream_batch_size: Rows fetched per round trip by stream_all_links
        """
        self.db = db
        self.stream_batch_size = stream_batch_size
    
    def _get_row(self, **criteria) -> Optional[Link]:
        return self.db.execute(
            select(Link).filter_by(**criteria).limit(1)
        ).scalar_one_or_none()
    
    async def find_by_shortened_url(self, shortened_url: str) -> Optional[LinkRead]:
        row = self._get_row(shortened_url=shortened_url)
        return LinkRead.model_validate(row) if row else None
    
    async def find_by_id(self, link_id: str) -> Optional[LinkRead]:
        row = self._get_row(id=link_id)
        return LinkRead.model_validate(row) if row else None
    
    async def create(self, original_url: str, shortened_url: str) -> LinkRead:
        row = Link(
            id=new_link_id(),
            original_url=original_url,
            shortened_url=shortened_url,
            access_count=0,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateShortenedUrlError(shortened_url)
        self.db.refresh(row)
        return LinkRead.model_validate(row)
    
    async def update(
        self,
        link_id: str,
        original_url: Optional[str] = None,
        shortened_url: Optional[str] = None
    ) -> LinkRead:
        row = self._get_row(id=link_id)
        if row is None:
            raise LinkNotFoundError(link_id)
        
        if original_url is not None:
            row.original_url = original_url
        if shortened_url is not None:
            row.shortened_url = shortened_url
        
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateShortenedUrlError(shortened_url or row.shortened_url)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(str(e)) from e
        
        self.db.refresh(row)
        return LinkRead.model_validate(row)
    
    async def delete(self, link_id: str) -> None:
        result = self.db.execute(delete(Link).where(Link.id == link_id))
        self.db.commit()
        if result.rowcount == 0:
            raise LinkNotFoundError(link_id)
    
    async def increment_access_count(self, shortened_url: str) -> None:
        # Single UPDATE so concurrent hits can't overwrite each other
        self.db.execute(
            update(Link)
            .where(Link.shortened_url == shortened_url)
            .values(access_count=Link.access_count + 1)
        )
        self.db.commit()
    
    async def get_access_count(self, shortened_url: str) -> int:
        count = self.db.execute(
            select(Link.access_count).where(Link.shortened_url == shortened_url)
        ).scalar_one_or_none()
        return count or 0
    
    async def get_all_links(self, limit: int = 20, cursor: Optional[str] = None) -> LinkPage:
        query = select(Link).order_by(Link.id.asc()).limit(limit + 1)
        if cursor:
            query = query.where(Link.id > cursor)
        
        rows = self.db.execute(query).scalars().all()
        return _page([LinkRead.model_validate(row) for row in rows], limit)
    
    async def stream_all_links(self) -> AsyncIterator[LinkRow]:
        query = (
            select(Link.original_url, Link.shortened_url, Link.access_count, Link.created_at)
            .order_by(Link.id.asc())
            .execution_options(yield_per=self.stream_batch_size)
        )
        result = self.db.execute(query)
        try:
            for batch in result.partitions():
                for row in batch:
                    yield tuple(row)
                # Give the uploader a chance to run between batches
                await asyncio.sleep(0)
        finally:
            result.close()


class InMemoryLinkRepository(LinkRepository):
    """
    In-memory repository using Python dicts.
    
    Pros:
    - No database needed
    - Good for development and testing
    
    Cons:
    - Lost on restart
    - Not shared between processes
    
    Enforces the same unique-key rule as the database so both backends
    behave the same for the service layer.
    """
    
    def __init__(self):
        self._links: Dict[str, LinkRead] = {}  # id -> link
    
    def _by_key(self, shortened_url: str) -> Optional[LinkRead]:
        for link in self._links.values():
            if link.shortened_url == shortened_url:
                return link
        return None
    
    async def find_by_shortened_url(self, shortened_url: str) -> Optional[LinkRead]:
        return self._by_key(shortened_url)
    
    async def find_by_id(self, link_id: str) -> Optional[LinkRead]:
        return self._links.get(link_id)
    
    async def create(self, original_url: str, shortened_url: str) -> LinkRead:
        if self._by_key(shortened_url) is not None:
            raise DuplicateShortenedUrlError(shortened_url)
        
        link = LinkRead(
            id=new_link_id(),
            original_url=original_url,
            shortened_url=shortened_url,
            access_count=0,
            created_at=datetime.now(timezone.utc),
        )
        self._links[link.id] = link
        return link
    
    async def update(
        self,
        link_id: str,
        original_url: Optional[str] = None,
        shortened_url: Optional[str] = None
    ) -> LinkRead:
        link = self._links.get(link_id)
        if link is None:
            raise LinkNotFoundError(link_id)
        
        changes = {}
        if original_url is not None:
            changes["original_url"] = original_url
        if shortened_url is not None and shortened_url != link.shortened_url:
            holder = self._by_key(shortened_url)
            if holder is not None and holder.id != link_id:
                raise DuplicateShortenedUrlError(shortened_url)
            changes["shortened_url"] = shortened_url
        
        updated = link.model_copy(update=changes)
        self._links[link_id] = updated
        return updated
    
    async def delete(self, link_id: str) -> None:
        if self._links.pop(link_id, None) is None:
            raise LinkNotFoundError(link_id)
    
    async def increment_access_count(self, shortened_url: str) -> None:
        link = self._by_key(shortened_url)
        if link is not None:
            self._links[link.id] = link.model_copy(
                update={"access_count": link.access_count + 1}
            )
    
    async def get_access_count(self, shortened_url: str) -> int:
        link = self._by_key(shortened_url)
        return link.access_count if link else 0
    
    async def get_all_links(self, limit: int = 20, cursor: Optional[str] = None) -> LinkPage:
        ordered = sorted(self._links.values(), key=lambda link: link.id)
        if cursor:
            ordered = [link for link in ordered if link.id > cursor]
        return _page(ordered[:limit + 1], limit)
    
    async def stream_all_links(self) -> AsyncIterator[LinkRow]:
        # Snapshot so writes during an export don't break iteration
        snapshot = sorted(self._links.values(), key=lambda link: link.id)
        for link in snapshot:
            yield (link.original_url, link.shortened_url, link.access_count, link.created_at)
            await asyncio.sleep(0)
