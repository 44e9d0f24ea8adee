import os
import threading
import time
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from brevly_app.database.connection import Base


_id_lock = threading.Lock()
_last_id_value = 0


def new_link_id() -> str:
    """
    Generate a time-ordered UUID (version 7) as a 36 character string.
    
    The first 48 bits are the Unix timestamp in milliseconds, so sorting ids
    as strings sorts links by creation time. That is what makes the id
    usable as a pagination key. Ids made in the same millisecond by this
    process are still strictly increasing.
    """
    global _last_id_value
    timestamp_ms = time.time_ns() // 1_000_000
    value = (timestamp_ms & ((1 << 48) - 1)) << 80
    value |= int.from_bytes(os.urandom(10), "big") & ((1 << 80) - 1)
    value &= ~(0xF << 76)
    value |= 0x7 << 76  # version
    value &= ~(0x3 << 62)
    value |= 0x2 << 62  # RFC 4122 variant
    with _id_lock:
        if value <= _last_id_value:
            value = _last_id_value + 1
        _last_id_value = value
    return str(uuid.UUID(int=value))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    """
    Shortened link.
    
    - id: UUIDv7 string, assigned once, also the sort/pagination key
    - shortened_url: unique short key used in redirects (unique=True creates the index)
    - access_count: only ever incremented
    """
    __tablename__ = "urls"

    id = Column(String(36), primary_key=True, default=new_link_id)
    original_url = Column(Text, nullable=False)
    shortened_url = Column(String(10), unique=True, nullable=False, index=True)
    access_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
