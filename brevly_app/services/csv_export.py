"""
Streaming CSV export.

Rows go from the repository through the CSV encoder into a bounded
asyncio.Queue, and the uploader drains the queue. When the upload is slow the
queue fills up and the producer waits on put(), so rows are only read from
the database as fast as they can be uploaded.

Both sides run in one TaskGroup: the export is done only when the producer
has sent every row and the upload has completed. If either side fails the
other one is cancelled and the row stream is closed.
"""

from contextlib import aclosing
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Iterable, TypeVar
import asyncio
import csv
import io

from brevly_app.repositories.strategies import LinkRow

T = TypeVar("T")

CSV_HEADER = ("Original URL", "Shortened URL", "Access Count", "Created At")
CSV_CONTENT_TYPE = "text/csv"

_END = object()  # end-of-stream marker on the queue


def _format_row(row: LinkRow) -> Iterable:
    original_url, shortened_url, access_count, created_at = row
    if isinstance(created_at, datetime):
        if created_at.tzinfo is None:
            # Naive values from the database are UTC
            created_at = created_at.replace(tzinfo=timezone.utc)
        created_at = created_at.isoformat()
    return (original_url, shortened_url, access_count, created_at)


def _take(buffer: io.StringIO) -> bytes:
    data = buffer.getvalue().encode("utf-8")
    buffer.seek(0)
    buffer.truncate(0)
    return data


async def encode_csv(rows: AsyncIterator[LinkRow]) -> AsyncIterator[bytes]:
    """Yield the header line, then one encoded CSV line per row"""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    
    writer.writerow(CSV_HEADER)
    yield _take(buffer)
    
    async for row in rows:
        writer.writerow(_format_row(row))
        yield _take(buffer)


async def run_export_pipeline(
    rows: AsyncIterator[LinkRow],
    upload: Callable[[AsyncIterator[bytes]], Awaitable[T]],
    buffer_size: int = 64,
    timeout: float = 300.0
) -> T:
    """
    Pipe rows as CSV into upload and wait for both ends.
    
    Args:
        rows: Row stream from LinkRepository.stream_all_links()
        upload: Coroutine function consuming the CSV chunks
        buffer_size: Max chunks waiting in the queue
        timeout: Deadline in seconds for the whole pipeline
        
    Returns:
        Whatever upload returns
        
    Raises:
        ExceptionGroup: with the failure(s) of the producer or the upload
        TimeoutError: if the deadline passes first
    """
    channel: asyncio.Queue = asyncio.Queue(maxsize=buffer_size)
    
    async def produce():
        async with aclosing(rows), aclosing(encode_csv(rows)) as encoded:
            async for chunk in encoded:
                await channel.put(chunk)
        await channel.put(_END)
    
    async def drain() -> AsyncIterator[bytes]:
        while True:
            chunk = await channel.get()
            if chunk is _END:
                return
            yield chunk
    
    async with asyncio.timeout(timeout):
        async with asyncio.TaskGroup() as group:
            group.create_task(produce())
            upload_task = group.create_task(upload(drain()))
    
    return upload_task.result()
