"""
Object storage strategies using Strategy Pattern.

The CSV export writes to whatever ObjectStorageStrategy is injected:
- R2: Cloudflare R2 through the S3 API (production)
- In-memory: tests and local development
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List
import asyncio
import logging
import uuid

logger = logging.getLogger("brevly.storage")


@dataclass(frozen=True)
class StoredObject:
    """Location of an uploaded object"""
    key: str
    url: str


def build_object_key(folder: str, file_name: str) -> str:
    """Random prefix keeps concurrent exports from overwriting each other"""
    return f"{folder.strip('/')}/{uuid.uuid4().hex}-{file_name}"


class ObjectStorageStrategy(ABC):
    """
    Abstract base class for upload sinks.
    
    upload_stream pulls chunks from an async iterator: the upload pace
    decides how fast the producer is drained, which gives backpressure
    when the producer writes through a bounded queue.
    """
    
    @abstractmethod
    async def upload_stream(
        self,
        folder: str,
        file_name: str,
        chunks: AsyncIterator[bytes],
        content_type: str
    ) -> StoredObject:
        """
        Upload everything the iterator yields as one object.
        
        Args:
            folder: Logical folder (key prefix)
            file_name: Base file name, made unique by the storage
            chunks: Body, consumed once
            content_type: MIME type stored with the object
            
        Returns:
            StoredObject with key and public URL
            
        Raises:
            Any transport error. Partial uploads are discarded first.
        """
        pass


class R2ObjectStorage(ObjectStorageStrategy):
    """
    Cloudflare R2 storage over the S3 multipart upload API.
    
    Chunks are buffered until part_size bytes (S3 requires at least 5 MiB
    per part except the last), then sent as one part. Memory use is bounded
    by one part regardless of export size.
    
    boto3 is blocking, so every call runs in a worker thread.
    """
    
    def __init__(self, s3_client, bucket: str, public_url: str, part_size: int = 5 * 1024 * 1024):
        """
        Args:
            s3_client: boto3 S3 client configured for the R2 endpoint
            bucket: Bucket name
            public_url: Public base URL the bucket is served from
            part_size: Bytes per multipart part
        """
        self.s3 = s3_client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.part_size = part_size
    
    async def upload_stream(
        self,
        folder: str,
        file_name: str,
        chunks: AsyncIterator[bytes],
        content_type: str
    ) -> StoredObject:
        key = build_object_key(folder, file_name)
        upload = await asyncio.to_thread(
            self.s3.create_multipart_upload,
            Bucket=self.bucket,
            Key=key,
            ContentType=content_type,
        )
        upload_id = upload["UploadId"]
        parts: List[Dict] = []
        buffer = bytearray()
        
        try:
            async for chunk in chunks:
                buffer.extend(chunk)
                if len(buffer) >= self.part_size:
                    parts.append(await self._upload_part(key, upload_id, len(parts) + 1, bytes(buffer)))
                    buffer.clear()
            
            # Last (or only) part may be smaller than part_size
            if buffer or not parts:
                parts.append(await self._upload_part(key, upload_id, len(parts) + 1, bytes(buffer)))
            
            await asyncio.to_thread(
                self.s3.complete_multipart_upload,
                Bucket=self.bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except BaseException:
            await self._abort(key, upload_id)
            raise
        
        logger.info(f"Uploaded {key} in {len(parts)} part(s)")
        return StoredObject(key=key, url=f"{self.public_url}/{key}")
    
    async def _upload_part(self, key: str, upload_id: str, number: int, body: bytes) -> Dict:
        response = await asyncio.to_thread(
            self.s3.upload_part,
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=number,
            Body=body,
        )
        return {"ETag": response["ETag"], "PartNumber": number}
    
    async def _abort(self, key: str, upload_id: str):
        try:
            await asyncio.to_thread(
                self.s3.abort_multipart_upload,
                Bucket=self.bucket,
                Key=key,
                UploadId=upload_id,
            )
        except Exception as e:
            # The original failure is re-raised by the caller
            logger.warning(f"Could not abort multipart upload {upload_id} for {key}: {e}")


class InMemoryObjectStorage(ObjectStorageStrategy):
    """
    Keeps uploaded objects in a dict.
    
    Used for tests and when R2 isn't configured. URLs point at base_url but
    nothing serves them.
    """
    
    def __init__(self, base_url: str = "http://localhost:3000/storage"):
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
    
    async def upload_stream(
        self,
        folder: str,
        file_name: str,
        chunks: AsyncIterator[bytes],
        content_type: str
    ) -> StoredObject:
        key = build_object_key(folder, file_name)
        body = bytearray()
        async for chunk in chunks:
            body.extend(chunk)
        
        self.objects[key] = bytes(body)
        self.content_types[key] = content_type
        return StoredObject(key=key, url=f"{self.base_url}/{key}")
