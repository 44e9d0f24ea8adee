"""
Factory for creating object storage instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
import logging

from .strategies import ObjectStorageStrategy, R2ObjectStorage, InMemoryObjectStorage
from brevly_app.config import settings

logger = logging.getLogger("brevly.storage")


class StorageNotConfiguredError(Exception):
    """Selected backend lacks the settings it needs"""


class StorageBackend(Enum):
    """Available object storage backends"""
    R2 = "r2"
    MEMORY = "memory"


def _r2_configured() -> bool:
    return all([
        settings.cloudflare_r2_account_id,
        settings.cloudflare_r2_access_key_id,
        settings.cloudflare_r2_secret_access_key,
        settings.cloudflare_r2_bucket,
    ])


class ObjectStorageFactory:
    """
    Simple factory for creating object storage instances.
    
    Gets configuration from settings (not passed as parameters).
    """
    
    _instance: ObjectStorageStrategy = None  # Single cached instance
    
    @classmethod
    def create(cls, backend: StorageBackend) -> ObjectStorageStrategy:
        """
        Create or return cached object storage instance.
        
        Args:
            backend: Type of storage backend (from enum)
            
        Returns:
            Singleton object storage instance
        """
        if cls._instance is not None:
            return cls._instance
        
        if backend == StorageBackend.R2:
            if not _r2_configured():
                # Only an explicit "memory" backend may keep exports in process
                raise StorageNotConfiguredError(
                    "R2 storage needs CLOUDFLARE_R2_ACCOUNT_ID, CLOUDFLARE_R2_ACCESS_KEY_ID, "
                    "CLOUDFLARE_R2_SECRET_ACCESS_KEY and CLOUDFLARE_R2_BUCKET"
                )
            
            import boto3
            from botocore.config import Config
            
            s3_client = boto3.client(
                "s3",
                endpoint_url=f"https://{settings.cloudflare_r2_account_id}.r2.cloudflarestorage.com",
                aws_access_key_id=settings.cloudflare_r2_access_key_id,
                aws_secret_access_key=settings.cloudflare_r2_secret_access_key,
                region_name="auto",
                config=Config(
                    connect_timeout=settings.storage_connect_timeout,
                    read_timeout=settings.storage_read_timeout,
                ),
            )
            cls._instance = R2ObjectStorage(
                s3_client,
                bucket=settings.cloudflare_r2_bucket,
                public_url=settings.cloudflare_r2_public_url,
                part_size=settings.export_part_size,
            )
            logger.info("R2 object storage initialized")
        
        elif backend == StorageBackend.MEMORY:
            cls._instance = InMemoryObjectStorage()
            logger.info("In-memory object storage initialized")
        
        else:
            raise ValueError(f"Unknown storage backend: {backend}")
        
        return cls._instance
    
    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
