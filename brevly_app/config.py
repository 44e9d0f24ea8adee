from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Environment
    environment: str = "development"
    debug: bool = False  # True makes Starlette return tracebacks on 500s
    log_level: str = "INFO"
    
    # Application
    app_name: str = "Brev.ly API"
    app_version: str = "1.0.0"
    
    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]
    
    # Database
    database_url: str = "sqlite:///./brevly.db"
    
    # Link repository backend
    repository_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"
    stream_batch_size: int = 500  # Rows per DB round trip while exporting
    
    # Listing
    default_page_size: int = 20
    max_page_size: int = 100
    
    # Object storage (Cloudflare R2, S3 compatible)
    storage_backend: str = "r2"  # Options: "r2", "memory"
    cloudflare_r2_account_id: str = ""
    cloudflare_r2_access_key_id: str = ""
    cloudflare_r2_secret_access_key: str = ""
    cloudflare_r2_bucket: str = ""
    cloudflare_r2_public_url: str = "https://r2.cloudflarestorage.com/"
    storage_connect_timeout: int = 5  # seconds
    storage_read_timeout: int = 30  # seconds
    
    # CSV export
    export_folder: str = "downloads"
    export_buffer_size: int = 64  # Max chunks waiting between DB reader and uploader
    export_part_size: int = 5 * 1024 * 1024  # S3 minimum multipart size
    export_timeout_seconds: float = 300.0
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
