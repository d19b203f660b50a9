from pydantic_settings import BaseSettings
from typing import List, Optional
from urllib.parse import urlparse


class Settings(BaseSettings):
    # Supabase Storage (S3-compatible endpoint)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_s3_access_key_id: Optional[str] = None
    supabase_storage_bucket: str = "products"
    supabase_region: str = "us-east-1"

    # Upload validation
    upload_max_bytes: int = 2 * 1024 * 1024
    upload_allowed_content_types: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    ]

    upload_jwt_secret: str = "your-secret-key-here"
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def storage_endpoint(self) -> Optional[str]:
        if not self.supabase_url:
            return None
        return self.supabase_url.rstrip("/")

    @property
    def storage_configured(self) -> bool:
        return bool(self.storage_endpoint and self.supabase_service_key)

    @property
    def s3_endpoint_url(self) -> Optional[str]:
        if not self.storage_endpoint:
            return None
        return f"{self.storage_endpoint}/storage/v1/s3"

    @property
    def s3_access_key_id(self) -> Optional[str]:
        """
        Access key id for the S3 endpoint.

        Falls back to the project ref (first label of the Supabase host),
        which is what Supabase expects when signing with a service key.
        """
        if self.supabase_s3_access_key_id:
            return self.supabase_s3_access_key_id
        if not self.storage_endpoint:
            return None
        host = urlparse(self.storage_endpoint).hostname or ""
        return host.split(".")[0] or None


settings = Settings()
