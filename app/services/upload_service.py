import mimetypes
import secrets
import string
import time
from pathlib import PurePosixPath
from typing import Any, BinaryIO, Callable, Dict, Optional, Tuple, Union
from app.config import Settings, settings as default_settings
from app.schemas.upload import UploadResult
from app.services.s3_service import S3Service
import structlog

logger = structlog.get_logger()

PUBLIC_URL_TEMPLATE = "{endpoint}/storage/v1/object/public/{bucket}/{key}"

# Tried in order until the storage accepts one
UPLOAD_ATTEMPTS: Tuple[Optional[Dict[str, Any]], ...] = (
    {"visibility": "public"},
    None,
    {"ACL": "public-read"},
)

RANDOM_TOKEN_LENGTH = 10
_TOKEN_ALPHABET = string.ascii_letters + string.digits

FileInput = Union[bytes, bytearray, BinaryIO]


class StorageError(Exception):
    pass


class StorageConfigurationError(StorageError):
    pass


class UploadFailedError(StorageError):
    pass


def build_public_url(endpoint: str, bucket: str, key: str) -> str:
    return PUBLIC_URL_TEMPLATE.format(
        endpoint=endpoint.rstrip("/"),
        bucket=bucket,
        key=key.lstrip("/"),
    )


def read_content(file: FileInput) -> bytes:
    if isinstance(file, (bytes, bytearray)):
        return bytes(file)
    if getattr(file, "seekable", lambda: False)():
        file.seek(0)
    content = file.read()
    if isinstance(content, str):
        content = content.encode("utf-8")
    return content


class UploadService:
    """
    Stores files in the Supabase Storage bucket through its S3 endpoint.

    Every upload goes through ``upload_with_fallback``, which never raises:
    callers branch on ``UploadResult.success``.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client_factory: Callable[[Settings], Any] = S3Service,
    ):
        self.settings = config or default_settings
        self.client_factory = client_factory
        self._client = None

    @property
    def bucket_name(self) -> str:
        return self.settings.supabase_storage_bucket

    def _require_config(self) -> str:
        missing = []
        if not self.settings.storage_endpoint:
            missing.append("SUPABASE_URL")
        if not self.settings.supabase_service_key:
            missing.append("SUPABASE_SERVICE_KEY")
        if missing:
            raise StorageConfigurationError(
                f"Storage is not configured: missing {', '.join(missing)}"
            )
        return self.settings.storage_endpoint

    def _get_client(self):
        if self._client is None:
            self._client = self.client_factory(self.settings)
        return self._client

    def generate_filename(self, original_filename: Optional[str], content_type: Optional[str] = None) -> str:
        """
        Build a storage filename of the form ``{timestamp}_{token}.{ext}``.

        The extension comes from the original filename, or is guessed from
        the content type. Nothing checks the name is actually unused.
        """
        extension = PurePosixPath(original_filename or "").suffix.lstrip(".")
        if not extension and content_type:
            guessed = mimetypes.guess_extension(content_type)
            extension = guessed.lstrip(".") if guessed else ""
        extension = (extension or "bin").lower()

        token = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(RANDOM_TOKEN_LENGTH))
        return f"{int(time.time())}_{token}.{extension}"

    def build_key(self, folder: Optional[str], filename: str) -> str:
        folder = (folder or "").strip("/")
        if not folder:
            return filename
        return f"{folder}/{filename}"

    def public_url(self, path: str) -> str:
        endpoint = self._require_config()
        return build_public_url(endpoint, self.bucket_name, path)

    def upload_with_fallback(self, file: FileInput, path: str) -> UploadResult:
        """
        Upload ``file`` to ``path`` in the configured bucket.

        Tries public visibility, then no options, then a public-read ACL,
        one after the other with no delay. Any error is returned as a failed
        UploadResult.
        """
        try:
            endpoint = self._require_config()

            logger.info("Starting upload", bucket=self.bucket_name, path=path)
            content = read_content(file)
            client = self._get_client()

            for attempt, params in enumerate(UPLOAD_ATTEMPTS, start=1):
                if attempt > 1:
                    logger.warning(
                        "Retrying upload with different options",
                        path=path,
                        attempt=attempt,
                        params=params
                    )
                if client.put_object(path, content, params):
                    break
            else:
                raise UploadFailedError(
                    f"Storage rejected all {len(UPLOAD_ATTEMPTS)} upload attempts for {path}"
                )

            url = build_public_url(endpoint, self.bucket_name, path)
            logger.info(
                "Upload succeeded",
                bucket=self.bucket_name,
                path=path,
                attempt=attempt,
                size=len(content)
            )
            return UploadResult(success=True, path=path, url=url)

        except Exception as e:
            logger.error(
                "Upload failed",
                bucket=self.bucket_name,
                path=path,
                error=str(e),
                error_type=type(e).__name__
            )
            return UploadResult(success=False, error=str(e))

    def upload_file(
        self,
        file: FileInput,
        folder: Optional[str],
        original_filename: Optional[str],
        content_type: Optional[str] = None,
    ) -> UploadResult:
        filename = self.generate_filename(original_filename, content_type)
        return self.upload_with_fallback(file, self.build_key(folder, filename))

    def delete_file(self, path: str) -> bool:
        try:
            self._require_config()
            return bool(self._get_client().delete_object(path))
        except Exception as e:
            logger.error(
                "Failed to delete file from storage",
                bucket=self.bucket_name,
                path=path,
                error=str(e)
            )
            return False
