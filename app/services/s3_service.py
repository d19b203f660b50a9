import boto3
import mimetypes
from botocore.config import Config
from botocore.exceptions import ClientError
from typing import Any, Dict, Optional
from app.config import Settings, settings as default_settings
import structlog

logger = structlog.get_logger()

# Portable visibility -> S3 canned ACL
VISIBILITY_ACL = {
    "public": "public-read",
    "private": "private",
}


class S3Service:
    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.s3_client = boto3.client(
            's3',
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.s3_access_key_id,
            aws_secret_access_key=config.supabase_service_key,
            region_name=config.supabase_region,
            config=Config(s3={'addressing_style': 'path'}),
        )
        self.bucket_name = config.supabase_storage_bucket

    def _request_params(self, key: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        extra: Dict[str, Any] = {}
        for name, value in (params or {}).items():
            if name == 'visibility':
                extra['ACL'] = VISIBILITY_ACL.get(value, value)
            else:
                extra[name] = value

        if 'ContentType' not in extra:
            content_type, _ = mimetypes.guess_type(key)
            extra['ContentType'] = content_type or 'application/octet-stream'
        return extra

    def put_object(self, key: str, data: bytes, params: Optional[Dict[str, Any]] = None) -> bool:
        """
        Store an object in the bucket.

        Args:
            key: Object key inside the bucket
            data: Object content
            params: Optional request options. ``visibility`` is mapped to a
                canned ACL, anything else is passed to boto3 as-is.

        Returns:
            True if the storage service accepted the object, False if it
            rejected the request. Transport errors are raised.
        """
        extra = self._request_params(key, params)
        try:
            response = self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                **extra
            )
        except ClientError as e:
            logger.warning(
                "Storage rejected put_object",
                key=key,
                params=params,
                error=str(e)
            )
            return False

        status_code = (response or {}).get('ResponseMetadata', {}).get('HTTPStatusCode', 0)
        return 200 <= status_code < 300

    def delete_object(self, key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            logger.warning("Storage rejected delete_object", key=key, error=str(e))
            return False

        logger.info("Deleted object from storage", bucket=self.bucket_name, key=key)
        return True
