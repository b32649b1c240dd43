"""S3-compatible object storage for patient documents"""

import logging
from functools import lru_cache

import boto3
from botocore.config import Config

from ...config import (
    DOCUMENTS_BUCKET,
    STORAGE_ACCESS_KEY_ID,
    STORAGE_ENDPOINT_URL,
    STORAGE_REGION,
    STORAGE_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600


class DocumentStorage:
    """Private bucket holding uploaded files under their object key"""

    def __init__(self, client, bucket: str = DOCUMENTS_BUCKET):
        self.client = client
        self.bucket = bucket

    def upload(self, key: str, body: bytes, content_type: str) -> None:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        logger.info(f"📤 Uploaded {len(body)} bytes to {self.bucket}/{key}")

    def presigned_url(self, key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
        """Generate a presigned URL for accessing a private object"""
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expiration,
            )
            logger.info(f"✅ Generated presigned URL for key: {key}")
            return url
        except Exception as e:
            logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
            raise

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.info(f"🗑️ Deleted {self.bucket}/{key}")


def get_s3_client():
    """Create and return an S3 client for the configured endpoint."""
    return boto3.client(
        "s3",
        endpoint_url=STORAGE_ENDPOINT_URL,
        aws_access_key_id=STORAGE_ACCESS_KEY_ID,
        aws_secret_access_key=STORAGE_SECRET_ACCESS_KEY,
        region_name=STORAGE_REGION,
        config=Config(signature_version="s3v4"),
    )


@lru_cache
def get_document_storage() -> DocumentStorage:
    """FastAPI dependency; tests override it with an in-memory fake"""
    return DocumentStorage(get_s3_client())
