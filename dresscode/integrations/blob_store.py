# Overview: S3-backed blob store for invoice PDFs and product images.

from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import InternalError


logger = logging.getLogger(__name__)


class S3BlobStore:
    def __init__(self, bucket: str, region_name: str):
        self.bucket = bucket
        self.region_name = region_name
        self.client = boto3.client("s3", region_name=region_name)

    def put(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload data under key and return its public URL."""
        if not self.bucket:
            raise InternalError("Blob store is not configured")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError):
            logger.exception("S3 upload of %s to bucket %s failed", key, self.bucket)
            raise InternalError("Invoice upload failed")
        return f"https://{self.bucket}.s3.{self.region_name}.amazonaws.com/{key}"
