"""S3 service for storing uploaded documents and images"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Dict, Optional
import boto3
from botocore.exceptions import ClientError
from botocore.config import Config

from backoffice.config import settings
from backoffice.monitoring.metrics import storage_operations_total

logger = logging.getLogger(__name__)


class S3ServiceError(Exception):
    """Base exception for S3 service errors"""
    pass


class S3ConnectionError(S3ServiceError):
    """S3 connection error"""
    pass


class InvalidFileTypeError(S3ServiceError):
    """Invalid file type error"""
    pass


class FileTooLargeError(S3ServiceError):
    """File too large error"""
    pass


class S3Service:
    """Service for S3 object uploads and deletions"""

    # Constants
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
    IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}
    DOCUMENT_MIME_TYPES = IMAGE_MIME_TYPES | {"application/pdf"}

    # Folder prefixes per upload kind
    EXPENSE_DOCUMENTS = "expense-documents"
    WORK_COMPLETION_IMAGES = "work-completion"
    LPO_DOCUMENTS = "lpo-documents"
    PROFILE_IMAGES = "profile-images"
    SIGNATURE_IMAGES = "signatures"

    def __init__(self):
        """Initialize S3 client with retry configuration"""
        retry_config = Config(
            retries={
                "max_attempts": 3,
                "mode": "standard",
            },
            connect_timeout=5,
            read_timeout=10,
        )

        client_kwargs = {
            "region_name": settings.aws_region,
            "config": retry_config,
        }

        # Add credentials if provided (not needed for IAM roles)
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        # Use custom endpoint for local development (MinIO)
        if settings.aws_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_endpoint_url

        try:
            self.s3_client = boto3.client("s3", **client_kwargs)
            logger.info(f"S3 client initialized for bucket: {settings.s3_bucket}")
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise S3ConnectionError(f"Failed to initialize S3 client: {e}")

    def validate_file(self, file_size: int, mime_type: str, allowed_types: Optional[set] = None) -> None:
        """
        Validate file size and MIME type.

        Args:
            file_size: File size in bytes
            mime_type: MIME type of the file
            allowed_types: Accepted MIME types (defaults to documents and images)

        Raises:
            FileTooLargeError: If file exceeds maximum size or is empty
            InvalidFileTypeError: If MIME type is not allowed
        """
        allowed = allowed_types or self.DOCUMENT_MIME_TYPES

        if file_size > self.MAX_FILE_SIZE:
            raise FileTooLargeError(
                f"File size {file_size} bytes exceeds maximum of {self.MAX_FILE_SIZE} bytes"
            )

        if file_size == 0:
            raise FileTooLargeError("File is empty")

        if mime_type not in allowed:
            raise InvalidFileTypeError(
                f"MIME type {mime_type} not allowed. Allowed types: {sorted(allowed)}"
            )

    def generate_s3_key(self, folder: str, filename: str) -> str:
        """
        Generate S3 key following the structure:
        {folder}/{year}/{month}/{uuid}{extension}

        Args:
            folder: Folder prefix for the upload kind
            filename: Original file name (only its extension is kept)

        Returns:
            S3 key string
        """
        now = datetime.utcnow()
        extension = PurePosixPath(filename or "").suffix.lower()
        return f"{folder}/{now.strftime('%Y')}/{now.strftime('%m')}/{uuid.uuid4().hex}{extension}"

    def object_url(self, s3_key: str) -> str:
        if settings.aws_endpoint_url:
            # For local development with MinIO
            return f"{settings.aws_endpoint_url}/{settings.s3_bucket}/{s3_key}"
        return f"https://{settings.s3_bucket}.s3.{settings.aws_region}.amazonaws.com/{s3_key}"

    def upload_file(
        self,
        file_bytes: bytes,
        folder: str,
        filename: str,
        content_type: str = "application/octet-stream",
        allowed_types: Optional[set] = None,
    ) -> Dict[str, str]:
        """
        Validate and upload a file to S3.

        Args:
            file_bytes: File content
            folder: Folder prefix for the upload kind
            filename: Original file name
            content_type: MIME type of the file
            allowed_types: Accepted MIME types

        Returns:
            Dict with the public ``url`` and the object ``key``

        Raises:
            FileTooLargeError / InvalidFileTypeError: If validation fails
            S3ConnectionError: If upload fails
        """
        self.validate_file(len(file_bytes), content_type, allowed_types)
        s3_key = self.generate_s3_key(folder, filename)

        try:
            self.s3_client.put_object(
                Bucket=settings.s3_bucket,
                Key=s3_key,
                Body=file_bytes,
                ContentType=content_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error uploading {filename}: {error_code} - {e}")
            storage_operations_total.labels(operation="upload", status="error").inc()
            raise S3ConnectionError(f"Failed to upload file: {error_code}")
        except Exception as e:
            logger.error(f"Unexpected error uploading {filename}: {e}")
            storage_operations_total.labels(operation="upload", status="error").inc()
            raise S3ConnectionError(f"Failed to upload file: {str(e)}")

        storage_operations_total.labels(operation="upload", status="success").inc()
        logger.info(f"Uploaded {len(file_bytes)} bytes to {s3_key}")
        return {"url": self.object_url(s3_key), "key": s3_key}

    def delete_object(self, s3_key: str) -> bool:
        """
        Delete an object from S3.

        Args:
            s3_key: S3 key of the object to delete

        Returns:
            True if deletion was successful
        """
        try:
            self.s3_client.delete_object(Bucket=settings.s3_bucket, Key=s3_key)
            storage_operations_total.labels(operation="delete", status="success").inc()
            logger.info(f"Deleted object: {s3_key}")
            return True
        except ClientError as e:
            storage_operations_total.labels(operation="delete", status="error").inc()
            logger.error(f"Error deleting object: {e}")
            raise S3ConnectionError(f"Failed to delete object: {e}")

    async def upload_file_async(self, *args, **kwargs) -> Dict[str, str]:
        """Run :meth:`upload_file` in a worker thread"""
        return await asyncio.to_thread(self.upload_file, *args, **kwargs)

    async def delete_object_async(self, s3_key: str) -> bool:
        """Run :meth:`delete_object` in a worker thread"""
        return await asyncio.to_thread(self.delete_object, s3_key)


_s3_service: Optional[S3Service] = None


def get_s3_service() -> S3Service:
    """FastAPI dependency returning a shared S3 service"""
    global _s3_service
    if _s3_service is None:
        _s3_service = S3Service()
    return _s3_service


@dataclass
class FileUpload:
    """An uploaded file read into memory"""
    filename: str
    content_type: str
    data: bytes
