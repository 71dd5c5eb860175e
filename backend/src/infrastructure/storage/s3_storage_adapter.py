"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides S3-compatible storage operations for AWS S3, MinIO, and other
S3-compatible services: writes under caller-chosen keys, existence checks,
deletes, public URLs and presigned download URLs.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError

logger = logging.getLogger(__name__)

# Error codes S3-compatible providers use for a missing object
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Keys are used as given; naming is the caller's concern (see
    domain.documents.file_policy.build_storage_key).

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            public_base_url=config.public_base_url,
        )

        await storage.put_object("signatures/DOC-2025-..._signature_....png", data, "image/png")
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')
            public_base_url: Base URL for public file URLs (optional)

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.endpoint_url = endpoint_url
        self.bucket_name = bucket_name
        self.region = region
        self.public_base_url = public_base_url

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    async def put_object(
        self,
        storage_key: str,
        content: bytes,
        mime_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """Write content under storage_key.

        Raises:
            StorageError: If the provider rejects the write
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=content,
                ContentType=mime_type,
                Metadata=metadata or {},
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(
                f"S3 upload failed: storage_key={storage_key}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")
        except (BotoCoreError, OSError) as e:
            logger.error(f"Unexpected error during upload: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Uploaded file: storage_key={storage_key}, "
            f"size={len(content)}, mime_type={mime_type}"
        )

    async def get_object(self, storage_key: str) -> bytes:
        """Read an object's bytes.

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If retrieval fails
        """
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
            return response["Body"].read()
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in _NOT_FOUND_CODES:
                logger.warning(f"File not found: storage_key={storage_key}")
                raise FileNotFoundError(f"File not found: {storage_key}")
            logger.error(f"S3 retrieval failed: storage_key={storage_key}, error={error_code}")
            raise StorageError(f"Failed to retrieve file: {error_code}")
        except (BotoCoreError, OSError) as e:
            logger.error(f"Unexpected error during retrieval: {e}")
            raise StorageError(f"Failed to retrieve file: {e}")

    async def object_exists(self, storage_key: str) -> bool:
        """Check if an object exists in S3 (HEAD request).

        Raises:
            StorageError: If the provider fails for a reason other than 404
        """
        try:
            self.s3_client.head_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
            return True
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in _NOT_FOUND_CODES:
                return False
            logger.warning(
                f"Error checking file existence: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to check file existence: {error_code}")
        except (BotoCoreError, OSError) as e:
            logger.warning(f"Error checking file existence: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to check file existence: {e}")

    async def delete_object(self, storage_key: str) -> bool:
        """Delete an object from S3.

        S3 reports success for deletes of missing keys, so existence is
        checked first to tell the two cases apart.

        Returns:
            bool: True if deleted, False if didn't exist

        Raises:
            StorageError: If deletion fails
        """
        if not await self.object_exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False

        try:
            self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 deletion failed: storage_key={storage_key}, error={error_code}")
            raise StorageError(f"Failed to delete file: {error_code}")
        except (BotoCoreError, OSError) as e:
            logger.error(f"Unexpected error during deletion: {e}")
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    def public_url(self, storage_key: str) -> str:
        """Public URL of an object.

        Order: configured public base URL, then path-style URL on the custom
        endpoint, then the AWS virtual-hosted URL.
        """
        quoted_key = quote(storage_key)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{quoted_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{quoted_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{quoted_key}"

    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 3600,
    ) -> str:
        """Generate a presigned URL for direct download.

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If URL generation fails
        """
        if not await self.object_exists(storage_key):
            raise FileNotFoundError(f"File not found: {storage_key}")

        try:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": storage_key,
                },
                ExpiresIn=expires_in_seconds,
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(
                f"Presigned URL generation failed: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to generate presigned URL: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Unexpected error generating presigned URL: {e}")
            raise StorageError(f"Failed to generate presigned URL: {e}")

        logger.info(
            f"Generated presigned URL: storage_key={storage_key}, "
            f"expires_in={expires_in_seconds}s"
        )
        return url

    async def verify_bucket_exists(self) -> None:
        """Verify that the configured bucket is reachable.

        Raises:
            StorageError: If bucket doesn't exist or isn't accessible
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in _NOT_FOUND_CODES or error_code == "NoSuchBucket":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update the S3_BUCKET_NAME environment variable."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")
        except (BotoCoreError, OSError) as e:
            raise StorageError(f"Failed to verify bucket: {e}")
