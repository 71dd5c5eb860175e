"""Object Storage Port - Domain interface for S3-compatible storage.

This port defines the contract for storing and retrieving document request
files in object storage. Adapters implement it for S3, MinIO or any other
backend addressed by string keys.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class StorageError(Exception):
    """Base exception for storage operations (provider error, network, auth)."""
    pass


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage operations.

    Key Design Principles:
    - Keys are chosen by the caller (see domain.documents.file_policy)
    - "Not found" is reported distinctly from provider failures:
      FileNotFoundError or a False return for absence, StorageError otherwise
    - Deleting an absent object is not an error

    Example Usage:
        storage = S3StorageAdapter(...)

        await storage.put_object(
            storage_key="signatures/DOC-2025-AB12CD34_Jane_Doe_signature_..._x1Y2z3W4.png",
            content=data,
            mime_type="image/png",
        )
        url = await storage.generate_presigned_url(storage_key, expires_in_seconds=3600)
    """

    @abstractmethod
    async def put_object(
        self,
        storage_key: str,
        content: bytes,
        mime_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        """Write an object under storage_key, replacing any existing object.

        Returns only after the provider confirmed the write.

        Raises:
            StorageError: If the write fails or storage is unavailable
        """
        pass

    @abstractmethod
    async def get_object(self, storage_key: str) -> bytes:
        """Read an object's bytes.

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If retrieval fails
        """
        pass

    @abstractmethod
    async def object_exists(self, storage_key: str) -> bool:
        """Check if an object exists (HEAD request).

        Raises:
            StorageError: If existence cannot be determined
        """
        pass

    @abstractmethod
    async def delete_object(self, storage_key: str) -> bool:
        """Delete an object.

        Returns:
            bool: True if the object was deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    def public_url(self, storage_key: str) -> str:
        """Resolve the public URL of an object (no existence check)."""
        pass

    @abstractmethod
    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 3600,
    ) -> str:
        """Generate a time-limited download URL.

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If URL generation fails
        """
        pass
