"""
Image Storage Abstract Base Class

Defines the interface for storing menu and banner images.
Supports both Mock (local disk) and Real (Cloudinary) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class UploadResult:
    """Result from storing or deleting an image."""
    success: bool
    url: Optional[str] = None
    public_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def extract_public_id(url: Optional[str], folder: str = "restaurant-menu") -> Optional[str]:
    """
    Derive a storage public id from an image URL.

    The last path segment minus its extension is the id. When the URL
    contains the upload folder as a path segment, the folder is kept as
    a prefix.

    >>> extract_public_id("https://res.cloudinary.com/x/image/upload/v1/restaurant-menu/abc.jpg")
    'restaurant-menu/abc'
    """
    if not url:
        return None

    parts = url.split("/")
    filename = parts[-1]
    public_id = filename.split(".")[0]

    if folder in parts:
        return f"{folder}/{public_id}"
    return public_id


class BaseStorageService(ABC):
    """Abstract base class for image storage."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadResult:
        """Store one image and return its public URL."""
        pass

    @abstractmethod
    async def delete_image(self, public_id: str) -> UploadResult:
        """Remove a previously stored image."""
        pass

    def optimized_url(self, public_id: str, width: int = 400, height: int = 300) -> Optional[str]:
        """Resized delivery URL for a stored image, when the provider supports it."""
        return None
