"""
Image Uploader Abstract Base Class

Three independent strategies turn an image file into something that can be
stored in the ``image`` / ``imageURL`` column of the sheet:

    - HostedFileUploader: upload to an external file host, get a public URL
    - ImgbbUploader: upload through the imgbb image API
    - DataUrlEncoder: inline ``data:`` URL, no network involved

Each is best effort with its own size limit and failure message, and
reports through the same ``ImageUploadResult``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ImageUploadResult:
    """
    Standardized result from an image upload.

    Attributes:
        success: Whether a usable URL was produced
        url: Public URL or data URL
        provider: Strategy that produced the result
        size_bytes: Size of the uploaded file
        error_message: Error description if the upload failed
    """
    success: bool
    url: Optional[str] = None
    provider: str = "unknown"
    size_bytes: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "url": self.url,
            "provider": self.provider,
            "size_bytes": self.size_bytes,
            "error_message": self.error_message,
        }


class BaseImageUploader(ABC):
    """Abstract base class for image upload strategies."""

    ALLOWED_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml")

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the strategy name."""
        pass

    @property
    @abstractmethod
    def max_bytes(self) -> int:
        """Largest accepted file size."""
        pass

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ImageUploadResult:
        """
        Upload one image.

        Args:
            data: Raw file bytes
            filename: Original file name
            content_type: MIME type; guessed from the name when missing

        Returns:
            ImageUploadResult: Standardized result object
        """
        pass

    def _resolve_type(self, filename: str, content_type: Optional[str]) -> Optional[str]:
        return content_type or mimetypes.guess_type(filename)[0]

    def _precheck(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> Optional[ImageUploadResult]:
        """Common checks; returns a failed result or None when the file is acceptable."""
        mime = self._resolve_type(filename, content_type)
        if mime not in self.ALLOWED_TYPES:
            return self._failure(f"Unsupported file type: {mime or 'unknown'}", len(data))
        if not data:
            return self._failure("Image file is empty", 0)
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            return self._failure(
                f"Image too large for {self.provider_name} (max {limit_mb:.1f} MB)",
                len(data),
            )
        return None

    def _failure(self, message: str, size: int = 0) -> ImageUploadResult:
        return ImageUploadResult(
            success=False,
            provider=self.provider_name,
            size_bytes=size,
            error_message=message,
        )
