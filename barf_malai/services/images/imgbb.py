"""
imgbb Image API Uploader

Uploads through the imgbb API (https://api.imgbb.com/). The image goes
in the ``image`` form field as base64; the public URL comes back in
``data.url``.

Requirements:
    - IMGBB_API_KEY must be set in environment

Author: Khalil Bannouri
Version: 1.0.0
"""

import base64
import logging
from typing import Optional

import httpx

from barf_malai.services.images.base import BaseImageUploader, ImageUploadResult

logger = logging.getLogger(__name__)


class ImgbbUploader(BaseImageUploader):
    """
    Third-party image API strategy.

    Example:
        >>> uploader = ImgbbUploader(api_key="...")
        >>> result = await uploader.upload(data, "cone.jpg")
        >>> print(result.url)
    """

    def __init__(
        self,
        api_key: Optional[str],
        upload_url: str = "https://api.imgbb.com/1/upload",
        max_bytes: int = 32 * 1024 * 1024,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.upload_url = upload_url
        self._max_bytes = max_bytes
        self.timeout = timeout
        self._client = client

    @property
    def provider_name(self) -> str:
        return "imgbb"

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ImageUploadResult:
        if not self.api_key:
            return self._failure("imgbb API key not configured", len(data))

        failed = self._precheck(data, filename, content_type)
        if failed:
            return failed

        form = {
            "image": base64.b64encode(data).decode("ascii"),
            "name": filename.rsplit(".", 1)[0],
        }

        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(
                self.upload_url,
                params={"key": self.api_key},
                data=form,
            )
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"imgbb: Upload failed - {e}")
            return self._failure("Image upload failed: imgbb unreachable", len(data))
        except ValueError:
            return self._failure("Image upload failed: unreadable imgbb response", len(data))
        finally:
            if self._client is None:
                await client.aclose()

        if not isinstance(body, dict):
            return self._failure("Image upload failed: unreadable imgbb response", len(data))

        if response.status_code >= 400 or not body.get("success"):
            error = body.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            message = error or f"HTTP {response.status_code}"
            logger.warning(f"imgbb: Upload rejected - {message}")
            return self._failure(f"Image upload failed: {message}", len(data))

        payload = body.get("data")
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            return self._failure("Image upload failed: imgbb returned no URL", len(data))

        logger.info(f"imgbb: Uploaded {filename} -> {url}")
        return ImageUploadResult(
            success=True,
            url=url,
            provider=self.provider_name,
            size_bytes=len(data),
        )
