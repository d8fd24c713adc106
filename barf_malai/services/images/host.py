"""
Hosted file upload.

Sends the image as a multipart upload to an external file host that
answers with the public URL as plain text (catbox-style API).
"""

import logging
from typing import Optional

import httpx

from barf_malai.services.images.base import BaseImageUploader, ImageUploadResult

logger = logging.getLogger(__name__)


class HostedFileUploader(BaseImageUploader):

    def __init__(
        self,
        upload_url: str = "https://catbox.moe/user/api.php",
        max_bytes: int = 200 * 1024 * 1024,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.upload_url = upload_url
        self._max_bytes = max_bytes
        self.timeout = timeout
        self._client = client

    @property
    def provider_name(self) -> str:
        return "host"

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ImageUploadResult:
        failed = self._precheck(data, filename, content_type)
        if failed:
            return failed

        mime = self._resolve_type(filename, content_type)
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(
                self.upload_url,
                data={"reqtype": "fileupload"},
                files={"fileToUpload": (filename, data, mime)},
            )
        except httpx.HTTPError as e:
            logger.error(f"Host: Upload failed - {e}")
            return self._failure("Image upload failed: file host unreachable", len(data))
        finally:
            if self._client is None:
                await client.aclose()

        url = response.text.strip()
        if response.status_code >= 400 or not url.startswith(("http://", "https://")):
            logger.warning(f"Host: Upload rejected - HTTP {response.status_code}: {url[:100]}")
            return self._failure("Image upload failed: file host rejected the file", len(data))

        logger.info(f"Host: Uploaded {filename} -> {url}")
        return ImageUploadResult(
            success=True,
            url=url,
            provider=self.provider_name,
            size_bytes=len(data),
        )
