"""
Inline data-URL encoding.

The whole image is stored in the sheet cell, so the encoded string has to
fit the cell limit (50,000 characters by default).
"""

import base64
import logging
from typing import Optional

from barf_malai.services.images.base import BaseImageUploader, ImageUploadResult

logger = logging.getLogger(__name__)


class DataUrlEncoder(BaseImageUploader):

    def __init__(self, max_chars: int = 50_000):
        self.max_chars = max_chars

    @property
    def provider_name(self) -> str:
        return "data_url"

    @property
    def max_bytes(self) -> int:
        # base64 grows 4/3; leave room for the "data:<mime>;base64," prefix
        return (self.max_chars - 40) * 3 // 4

    def encode(self, data: bytes, mime: str) -> str:
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ImageUploadResult:
        failed = self._precheck(data, filename, content_type)
        if failed:
            return failed

        url = self.encode(data, self._resolve_type(filename, content_type))
        if len(url) > self.max_chars:
            return self._failure(
                f"Encoded image is {len(url)} characters; a sheet cell holds {self.max_chars}",
                len(data),
            )

        logger.debug(f"Encoded {filename} as data URL ({len(url)} chars)")
        return ImageUploadResult(
            success=True,
            url=url,
            provider=self.provider_name,
            size_bytes=len(data),
        )
