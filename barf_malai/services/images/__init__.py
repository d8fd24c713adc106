"""
Image Uploader Factory

Usage:
    from barf_malai.services.images import get_image_uploader

    uploader = get_image_uploader("data_url")
    result = await uploader.upload(data, "cone.png")

Strategies:
    - host → HostedFileUploader
    - imgbb → ImgbbUploader (needs IMGBB_API_KEY)
    - data_url → DataUrlEncoder

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging

from barf_malai.core.config import get_settings
from barf_malai.services.images.base import BaseImageUploader, ImageUploadResult
from barf_malai.services.images.data_url import DataUrlEncoder
from barf_malai.services.images.host import HostedFileUploader
from barf_malai.services.images.imgbb import ImgbbUploader

logger = logging.getLogger(__name__)

STRATEGIES = ("host", "imgbb", "data_url")


def get_image_uploader(strategy: str) -> BaseImageUploader:
    """
    Build the uploader for ``strategy``.

    Raises:
        ValueError: If the strategy is unknown
    """
    settings = get_settings()

    if strategy == "host":
        return HostedFileUploader(
            upload_url=settings.image_host_url,
            max_bytes=settings.image_host_max_bytes,
            timeout=settings.image_upload_timeout,
        )
    if strategy == "imgbb":
        return ImgbbUploader(
            api_key=settings.imgbb_api_key,
            upload_url=settings.imgbb_upload_url,
            max_bytes=settings.imgbb_max_bytes,
            timeout=settings.image_upload_timeout,
        )
    if strategy == "data_url":
        return DataUrlEncoder(max_chars=settings.data_url_max_chars)

    raise ValueError(f"Unknown image strategy: {strategy}. Options: {STRATEGIES}")


__all__ = [
    "get_image_uploader",
    "STRATEGIES",
    "BaseImageUploader",
    "ImageUploadResult",
    "DataUrlEncoder",
    "HostedFileUploader",
    "ImgbbUploader",
]
