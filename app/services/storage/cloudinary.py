"""
Cloudinary Storage Service

Production image storage. Images are uploaded into the configured folder
with an 800x600 fill transformation and automatic format.
"""

import asyncio
import io
import logging
from typing import Optional

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError

from app.core.config import get_settings
from app.services.storage.base import BaseStorageService, UploadResult

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ["jpg", "jpeg", "png", "webp"]
UPLOAD_TRANSFORMATION = [
    {"width": 800, "height": 600, "crop": "fill", "quality": "auto"},
    {"fetch_format": "auto"},
]


class CloudinaryStorageService(BaseStorageService):
    """Cloudinary-backed image storage."""

    def __init__(self):
        settings = get_settings()
        self.folder = settings.cloudinary_folder
        self.configured = bool(
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        )

        if self.configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )
            logger.info("CloudinaryStorageService initialized")
        else:
            logger.warning("Cloudinary credentials not configured")

    @property
    def provider_name(self) -> str:
        return "cloudinary"

    def _not_configured(self, public_id: Optional[str] = None) -> UploadResult:
        return UploadResult(
            success=False,
            public_id=public_id,
            error_message="Cloudinary not configured",
            provider=self.provider_name,
        )

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadResult:
        if not self.configured:
            return self._not_configured()

        try:
            # the SDK is blocking
            response = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(content),
                folder=self.folder,
                allowed_formats=ALLOWED_FORMATS,
                transformation=UPLOAD_TRANSFORMATION,
                filename=filename,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload failed for {filename}: {e}")
            return UploadResult(
                success=False,
                error_message=str(e),
                provider=self.provider_name,
            )

        logger.info(f"Uploaded {filename} to Cloudinary as {response['public_id']}")
        return UploadResult(
            success=True,
            url=response.get("secure_url") or response.get("url"),
            public_id=response["public_id"],
            provider=self.provider_name,
        )

    async def delete_image(self, public_id: str) -> UploadResult:
        if not self.configured:
            return self._not_configured(public_id)

        try:
            response = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        except CloudinaryError as e:
            logger.error(f"Cloudinary delete failed for {public_id}: {e}")
            return UploadResult(
                success=False,
                public_id=public_id,
                error_message=str(e),
                provider=self.provider_name,
            )

        ok = response.get("result") == "ok"
        if not ok:
            logger.warning(f"Cloudinary delete of {public_id} returned {response.get('result')}")
        return UploadResult(
            success=ok,
            public_id=public_id,
            error_message=None if ok else str(response.get("result")),
            provider=self.provider_name,
        )

    def optimized_url(self, public_id: str, width: int = 400, height: int = 300) -> Optional[str]:
        url, _ = cloudinary.utils.cloudinary_url(
            public_id,
            width=width,
            height=height,
            crop="fill",
            quality="auto",
            fetch_format="auto",
            secure=True,
        )
        return url
