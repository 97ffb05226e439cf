"""
Storage Service Factory

Returns local-disk or Cloudinary storage based on ENV_MODE.

Environment Switching:
    - ENV_MODE=development → MockStorageService (files under DATA_DIRECTORY/uploads)
    - ENV_MODE=staging/production → CloudinaryStorageService
"""

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.services.storage.base import BaseStorageService, UploadResult, extract_public_id
from app.services.storage.mock import MockStorageService, uploads_root
from app.services.storage.cloudinary import CloudinaryStorageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> BaseStorageService:
    """Get the configured storage service instance."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Storage Service: Using MockStorageService (development mode)")
        return MockStorageService()
    else:
        logger.info(f"Storage Service: Using CloudinaryStorageService ({settings.env_mode.value} mode)")
        return CloudinaryStorageService()


def reset_storage_service() -> None:
    """Clear the cached storage service instance."""
    get_storage_service.cache_clear()
    logger.debug("Storage service cache cleared")


__all__ = [
    "get_storage_service",
    "reset_storage_service",
    "extract_public_id",
    "uploads_root",
    "BaseStorageService",
    "UploadResult",
    "MockStorageService",
    "CloudinaryStorageService",
]
