"""
Mock Storage Service

Writes uploaded images to the local data directory and serves them
from the API's /uploads mount. Used in development and tests.
"""

import logging
import mimetypes
import re
import uuid
from pathlib import Path
from typing import List, Optional

from app.core.config import get_settings
from app.services.storage.base import BaseStorageService, UploadResult

logger = logging.getLogger(__name__)

# glob metacharacters and path separators other than "/"
UNSAFE_ID_CHARS = re.compile(r"[*?\[\]\\]")


def uploads_root() -> Path:
    return Path(get_settings().data_directory) / "uploads"


class MockStorageService(BaseStorageService):
    """Local-disk image storage."""

    def __init__(self, root: Optional[Path] = None):
        settings = get_settings()
        self.root = Path(root) if root else uploads_root()
        self.folder = settings.cloudinary_folder
        self.base_url = settings.app_base_url.rstrip("/")
        logger.info(f"MockStorageService initialized (root={self.root})")

    @property
    def provider_name(self) -> str:
        return "local"

    def _suffix(self, filename: str, content_type: str) -> str:
        suffix = Path(filename or "").suffix.lower()
        if suffix:
            return suffix
        return mimetypes.guess_extension(content_type) or ".img"

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadResult:
        target_dir = self.root / self.folder
        target_dir.mkdir(parents=True, exist_ok=True)

        stem = uuid.uuid4().hex
        name = f"{stem}{self._suffix(filename, content_type)}"
        (target_dir / name).write_bytes(content)

        logger.info(f"Mock upload stored {filename} as {name} ({len(content)} bytes)")

        return UploadResult(
            success=True,
            url=f"{self.base_url}/uploads/{self.folder}/{name}",
            public_id=f"{self.folder}/{stem}",
            provider=self.provider_name,
        )

    def _stored_files(self, public_id: str) -> Optional[List[Path]]:
        """
        Files stored under a public id, or None when the id is not a plain
        `folder/stem` inside the uploads root.
        """
        folder, _, stem = public_id.rpartition("/")
        segments = public_id.split("/")
        if not stem or public_id.startswith("/") or UNSAFE_ID_CHARS.search(public_id):
            return None
        if "." in segments or ".." in segments:
            return None

        directory = (self.root / (folder or self.folder)).resolve()
        if not directory.is_relative_to(self.root.resolve()):
            return None
        return list(directory.glob(f"{stem}.*"))

    def optimized_url(self, public_id: str, width: int = 400, height: int = 300) -> Optional[str]:
        # no resizing on local disk, the original file is served as is
        matches = self._stored_files(public_id)
        if not matches:
            return None
        relative = matches[0].relative_to(self.root.resolve()).as_posix()
        return f"{self.base_url}/uploads/{relative}"

    async def delete_image(self, public_id: str) -> UploadResult:
        matches = self._stored_files(public_id)
        if matches is None:
            logger.warning(f"Mock delete: rejected image id {public_id!r}")
            return UploadResult(
                success=False,
                public_id=public_id,
                error_message="Invalid image id",
                provider=self.provider_name,
            )
        if not matches:
            logger.warning(f"Mock delete: no stored image for {public_id}")
            return UploadResult(
                success=False,
                public_id=public_id,
                error_message="Image not found",
                provider=self.provider_name,
            )

        for path in matches:
            path.unlink()
        logger.info(f"Mock delete removed {public_id}")
        return UploadResult(success=True, public_id=public_id, provider=self.provider_name)
