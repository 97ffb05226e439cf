"""
Image upload for menu items, logos and banners.

Files go to Cloudinary (local disk in development) under the
restaurant-menu folder. Only image/* uploads up to MAX_UPLOAD_SIZE_MB
are accepted.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.deps import require_staff
from app.core.config import get_settings
from app.schemas import DataResponse, ImageDeleteRequest, SuccessResponse, UploadedImage
from app.services.storage import extract_public_id, get_storage_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/upload", tags=["Upload"], dependencies=[Depends(require_staff)])


async def _read_image(upload: UploadFile) -> bytes:
    """Read an uploaded file, rejecting non-images and oversized files."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only image files are allowed!")

    content = await upload.read()
    if len(content) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    return content


async def _store(upload: UploadFile, content: bytes) -> UploadedImage:
    storage = get_storage_service()
    result = await storage.upload_image(content, upload.filename or "image", upload.content_type)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error_message or "Image upload failed",
        )
    return UploadedImage(
        url=result.url,
        public_id=result.public_id,
        optimized_url=storage.optimized_url(result.public_id),
    )


@router.post("/image", response_model=DataResponse[UploadedImage])
async def upload_image(image: UploadFile = File(...)):
    content = await _read_image(image)
    uploaded = await _store(image, content)

    logger.info(f"Image uploaded: {uploaded.public_id}")
    return {"success": True, "message": "Image uploaded successfully", "data": uploaded}


@router.post("/images", response_model=DataResponse[List[UploadedImage]])
async def upload_images(images: List[UploadFile] = File(...)):
    if len(images) > settings.max_upload_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {settings.max_upload_files} images allowed",
        )

    # validate everything before storing anything
    contents = [await _read_image(upload) for upload in images]
    uploaded = [await _store(upload, content) for upload, content in zip(images, contents)]

    logger.info(f"{len(uploaded)} images uploaded")
    return {"success": True, "message": f"{len(uploaded)} images uploaded successfully", "data": uploaded}


@router.delete("/image", response_model=SuccessResponse)
async def delete_image(payload: ImageDeleteRequest):
    public_id = payload.public_id or extract_public_id(payload.url, settings.cloudinary_folder)
    if not public_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="url or publicId is required")

    result = await get_storage_service().delete_image(public_id)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error_message or "Failed to delete image",
        )

    logger.info(f"Image deleted: {public_id}")
    return SuccessResponse(message="Image deleted successfully")
