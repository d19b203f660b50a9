from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from typing import List, Tuple
from app.config import settings
from app.middleware.auth import get_uploader_id
from app.schemas.upload import DeleteResponse, GalleryUploadResponse, UploadResult
from app.services.upload_service import UploadService
import structlog

logger = structlog.get_logger()
router = APIRouter(prefix="/uploads", tags=["upload"])


async def read_validated(file: UploadFile) -> Tuple[bytes, str]:
    """Read an uploaded image, rejecting disallowed types and oversized files."""
    content_type = file.content_type or "application/octet-stream"
    if content_type not in settings.upload_allowed_content_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {content_type}"
        )

    content = await file.read()
    if len(content) > settings.upload_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File {file.filename} exceeds {settings.upload_max_bytes} bytes"
        )
    return content, content_type


@router.post("", response_model=UploadResult)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("main"),
    uploader_id: str = Depends(get_uploader_id),
):
    """
    Upload a single image to the storage bucket.

    Returns:
        Stored object path and its public URL
    """
    content, content_type = await read_validated(file)

    upload_service = UploadService()
    result = await run_in_threadpool(
        upload_service.upload_file,
        content,
        folder=folder,
        original_filename=file.filename,
        content_type=content_type
    )

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to upload file: {result.error}"
        )

    logger.info("Image uploaded", uploader_id=uploader_id, path=result.path)
    return result


@router.post("/gallery", response_model=GalleryUploadResponse)
async def upload_gallery(
    files: List[UploadFile] = File(...),
    folder: str = Form("gallery"),
    uploader_id: str = Depends(get_uploader_id),
):
    """
    Upload several images, one after another.

    All files are validated before any upload starts; individual upload
    failures are reported per item.
    """
    validated = []
    for file in files:
        content, content_type = await read_validated(file)
        validated.append((file.filename, content, content_type))

    upload_service = UploadService()
    results = []
    for filename, content, content_type in validated:
        results.append(await run_in_threadpool(
            upload_service.upload_file,
            content,
            folder=folder,
            original_filename=filename,
            content_type=content_type
        ))

    uploaded = sum(1 for result in results if result.success)
    logger.info(
        "Gallery upload finished",
        uploader_id=uploader_id,
        uploaded=uploaded,
        failed=len(results) - uploaded
    )
    return GalleryUploadResponse(
        results=results,
        uploaded=uploaded,
        failed=len(results) - uploaded
    )


@router.delete("/{path:path}", response_model=DeleteResponse)
async def delete_upload(path: str, uploader_id: str = Depends(get_uploader_id)):
    upload_service = UploadService()
    if not await run_in_threadpool(upload_service.delete_file, path):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to delete file: {path}"
        )

    logger.info("Upload deleted", uploader_id=uploader_id, path=path)
    return DeleteResponse(path=path, deleted=True)
