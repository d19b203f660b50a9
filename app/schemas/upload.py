from pydantic import BaseModel, ConfigDict
from typing import List, Optional


class UploadResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    path: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


class GalleryUploadResponse(BaseModel):
    results: List[UploadResult]
    uploaded: int
    failed: int


class DeleteResponse(BaseModel):
    path: str
    deleted: bool


class StorageHealthResponse(BaseModel):
    status: str
    bucket: str
    configured: bool
