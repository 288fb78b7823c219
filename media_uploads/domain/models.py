"""
Request and response models of the upload API.
"""

from typing import List

from pydantic import BaseModel, Field


class Base64UploadRequest(BaseModel):
    """Inline image submitted as a base64 string."""

    data: str = Field(..., min_length=1)


class UploadedFilesResponse(BaseModel):
    """Relative paths of a stored multi-file upload, in request order."""

    paths: List[str]


class UploadedImageResponse(BaseModel):
    """Relative paths of a stored base64 image and its thumbnail."""

    path: str
    thumbnail_path: str
