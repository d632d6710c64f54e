"""Pydantic models for API requests/responses."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class AutoTagsResponse(BaseModel):
    """Automatic classification of an image."""

    person_id: Optional[str] = None
    nature: bool = False
    pets: bool = False
    vehicle: bool = False
    objects: List[str] = Field(default_factory=list)
    sub_types: Dict[str, str] = Field(default_factory=dict)


class ImageResponse(BaseModel):
    """Image metadata response."""

    filename: str
    originalName: str
    url: str
    mimetype: Optional[str] = None
    size: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    autoTags: AutoTagsResponse
    categories: List[str] = Field(default_factory=list)
    personId: Optional[str] = None
    organized: bool = False
    organizedPaths: List[str] = Field(default_factory=list)
    uploadedAt: str
    collections: Optional[List[str]] = None


class DestinationError(BaseModel):
    destination: str
    error: str


class UploadResponse(BaseModel):
    """Result of an upload."""

    image: ImageResponse
    method: str
    addedTo: List[str]
    errors: List[DestinationError] = Field(default_factory=list)


class TagsRequest(BaseModel):
    """Replace an image's custom tags."""

    tags: List[str]


class RetagResponse(BaseModel):
    image: ImageResponse
    method: str
    previous: List[str]
    addedTo: List[str]
    errors: List[DestinationError] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool = True
    filename: str
    removedFrom: List[str]
    organizedCopiesDeleted: int
    fileDeleted: bool


class OrganizeRequest(BaseModel):
    """Organize one image, or every unorganized image when filename is omitted."""

    filename: Optional[str] = None


class DestinationResultResponse(BaseModel):
    destination: str
    path: Optional[str] = None
    error: Optional[str] = None


class OrganizeResponse(BaseModel):
    filename: str
    organized: bool
    organizedPaths: List[str]
    results: List[DestinationResultResponse]


class RenamePersonRequest(BaseModel):
    displayName: Optional[str] = None
