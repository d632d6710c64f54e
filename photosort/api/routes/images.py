# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""Image upload and management endpoints."""

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from photosort.api.dependencies import get_library
from photosort.api.models import (
    DeleteResponse,
    ImageResponse,
    RetagResponse,
    TagsRequest,
    UploadResponse,
)
from photosort.config import ALLOWED_IMAGE_EXTENSIONS, MAX_UPLOAD_SIZE
from photosort.ml.errors import ImageNotFound, InvalidEmbedding
from photosort.ml.pipeline import PhotoLibrary
from photosort.ml.utils.path_utils import safe_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


def _parse_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


def _parse_embedding(raw: Optional[str]) -> Optional[List[float]]:
    if not raw:
        return None
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Embedding is not valid JSON: {e}")
    if not isinstance(values, list) or not all(isinstance(v, (int, float)) for v in values):
        raise HTTPException(status_code=400, detail="Embedding must be a JSON array of numbers")
    return [float(v) for v in values]


@router.post("", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    tags: Optional[str] = Form(None),
    embedding: Optional[str] = Form(None),
    library: PhotoLibrary = Depends(get_library),
):
    """Upload an image, classify it and index it into its collections."""
    original_name = file.filename or "upload"
    if Path(original_name).suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    vector = _parse_embedding(embedding)

    content = await file.read()
    if len(content) > MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        stored_name = f"{int(time.time() * 1000)}-{safe_filename(original_name)}"
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    stored_path = library.uploads_dir / stored_name

    try:
        stored_path.write_bytes(content)
        result = library.ingest(
            stored_path,
            original_name,
            mimetype=file.content_type,
            size=len(content),
            embedding=vector,
            tags=_parse_tags(tags),
        )
        return {
            "image": library.image_entry(result.record.to_document()),
            "method": result.method,
            "addedTo": result.sync.added_to,
            "errors": result.sync.errors,
        }
    except InvalidEmbedding as e:
        stored_path.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Upload failed for {original_name}: {e}")
        # No collection record points at it, so a later reprocess must not pick it up
        stored_path.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=List[ImageResponse])
async def list_images(
    category: Optional[str] = Query(None, description="person, pet, nature, vehicle or uncategorized"),
    organized: Optional[bool] = None,
    library: PhotoLibrary = Depends(get_library),
):
    """Get all images, newest first."""
    try:
        return library.list_images(category=category, organized=organized)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{filename}", response_model=ImageResponse)
async def get_image(filename: str, library: PhotoLibrary = Depends(get_library)):
    """Get a specific image."""
    try:
        return library.get_image(filename)
    except ImageNotFound:
        raise HTTPException(status_code=404, detail="Image not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{filename}", response_model=DeleteResponse)
async def delete_image(filename: str, library: PhotoLibrary = Depends(get_library)):
    """Delete an image from every collection, the organized folders and the uploads folder."""
    try:
        result = library.delete(filename)
        return {
            "success": True,
            "filename": result["filename"],
            "removedFrom": result["removed_from"],
            "organizedCopiesDeleted": result["organized_copies_deleted"],
            "fileDeleted": result["file_deleted"],
        }
    except ImageNotFound:
        raise HTTPException(status_code=404, detail="Image not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{filename}/tags", response_model=RetagResponse)
async def update_tags(filename: str, request: TagsRequest, library: PhotoLibrary = Depends(get_library)):
    """Replace an image's custom tags and re-run classification."""
    try:
        result = library.retag(filename, request.tags)
        return {
            "image": library.image_entry(result.record.to_document()),
            "method": result.method,
            "previous": result.previous,
            "addedTo": result.sync.added_to,
            "errors": result.sync.errors,
        }
    except ImageNotFound:
        raise HTTPException(status_code=404, detail="Image not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
