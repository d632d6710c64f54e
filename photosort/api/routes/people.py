# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""People endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from photosort.api.dependencies import get_library
from photosort.api.models import RenamePersonRequest
from photosort.ml.pipeline import PhotoLibrary

router = APIRouter(prefix="/people", tags=["people"])


@router.get("")
async def list_people(library: PhotoLibrary = Depends(get_library)):
    """Get all person groups and the identities tracked this session."""
    try:
        return library.people()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{person_id}")
async def rename_person(
    person_id: str,
    request: RenamePersonRequest,
    library: PhotoLibrary = Depends(get_library),
):
    """Set a person's display name."""
    try:
        display_name = request.displayName.strip() if request.displayName else None
        person = library.rename_person(person_id, display_name or None)
        if person is None:
            raise HTTPException(status_code=404, detail="Person not found")
        return person
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
