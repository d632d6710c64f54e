"""Statistics and search endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from photosort.api.dependencies import get_library
from photosort.ml.pipeline import PhotoLibrary

router = APIRouter(tags=["stats"])


@router.get("/stats")
async def get_stats(library: PhotoLibrary = Depends(get_library)):
    """Image counts overall and per category."""
    try:
        return library.stats()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/search")
async def search(
    q: str = Query(..., description="Comma or space separated search terms"),
    library: PhotoLibrary = Depends(get_library),
):
    """Images whose tags, names or categories contain any of the terms."""
    terms = [t for t in q.replace(",", " ").split() if t]
    if not terms:
        raise HTTPException(status_code=400, detail="Search query is empty")
    try:
        return library.search(terms)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/labels/status")
async def label_status(library: PhotoLibrary = Depends(get_library)):
    """Status of the active label source."""
    return library.label_status()
