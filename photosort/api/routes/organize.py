"""Organize and bulk rebuild endpoints."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from photosort.api.dependencies import get_library
from photosort.api.models import OrganizeRequest, OrganizeResponse
from photosort.ml.errors import ImageNotFound
from photosort.ml.pipeline import PhotoLibrary
from photosort.ml.types import OrganizeResult

router = APIRouter(tags=["organize"])


def _organize_response(result: OrganizeResult) -> Dict[str, Any]:
    return {
        "filename": result.filename,
        "organized": result.organized,
        "organizedPaths": result.organized_paths,
        "results": [
            {"destination": r.destination, "path": r.path, "error": r.error}
            for r in result.results
        ],
    }


@router.post("/organize", response_model=List[OrganizeResponse])
async def organize(
    request: Optional[OrganizeRequest] = None,
    library: PhotoLibrary = Depends(get_library),
):
    """
    Copy images into their organized folders.

    Organizes one image when ``filename`` is given, otherwise every image
    not yet organized. Partial failures are reported per destination.
    """
    filename = request.filename if request else None
    try:
        return [_organize_response(r) for r in library.organize(filename)]
    except ImageNotFound:
        raise HTTPException(status_code=404, detail="Image not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reprocess")
async def reprocess(library: PhotoLibrary = Depends(get_library)):
    """Reclassify every upload and rebuild all collections."""
    try:
        results = library.reprocess()
        return {"processed": len(results), "results": results}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reorganize")
async def reorganize(library: PhotoLibrary = Depends(get_library)):
    """Reclassify every upload and rebuild collections and organized folders from scratch."""
    try:
        results = library.reorganize()
        return {"processed": len(results), "results": results}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
