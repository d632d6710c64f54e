"""Category collection endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from photosort.api.dependencies import get_library
from photosort.ml.pipeline import PhotoLibrary

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("")
async def list_collections(library: PhotoLibrary = Depends(get_library)):
    """Summary of every collection: persons, pets, nature, vehicles, tags, uncategorized."""
    try:
        return library.collections_summary()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{collection}")
async def get_collection(collection: str, library: PhotoLibrary = Depends(get_library)):
    """Raw category documents of one collection."""
    try:
        return library.collection(collection)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
