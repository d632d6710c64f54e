#!/usr/bin/env python3
"""
Helper script to run the PhotoSort-AI API server.
Can be run from any directory.
"""
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.absolute()

sys.path.insert(0, str(PROJECT_ROOT))
os.chdir(PROJECT_ROOT)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "photosort.api.main:app",
        host=os.environ.get("PHOTOSORT_HOST", "127.0.0.1"),
        port=int(os.environ.get("PHOTOSORT_PORT", "8000")),
        reload=os.environ.get("PHOTOSORT_RELOAD", "").lower() in ("1", "true", "yes"),
    )
