"""FastAPI dependencies."""

import logging
import threading
from typing import Optional

from photosort.config import DB_PATH, LABEL_SOURCE, ORGANIZED_DIR, UPLOADS_DIR
from photosort.ml.label_sources import create_label_source
from photosort.ml.pipeline import PhotoLibrary

logger = logging.getLogger(__name__)

_library: Optional[PhotoLibrary] = None
_library_lock = threading.Lock()


def get_library() -> PhotoLibrary:
    """Process-wide PhotoLibrary. One identity registry is shared by all requests."""
    global _library
    if _library is None:
        with _library_lock:
            if _library is None:
                try:
                    source = create_label_source(LABEL_SOURCE)
                except ValueError as e:
                    logger.warning(f"{e}; using filename keywords only")
                    source = None
                _library = PhotoLibrary(
                    db_path=DB_PATH,
                    uploads_dir=UPLOADS_DIR,
                    organized_dir=ORGANIZED_DIR,
                    label_source=source,
                )
    return _library
