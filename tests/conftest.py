import os
import sys
import tempfile
from pathlib import Path

# Must run before photosort.config is imported: it creates its data dirs at import
os.environ.setdefault("PHOTOSORT_DATA_DIR", tempfile.mkdtemp(prefix="photosort-test-"))
os.environ.setdefault("PHOTOSORT_LABEL_SOURCE", "keyword")

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from photosort.ml.pipeline import PhotoLibrary


@pytest.fixture
def library(tmp_path):
    return PhotoLibrary(
        db_path=tmp_path / "photosort.db",
        uploads_dir=tmp_path / "uploads",
        organized_dir=tmp_path / "organized",
    )


@pytest.fixture
def write_upload(library):
    def _write(name: str, content: bytes = b"\xff\xd8\xff fake jpeg") -> Path:
        path = library.uploads_dir / name
        path.write_bytes(content)
        return path
    return _write
