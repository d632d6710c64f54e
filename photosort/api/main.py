"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

from PIL import Image

# Configure PIL to support large images (up to 250MP)
Image.MAX_IMAGE_PIXELS = 250_000_000


def _set_default_env(key: str, value: str) -> None:
    """Set an env var only if the user hasn't set it."""
    if os.environ.get(key) is None:
        os.environ[key] = value


# Keep torch from grabbing every core when the CLIP label source is active
_cpu_count = os.cpu_count() or 4
_default_threads = max(1, min(4, _cpu_count // 2))

for _k in ("OMP_NUM_THREADS", "MKL_NUM_THREADS", "OPENBLAS_NUM_THREADS"):
    _set_default_env(_k, str(_default_threads))

_set_default_env("TOKENIZERS_PARALLELISM", "false")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from photosort.api.dependencies import get_library
from photosort.api.routes import collections, images, organize, people, stats
from photosort.config import APP_NAME, APP_VERSION, UPLOADS_DIR
from photosort.logging_config import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    library = app.dependency_overrides.get(get_library, get_library)()
    if library.start_label_source_warmup():
        logger.info(f"Warming up label source: {library.label_source.name}")
    yield


app = FastAPI(
    title=f"{APP_NAME} API",
    description="Upload photos, auto-tag them and sort them into category folders",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(images.router)
app.include_router(organize.router)
app.include_router(collections.router)
app.include_router(people.router)
app.include_router(stats.router)

app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": f"{APP_NAME} API", "status": "running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
