# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Dict, Set, Tuple


def get_app_data_dir() -> Path:
    """
    Get the platform-specific application data directory.

    Returns:
    - macOS: ~/Library/Application Support/PhotoSort-AI
    - Windows: %APPDATA%/PhotoSort-AI
    - Linux: ~/.local/share/PhotoSort-AI (or $XDG_DATA_HOME/PhotoSort-AI)

    Can be overridden with PHOTOSORT_DATA_DIR environment variable.
    """
    if env_dir := os.environ.get("PHOTOSORT_DATA_DIR"):
        return Path(env_dir).resolve()

    system = platform.system()

    if system == "Darwin":  # macOS
        base = Path.home() / "Library" / "Application Support"
    elif system == "Windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            base = Path(appdata)
        else:
            base = Path.home() / "AppData" / "Roaming"
    else:  # Linux and others
        xdg_data = os.environ.get("XDG_DATA_HOME")
        if xdg_data:
            base = Path(xdg_data)
        else:
            base = Path.home() / ".local" / "share"

    return base / "PhotoSort-AI"


APP_NAME = "PhotoSort-AI"
APP_VERSION = "1.0.0"

APP_DATA_DIR = get_app_data_dir()
APP_DATA_DIR.mkdir(parents=True, exist_ok=True)

DB_PATH = APP_DATA_DIR / "photosort.db"
UPLOADS_DIR = APP_DATA_DIR / "uploads"
ORGANIZED_DIR = APP_DATA_DIR / "organized"
LOG_DIR = APP_DATA_DIR / "logs"

if env_db := os.environ.get("PHOTOSORT_DB_PATH"):
    DB_PATH = Path(env_db).resolve()
if env_uploads := os.environ.get("PHOTOSORT_UPLOADS_DIR"):
    UPLOADS_DIR = Path(env_uploads).resolve()
if env_organized := os.environ.get("PHOTOSORT_ORGANIZED_DIR"):
    ORGANIZED_DIR = Path(env_organized).resolve()
if env_log := os.environ.get("PHOTOSORT_LOG_DIR"):
    LOG_DIR = Path(env_log).resolve()

UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
ORGANIZED_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Upload limits
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB
ALLOWED_IMAGE_EXTENSIONS: Set[str] = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# Identity grouping. The threshold is an empirical constant, not derived.
PERSON_SIMILARITY_THRESHOLD = 0.85
SIGNATURE_DIMENSIONS = 8
PERSON_ID_PREFIX = "person_"
PERSON_ID_WIDTH = 4

# Synthetic embeddings for images uploaded without one
PSEUDO_EMBEDDING_SIZE = 128

# Hash bucket fallback: abs(hash) % 100 is split at these boundaries into
# nature / pet / person / vehicle, in that order.
HASH_BUCKET_BOUNDARIES: Tuple[int, int, int] = (25, 50, 75)
HASH_BUCKET_CATEGORIES: Tuple[str, str, str, str] = ("nature", "pet", "person", "vehicle")
HASH_EMBEDDING_VALUES = 10

CLASSIFICATION_CONFIG = {
    # Matches from a model label source below this confidence are ignored
    "label_min_confidence": 0.1,
    # Assign a hash bucket category when no other signal is available
    "hash_fallback": True,
}

# Active label source: "keyword" (filename heuristics only) or "clip"
LABEL_SOURCE = os.environ.get("PHOTOSORT_LABEL_SOURCE", "keyword").strip().lower()

CLIP_LABEL_CONFIG = {
    "model_name": os.environ.get("PHOTOSORT_CLIP_MODEL", "openai/clip-vit-base-patch32"),
    "min_confidence": 0.25,
    "max_matches": 4,
}

# Custom tags naming one of these override automatic detection.
# A tag matches a category when it contains any of its keywords.
CATEGORY_TAG_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "person": ("person", "people", "family", "portrait", "selfie", "face",
               "man", "woman", "child", "kid", "baby"),
    "pet": ("pet", "dog", "cat", "puppy", "kitten", "animal", "bird", "fish",
            "rabbit", "hamster"),
    "nature": ("nature", "landscape", "flower", "tree", "beach", "mountain",
               "sunset", "sunrise", "forest", "ocean", "sky", "garden", "park"),
    "vehicle": ("vehicle", "car", "bike", "truck", "motorcycle", "bus", "train",
                "plane", "boat", "ship"),
}

# Free-text descriptors recorded in AutoTags.objects per matched category
CATEGORY_OBJECT_TOKENS: Dict[str, Tuple[str, ...]] = {
    "vehicle": ("vehicle",),
    "pet": ("animal",),
    "nature": ("landscape", "outdoor"),
    "person": ("portrait",),
}

# Top-level organized folder per category
CATEGORY_FOLDERS: Dict[str, str] = {
    "vehicle": "vehicles",
    "pet": "pets",
    "nature": "nature",
    "person": "people",
}
