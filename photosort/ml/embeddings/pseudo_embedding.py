"""Deterministic stand-in embeddings for images uploaded without one."""

import re
from typing import List

import numpy as np

from photosort.config import PSEUDO_EMBEDDING_SIZE

_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_LONG_NUMBER = re.compile(r"\d{10,}")
_COUNTER_SUFFIX = re.compile(r"-\d{2}\.")


def normalize_filename(filename: str) -> str:
    """
    Normalize a filename so that near-identical names share an embedding.

    Dates, upload timestamps and ``-NN.`` counters are dropped; every
    WhatsApp export collapses to a single name.
    """
    normalized = filename.lower()

    if "whatsapp" in normalized:
        normalized = "whatsapp_image"

    normalized = _DATE.sub("", normalized)
    normalized = _LONG_NUMBER.sub("", normalized)
    normalized = _COUNTER_SUFFIX.sub(".", normalized)

    return normalized


def pseudo_embedding(filename: str, size: int = PSEUDO_EMBEDDING_SIZE) -> List[float]:
    """Sine-wave vector seeded by the character codes of the normalized filename."""
    seed = sum(ord(ch) for ch in normalize_filename(filename))
    steps = np.arange(1, size + 1, dtype=np.float64)
    values = np.sin(seed * steps * 0.01) * 0.5 + 0.5
    return [round(float(v), 4) for v in values]
