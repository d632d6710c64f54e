"""Compact embedding signatures for fast identity comparison."""

from typing import List, Sequence

import numpy as np

from photosort.config import SIGNATURE_DIMENSIONS
from photosort.ml.errors import InvalidEmbedding


def validate_embedding(embedding: Sequence[float], minimum: int = SIGNATURE_DIMENSIONS) -> np.ndarray:
    """
    Flatten an embedding (list, tuple or numpy array) to float64.

    Raises:
        InvalidEmbedding: if it has fewer than ``minimum`` values or any
            value is NaN or infinite
    """
    values = np.asarray(embedding, dtype=np.float64).ravel()
    if values.size < minimum:
        raise InvalidEmbedding(int(values.size), minimum)
    if not np.isfinite(values).all():
        bad = int(np.count_nonzero(~np.isfinite(values)))
        raise InvalidEmbedding(
            int(values.size), minimum, reason=f"Embedding has {bad} NaN or infinite value(s)"
        )
    return values


def embedding_to_list(embedding: Sequence[float], minimum: int = SIGNATURE_DIMENSIONS) -> List[float]:
    """Validated embedding as plain floats, ready for JSON documents."""
    return [float(v) for v in validate_embedding(embedding, minimum)]


class SignatureEngine:
    """Reduce embeddings of any length to a fixed-size signature and compare them."""

    def __init__(self, dimensions: int = SIGNATURE_DIMENSIONS):
        if dimensions < 1:
            raise ValueError("Signature needs at least one dimension")
        self.dimensions = dimensions

    def signature(self, embedding: Sequence[float]) -> np.ndarray:
        """
        Average each of ``dimensions`` contiguous segments of the embedding.

        Segment size is ``len(embedding) // dimensions``; trailing values that
        do not fill a whole segment are ignored.

        Raises:
            InvalidEmbedding: if the embedding has fewer values than dimensions,
                or any NaN or infinite value
        """
        values = validate_embedding(embedding, self.dimensions)

        segment_size = values.size // self.dimensions
        trimmed = values[: segment_size * self.dimensions]
        return trimmed.reshape(self.dimensions, segment_size).mean(axis=1)

    @staticmethod
    def similarity(sig1: Sequence[float], sig2: Sequence[float]) -> float:
        """Cosine similarity in [-1, 1]; 0 if lengths differ or either norm is 0."""
        a = np.asarray(sig1, dtype=np.float64).ravel()
        b = np.asarray(sig2, dtype=np.float64).ravel()
        if a.size != b.size:
            return 0.0

        magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
        if magnitude <= 0:
            return 0.0
        return float(np.clip(np.dot(a, b) / magnitude, -1.0, 1.0))
