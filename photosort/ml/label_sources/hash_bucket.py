"""
Hash bucket label source.

Used as the last resort when neither a model nor the filename says
anything. The filename and the first few embedding values are hashed into
a signed 32-bit integer (same arithmetic as a JavaScript string hash),
``abs(hash) % 100`` picks a quartile and each quartile maps to a fixed
category. The same filename and embedding always land in the same bucket.
"""

import math
from typing import List, Optional, Sequence, Tuple

from photosort.config import HASH_BUCKET_BOUNDARIES, HASH_BUCKET_CATEGORIES, HASH_EMBEDDING_VALUES
from photosort.ml.label_sources.base import LabelSource
from photosort.ml.types import Category, CategoryMatch


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _mix(current: int, value: int) -> int:
    return _to_int32((current << 5) - current + value)


def hash_value(
    filename: str,
    embedding: Optional[Sequence[float]] = None,
    embedding_values: int = HASH_EMBEDDING_VALUES,
) -> int:
    """Signed 32-bit hash of the filename and leading embedding values."""
    h = 0
    for ch in filename:
        h = _mix(h, ord(ch))
    values = [] if embedding is None else list(embedding)
    for v in values[:embedding_values]:
        h = _mix(h, math.floor(float(v) * 1000))
    return h


class HashBucketLabelSource(LabelSource):
    name = "hash"

    def __init__(
        self,
        boundaries: Tuple[int, ...] = HASH_BUCKET_BOUNDARIES,
        categories: Tuple[str, ...] = HASH_BUCKET_CATEGORIES,
    ):
        if len(categories) != len(boundaries) + 1:
            raise ValueError("Need exactly one more bucket category than boundaries")
        self.boundaries = tuple(boundaries)
        self.categories = tuple(Category(c) for c in categories)

    def bucket(self, filename: str, embedding: Optional[Sequence[float]] = None) -> Category:
        value = abs(hash_value(filename, embedding)) % 100
        for boundary, category in zip(self.boundaries, self.categories):
            if value < boundary:
                return category
        return self.categories[-1]

    def classify(
        self,
        image_path: Optional[str],
        filename_hint: str,
        embedding: Optional[Sequence[float]] = None,
    ) -> List[CategoryMatch]:
        if embedding is None or len(embedding) == 0:
            return []
        category = self.bucket(filename_hint, embedding)
        return [CategoryMatch(category, 1.0, matched="hash")]
