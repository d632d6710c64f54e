"""Label sources: pluggable proposers of image categories."""

from typing import Optional

from photosort.ml.label_sources.base import LabelSource, ModelStatus
from photosort.ml.label_sources.clip import ClipLabelSource
from photosort.ml.label_sources.hash_bucket import HashBucketLabelSource
from photosort.ml.label_sources.keyword import KeywordLabelSource

__all__ = [
    "LabelSource",
    "ModelStatus",
    "ClipLabelSource",
    "HashBucketLabelSource",
    "KeywordLabelSource",
    "create_label_source",
]


def create_label_source(name: str) -> Optional[LabelSource]:
    """Build the configured model label source, or None for keyword-only mode."""
    name = (name or "keyword").lower()
    if name == "clip":
        return ClipLabelSource()
    if name == "keyword":
        return None
    raise ValueError(f"Unknown label source: {name}")
