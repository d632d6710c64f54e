# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""Common interface for anything that proposes categories for an image."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from photosort.ml.types import CategoryMatch


class ModelStatus(str, Enum):
    """Lifecycle of a label source's backing model."""
    PENDING = "pending"    # Not started
    LOADING = "loading"    # Loading into memory
    READY = "ready"        # Fully loaded and ready
    ERROR = "error"        # Failed to load


class LabelSource(ABC):
    """
    Adapter that yields CategoryMatch tuples for an image.

    ``classify`` fails soft: implementations return an empty list on any
    internal error. They may raise LabelSourceUnavailable when they are
    not ready, which callers treat as a signal to fall back.
    """

    name: str = "label_source"

    def initialize(self) -> bool:
        """Prepare the source. Idempotent and safe to call repeatedly."""
        return True

    def is_ready(self) -> bool:
        return True

    @abstractmethod
    def classify(
        self,
        image_path: Optional[str],
        filename_hint: str,
        embedding: Optional[Sequence[float]] = None,
    ) -> List[CategoryMatch]:
        """Return zero or more category matches for the image."""

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": (ModelStatus.READY if self.is_ready() else ModelStatus.PENDING).value,
            "ready": self.is_ready(),
        }
