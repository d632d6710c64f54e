# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""
In-memory person identity registry.

Person images are grouped by comparing 8-value embedding signatures. The
registry is scanned in insertion order and the first identity above the
similarity threshold wins, so the grouping depends on the order images are
presented in. Bulk reprocessing resets the registry and replays images one
at a time to keep that order stable.
"""

import logging
import threading
from typing import Dict, List, Optional, Sequence

import numpy as np

from photosort.config import PERSON_ID_PREFIX, PERSON_ID_WIDTH, PERSON_SIMILARITY_THRESHOLD
from photosort.ml.embeddings.signature import SignatureEngine
from photosort.ml.types import PersonIdentity

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Maps stable person ids (``person_0001``...) to embedding signatures."""

    def __init__(
        self,
        signature_engine: Optional[SignatureEngine] = None,
        threshold: float = PERSON_SIMILARITY_THRESHOLD,
    ):
        self.signatures = signature_engine or SignatureEngine()
        self.threshold = threshold
        # dicts keep insertion order, which is the scan order
        self._identities: Dict[str, np.ndarray] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)

    def _mint_id(self) -> str:
        return f"{PERSON_ID_PREFIX}{len(self._identities) + 1:0{PERSON_ID_WIDTH}d}"

    def resolve(self, embedding: Sequence[float]) -> str:
        """
        Return the person id for ``embedding``, minting a new one if needed.

        The scan and the insert happen under one lock so two concurrent
        uploads of the same face cannot mint two identities.

        Raises:
            InvalidEmbedding: if the embedding is too short for a signature
        """
        signature = self.signatures.signature(embedding)

        with self._lock:
            for person_id, stored in self._identities.items():
                similarity = self.signatures.similarity(signature, stored)
                if similarity > self.threshold:
                    logger.info(f"Matched existing person {person_id} (similarity: {similarity:.2f})")
                    return person_id

            person_id = self._mint_id()
            self._identities[person_id] = signature
            logger.info(f"Created new person: {person_id}")
            return person_id

    def get(self, person_id: str) -> Optional[PersonIdentity]:
        with self._lock:
            signature = self._identities.get(person_id)
        if signature is None:
            return None
        return PersonIdentity(person_id=person_id, signature=tuple(float(v) for v in signature))

    def list(self) -> List[str]:
        """All known person ids in the order they were first seen."""
        with self._lock:
            return list(self._identities.keys())

    def reset(self) -> None:
        """Forget every identity. Only bulk reprocessing should call this."""
        with self._lock:
            count = len(self._identities)
            self._identities.clear()
        logger.info(f"Identity registry reset ({count} identities cleared)")
