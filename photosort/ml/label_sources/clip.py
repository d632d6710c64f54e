# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""CLIP zero-shot category classification."""

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from photosort.config import CLIP_LABEL_CONFIG
from photosort.ml.label_sources.base import LabelSource, ModelStatus
from photosort.ml.types import Category, CategoryMatch

logger = logging.getLogger(__name__)


class ClipLabelSource(LabelSource):
    """
    Zero-shot classification of an image against category prompts.

    Each prompt belongs to a (category, sub_type) pair. Prompt probabilities
    are summed per pair and the best sub-type of each category is reported.

    The model loads once. ``initialize`` holds a lock for the whole load so
    concurrent callers wait for the same load instead of starting another;
    callers that must not block check ``is_ready`` and fall back instead.
    """

    name = "clip"

    # (category, sub_type) -> prompts
    PROMPTS: Dict[Tuple[str, Optional[str]], List[str]] = {
        ("person", None): [
            "a photo of a person",
            "a portrait photo of a face",
            "a selfie",
            "a group photo of people",
        ],
        ("pet", "dog"): ["a photo of a dog", "a photo of a puppy"],
        ("pet", "cat"): ["a photo of a cat", "a photo of a kitten"],
        ("pet", "bird"): ["a photo of a pet bird", "a photo of a parrot"],
        ("pet", "fish"): ["a photo of a fish in an aquarium"],
        ("nature", "garden"): ["a photo of flowers in a garden"],
        ("nature", "beach"): ["a photo of a beach", "a photo of the sea shore"],
        ("nature", "mountain"): ["a photo of mountains", "a mountain landscape"],
        ("nature", "forest"): ["a photo of a forest", "trees in a forest"],
        ("nature", "water"): ["a photo of a lake", "a photo of a river or waterfall"],
        ("vehicle", "car"): ["a photo of a car"],
        ("vehicle", "motorcycle"): ["a photo of a motorcycle", "a photo of a scooter"],
        ("vehicle", "truck"): ["a photo of a truck"],
        ("vehicle", "bus"): ["a photo of a bus"],
        ("vehicle", "aircraft"): ["a photo of an airplane"],
        ("vehicle", "boat"): ["a photo of a boat", "a photo of a ship"],
        ("vehicle", "train"): ["a photo of a train"],
        ("vehicle", "bicycle"): ["a photo of a bicycle"],
        ("other", None): [
            "a photo of a document",
            "a screenshot",
            "a photo of food",
            "a photo of an indoor room",
        ],
    }

    def __init__(
        self,
        model_name: str = CLIP_LABEL_CONFIG["model_name"],
        min_confidence: float = CLIP_LABEL_CONFIG["min_confidence"],
        max_matches: int = CLIP_LABEL_CONFIG["max_matches"],
    ):
        self.model_name = model_name
        self.min_confidence = min_confidence
        self.max_matches = max_matches
        self.model = None
        self.processor = None
        self.device = "cpu"
        self._prompts: List[str] = []
        self._prompt_keys: List[Tuple[str, Optional[str]]] = []
        self._status = ModelStatus.PENDING
        self._error: Optional[str] = None
        self._init_lock = threading.Lock()

    def _load_model(self) -> None:
        """Load CLIP weights and processor."""
        import torch
        from transformers import CLIPModel, CLIPProcessor

        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.model = CLIPModel.from_pretrained(self.model_name).to(self.device)
        self.processor = CLIPProcessor.from_pretrained(self.model_name)
        self.model.eval()

    def initialize(self) -> bool:
        with self._init_lock:
            if self._status == ModelStatus.READY:
                return True
            if self._status == ModelStatus.ERROR:
                return False

            self._status = ModelStatus.LOADING
            logger.info(f"Loading CLIP model {self.model_name}...")
            try:
                self._load_model()
                self._prompts = []
                self._prompt_keys = []
                for key, prompts in self.PROMPTS.items():
                    for prompt in prompts:
                        self._prompts.append(prompt)
                        self._prompt_keys.append(key)
                self._status = ModelStatus.READY
                logger.info(f"CLIP label source ready ({len(self._prompts)} prompts)")
                return True
            except Exception as e:
                self._status = ModelStatus.ERROR
                self._error = str(e)
                logger.warning(f"CLIP label source unavailable: {e}")
                return False

    def is_ready(self) -> bool:
        return self._status == ModelStatus.READY

    def _prompt_probabilities(self, image: Image.Image) -> np.ndarray:
        import torch

        inputs = self.processor(
            text=self._prompts, images=image, return_tensors="pt", padding=True
        ).to(self.device)
        with torch.no_grad():
            outputs = self.model(**inputs)
            probs = outputs.logits_per_image.softmax(dim=1)[0]
        return probs.cpu().numpy()

    def aggregate(self, probabilities: Sequence[float]) -> List[CategoryMatch]:
        """Turn per-prompt probabilities into at most one match per category."""
        per_key: Dict[Tuple[str, Optional[str]], float] = {}
        for key, prob in zip(self._prompt_keys, probabilities):
            per_key[key] = per_key.get(key, 0.0) + float(prob)

        best: Dict[str, Tuple[float, Optional[str]]] = {}
        for (category, sub_type), score in per_key.items():
            if category == Category.OTHER.value:
                continue
            if category not in best or score > best[category][0]:
                best[category] = (score, sub_type)

        matches = [
            CategoryMatch(Category(category), min(score, 1.0), sub_type, matched="clip")
            for category, (score, sub_type) in best.items()
            if score >= self.min_confidence
        ]
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches[: self.max_matches]

    def classify(
        self,
        image_path: Optional[str],
        filename_hint: str,
        embedding: Optional[Sequence[float]] = None,
    ) -> List[CategoryMatch]:
        if not self.is_ready() or not image_path:
            return []
        try:
            with Image.open(image_path) as img:
                image = img.convert("RGB")
            matches = self.aggregate(self._prompt_probabilities(image))
            logger.debug(f"CLIP matches for {filename_hint}: {matches}")
            return matches
        except Exception as e:
            logger.error(f"CLIP classification failed for {image_path}: {e}")
            return []

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.model_name,
            "status": self._status.value,
            "ready": self.is_ready(),
            "error": self._error,
        }
