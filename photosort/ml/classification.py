# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""
Multi-category classification of uploaded images.

Tiers, first one with an answer wins:
1. Custom tags that name a category (override everything else)
2. The active model label source, if configured and ready
3. Filename keywords
4. Hash bucket over filename + embedding (guarantees some category)

Matches are merged into one AutoTags record. An image can end up in
several categories at once. A person match resolves a person id through
the identity registry, which may mint a new identity.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from photosort.config import CATEGORY_OBJECT_TOKENS, CATEGORY_TAG_KEYWORDS, CLASSIFICATION_CONFIG
from photosort.ml.errors import LabelSourceUnavailable
from photosort.ml.identity_registry import IdentityRegistry
from photosort.ml.label_sources.base import LabelSource
from photosort.ml.label_sources.hash_bucket import HashBucketLabelSource
from photosort.ml.label_sources.keyword import KeywordLabelSource
from photosort.ml.types import (
    CATEGORY_ORDER,
    AutoTags,
    Category,
    CategoryMatch,
    ClassificationResult,
    normalize_tags,
)

logger = logging.getLogger(__name__)


def categories_from_tags(custom_tags: Optional[Iterable[str]]) -> List[Category]:
    """Categories explicitly named by custom tags, in fixed category order."""
    named = set()
    for tag in normalize_tags(list(custom_tags or [])):
        for category, keywords in CATEGORY_TAG_KEYWORDS.items():
            if any(keyword in tag for keyword in keywords):
                named.add(Category(category))
    return [c for c in CATEGORY_ORDER if c in named]


class ClassificationEngine:
    """Turns label source output into AutoTags using a fixed fallback order."""

    def __init__(
        self,
        registry: IdentityRegistry,
        label_source: Optional[LabelSource] = None,
        keyword_source: Optional[KeywordLabelSource] = None,
        hash_source: Optional[HashBucketLabelSource] = None,
        min_confidence: float = CLASSIFICATION_CONFIG["label_min_confidence"],
        hash_fallback: bool = CLASSIFICATION_CONFIG["hash_fallback"],
    ):
        self.registry = registry
        self.label_source = label_source
        self.keyword_source = keyword_source or KeywordLabelSource()
        self.hash_source = hash_source or HashBucketLabelSource()
        self.min_confidence = min_confidence
        self.hash_fallback = hash_fallback

    def _query(
        self,
        source: LabelSource,
        image_path: Optional[str],
        filename: str,
        embedding: Sequence[float],
    ) -> List[CategoryMatch]:
        """Ask a label source for matches. Any failure counts as no answer."""
        if not source.is_ready():
            logger.debug(f"Label source '{source.name}' not ready, falling back")
            return []
        try:
            matches = source.classify(image_path, filename, embedding)
        except LabelSourceUnavailable as e:
            logger.info(f"Label source '{source.name}' unavailable: {e}")
            return []
        except Exception as e:
            logger.warning(f"Label source '{source.name}' failed for {filename}: {e}")
            return []

        return [
            m for m in matches or []
            if not m.is_other and m.confidence >= self.min_confidence
        ]

    def build_auto_tags(
        self,
        matches: Sequence[CategoryMatch],
        embedding: Sequence[float],
    ) -> AutoTags:
        """Merge matches into AutoTags. Resolves a person id for person matches."""
        best: Dict[Category, CategoryMatch] = {}
        for match in matches:
            if match.is_other:
                continue
            current = best.get(match.category)
            if current is None or match.confidence > current.confidence:
                best[match.category] = match

        auto_tags = AutoTags()
        for category in CATEGORY_ORDER:
            match = best.get(category)
            if match is None:
                continue
            if category == Category.VEHICLE:
                auto_tags.vehicle = True
            elif category == Category.PET:
                auto_tags.pets = True
            elif category == Category.NATURE:
                auto_tags.nature = True
            elif category == Category.PERSON:
                auto_tags.person_id = self.registry.resolve(embedding)
            if match.sub_type:
                auto_tags.sub_types[category.value] = match.sub_type
            auto_tags.objects.extend(CATEGORY_OBJECT_TOKENS[category.value])

        if not best:
            auto_tags.objects.append("uncategorized")

        return auto_tags

    def analyze(
        self,
        embedding: Sequence[float],
        filename: str,
        custom_tags: Optional[Sequence[str]] = None,
        image_path: Optional[str] = None,
        label_source: Optional[LabelSource] = None,
    ) -> ClassificationResult:
        """
        Classify one image.

        Args:
            embedding: Image embedding (real or pseudo)
            filename: Original filename, used for keyword and hash tiers
            custom_tags: User supplied tags
            image_path: Path to the image file, for model label sources
            label_source: Overrides the engine's configured label source

        Returns:
            ClassificationResult with the AutoTags and the tier that decided
        """
        embedding = [] if embedding is None else [float(v) for v in embedding]

        named = categories_from_tags(custom_tags)
        if named:
            logger.info(f"Custom tags name {[c.value for c in named]} for {filename}")
            matches = [CategoryMatch(c, 1.0, matched="custom_tag") for c in named]
            return ClassificationResult(self.build_auto_tags(matches, embedding), "override")

        source = label_source or self.label_source
        if source is not None:
            matches = self._query(source, image_path, filename, embedding)
            if matches:
                return ClassificationResult(self.build_auto_tags(matches, embedding), "label_source")

        matches = self._query(self.keyword_source, image_path, filename, embedding)
        if matches:
            return ClassificationResult(self.build_auto_tags(matches, embedding), "keyword")

        if self.hash_fallback:
            matches = self._query(self.hash_source, image_path, filename, embedding)
            if matches:
                logger.info(f"No signal for {filename}, hash bucket: {matches[0].category.value}")
                return ClassificationResult(self.build_auto_tags(matches, embedding), "hash")

        logger.info(f"No category match for {filename}, marking as uncategorized")
        return ClassificationResult(self.build_auto_tags([], embedding), "none")

    def classify(
        self,
        embedding: Sequence[float],
        filename: str,
        custom_tags: Optional[Sequence[str]] = None,
        image_path: Optional[str] = None,
        label_source: Optional[LabelSource] = None,
    ) -> AutoTags:
        return self.analyze(embedding, filename, custom_tags, image_path, label_source).auto_tags
