"""Label source backed by filename keywords. Always available."""

from typing import List, Optional, Sequence

from photosort.ml.classifiers.keyword_classifier import KeywordClassifier
from photosort.ml.label_sources.base import LabelSource
from photosort.ml.types import CategoryMatch


class KeywordLabelSource(LabelSource):
    name = "keyword"

    def __init__(self, classifier: Optional[KeywordClassifier] = None):
        self.classifier = classifier or KeywordClassifier()

    def classify(
        self,
        image_path: Optional[str],
        filename_hint: str,
        embedding: Optional[Sequence[float]] = None,
    ) -> List[CategoryMatch]:
        return [m for m in self.classifier.classify(filename_hint) if not m.is_other]
