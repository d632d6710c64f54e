"""Filename keyword classification."""

from photosort.ml.classifiers.keyword_classifier import KeywordClassifier

__all__ = ["KeywordClassifier"]
