"""Embedding signatures and pseudo embeddings."""

from photosort.ml.embeddings.pseudo_embedding import normalize_filename, pseudo_embedding
from photosort.ml.embeddings.signature import SignatureEngine, embedding_to_list, validate_embedding

__all__ = [
    "SignatureEngine",
    "embedding_to_list",
    "normalize_filename",
    "pseudo_embedding",
    "validate_embedding",
]
