"""ML utilities module."""

from photosort.ml.utils.path_utils import is_within, safe_filename, safe_path_segment, validate_photo_path

__all__ = ["is_within", "safe_filename", "safe_path_segment", "validate_photo_path"]
