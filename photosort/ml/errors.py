"""Exception types raised by the classification and fanout layers."""


class PhotoSortError(Exception):
    """Base class for PhotoSort-AI errors."""
    pass


class InvalidEmbedding(PhotoSortError, ValueError):
    """Raised when an embedding is too short or holds NaN or infinite values."""

    def __init__(self, length: int, minimum: int, reason: str = ""):
        self.length = length
        self.minimum = minimum
        self.reason = reason
        super().__init__(
            reason or f"Embedding has {length} values, at least {minimum} are required"
        )


class LabelSourceUnavailable(PhotoSortError):
    """Raised by a label source that cannot answer right now."""
    pass


class PartialFanoutFailure(PhotoSortError):
    """Raised when a caller asks for strict fanout and some destinations failed."""

    def __init__(self, filename: str, errors: list):
        self.filename = filename
        self.errors = errors
        super().__init__(
            f"{len(errors)} destination(s) failed for {filename}: "
            + "; ".join(str(e) for e in errors)
        )


class ImageNotFound(PhotoSortError, LookupError):
    """Raised when a filename is absent from every category collection."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Image not found: {filename}")
