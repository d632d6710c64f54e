"""Domain types shared by the classifiers, the identity registry and the organizer."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from photosort.ml.errors import PartialFanoutFailure


class Category(str, Enum):
    """Category a label source can propose for an image."""
    PERSON = "person"
    PET = "pet"
    NATURE = "nature"
    VEHICLE = "vehicle"
    OTHER = "other"


# Fixed order used for AutoTags.objects, flat category lists and destinations
CATEGORY_ORDER = (Category.VEHICLE, Category.PET, Category.NATURE, Category.PERSON)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CategoryMatch:
    """One category proposed for an image by a label source."""
    category: Category
    confidence: float = 1.0
    sub_type: Optional[str] = None
    # Keyword or model label that produced the match (informational)
    matched: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.category, Category):
            object.__setattr__(self, "category", Category(self.category))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0, 1], got {self.confidence}")

    @property
    def is_other(self) -> bool:
        return self.category == Category.OTHER


@dataclass(frozen=True)
class PersonIdentity:
    person_id: str
    signature: tuple


@dataclass
class AutoTags:
    """
    Automatic tags for one image.

    The category flags are independent: an image may be a pet and a vehicle
    at the same time. ``objects`` holds free-text descriptors only.
    """
    person_id: Optional[str] = None
    nature: bool = False
    pets: bool = False
    vehicle: bool = False
    objects: List[str] = field(default_factory=list)
    sub_types: Dict[str, str] = field(default_factory=dict)

    def has(self, category: Category) -> bool:
        category = Category(category)
        if category == Category.PERSON:
            return self.person_id is not None
        if category == Category.PET:
            return self.pets
        if category == Category.NATURE:
            return self.nature
        if category == Category.VEHICLE:
            return self.vehicle
        return False

    def categories(self) -> List[str]:
        """Flat multi-category list in fixed category order."""
        return [c.value for c in CATEGORY_ORDER if self.has(c)]

    def labels(self) -> List[str]:
        """Display labels: categories first, then object tokens."""
        labels = self.categories()
        for token in self.objects:
            if token not in labels:
                labels.append(token)
        return labels or ["uncategorized"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "person_id": self.person_id,
            "nature": self.nature,
            "pets": self.pets,
            "vehicle": self.vehicle,
            "objects": list(self.objects),
            "sub_types": dict(self.sub_types),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AutoTags":
        data = data or {}
        return cls(
            person_id=data.get("person_id"),
            nature=bool(data.get("nature", False)),
            pets=bool(data.get("pets", False)),
            vehicle=bool(data.get("vehicle", False)),
            objects=list(data.get("objects") or []),
            sub_types=dict(data.get("sub_types") or {}),
        )


@dataclass
class ClassificationResult:
    auto_tags: AutoTags
    method: str  # override | label_source | keyword | hash | none

    @property
    def categories(self) -> List[str]:
        return self.auto_tags.categories()


def normalize_tags(tags: Optional[Sequence[str]]) -> List[str]:
    """Trim, lower-case and de-duplicate custom tags, keeping input order."""
    result: List[str] = []
    for tag in tags or []:
        if tag is None:
            continue
        cleaned = str(tag).strip().lower()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


@dataclass
class ImageRecord:
    """Full image metadata, embedded into every category document it belongs to."""
    filename: str
    original_name: str
    filepath: str
    mimetype: Optional[str] = None
    size: Optional[int] = None
    embedding: List[float] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    auto_tags: AutoTags = field(default_factory=AutoTags)
    organized: bool = False
    organized_paths: List[str] = field(default_factory=list)
    uploaded_at: str = field(default_factory=utc_now)

    def __post_init__(self):
        self.tags = normalize_tags(self.tags)

    def to_document(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "originalName": self.original_name,
            "filepath": self.filepath,
            "mimetype": self.mimetype,
            "size": self.size,
            "embedding": [float(v) for v in self.embedding],
            "tags": list(self.tags),
            "autoTags": self.auto_tags.to_dict(),
            "organized": self.organized,
            "organizedPaths": list(self.organized_paths),
            "uploadedAt": self.uploaded_at,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ImageRecord":
        return cls(
            filename=doc["filename"],
            original_name=doc.get("originalName") or doc["filename"],
            filepath=doc.get("filepath", ""),
            mimetype=doc.get("mimetype"),
            size=doc.get("size"),
            embedding=list(doc.get("embedding") or []),
            tags=list(doc.get("tags") or []),
            auto_tags=AutoTags.from_dict(doc.get("autoTags")),
            organized=bool(doc.get("organized", False)),
            organized_paths=list(doc.get("organizedPaths") or []),
            uploaded_at=doc.get("uploadedAt") or utc_now(),
        )


@dataclass(frozen=True)
class Destination:
    """A bucket an image is indexed into (collection document) and copied into (folder)."""
    collection: str
    key: str
    path: str

    def __str__(self) -> str:
        return self.path


@dataclass
class SyncResult:
    added_to: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class DestinationResult:
    """Outcome of copying one image into one destination folder."""
    destination: str
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OrganizeResult:
    filename: str
    results: List[DestinationResult] = field(default_factory=list)

    @property
    def organized_paths(self) -> List[str]:
        return [r.path for r in self.results if r.ok and r.path]

    @property
    def errors(self) -> List[DestinationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def organized(self) -> bool:
        return bool(self.organized_paths)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise PartialFanoutFailure(
                self.filename, [f"{r.destination}: {r.error}" for r in self.errors]
            )
