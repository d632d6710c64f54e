# PhotoSort-AI
# Copyright (c) 2026 Abhishek Anand. Licensed under AGPL-3.0.
"""
Multi-destination fanout of classified images.

One image is indexed into every category document it matches and, when
organized, copied into one folder per destination. Writes are best effort:
a failing destination is reported and the remaining ones still run.

Consistency rules:
- Filename is the dedup key inside a destination, so sync is idempotent
- remove() pulls the image out of every document, not only the ones its
  current tags point at, and deletes documents that become empty
- retag() is remove + reclassify + sync, never an in-place edit, because
  new tags can move an image into destinations it was never in
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from photosort.config import CATEGORY_FOLDERS, ORGANIZED_DIR
from photosort.ml.classification import ClassificationEngine
from photosort.ml.embeddings.pseudo_embedding import pseudo_embedding
from photosort.ml.errors import ImageNotFound
from photosort.ml.storage import collection_store
from photosort.ml.storage.collection_store import CollectionStore
from photosort.ml.types import (
    CATEGORY_ORDER,
    AutoTags,
    Category,
    Destination,
    DestinationResult,
    ImageRecord,
    OrganizeResult,
    SyncResult,
    normalize_tags,
)
from photosort.ml.utils.path_utils import is_within, safe_path_segment, validate_photo_path

logger = logging.getLogger(__name__)

UNCATEGORIZED_DESTINATION = Destination(
    collection_store.UNCATEGORIZED, "uncategorized", "uncategorized"
)


@dataclass
class RetagResult:
    record: ImageRecord
    previous: List[str] = field(default_factory=list)
    sync: SyncResult = field(default_factory=SyncResult)
    method: str = "none"


def destinations(auto_tags: AutoTags, custom_tags: Optional[Sequence[str]] = None) -> List[Destination]:
    """
    Every destination an image belongs to, in a stable order.

    Categories come first (vehicles, pets, nature, people), then one
    ``tags/<tag>`` per custom tag in input order. An image with nothing
    goes to ``uncategorized``. Index 0 is the image's primary folder.
    """
    result: List[Destination] = []

    for category in CATEGORY_ORDER:
        if not auto_tags.has(category):
            continue
        folder = CATEGORY_FOLDERS[category.value]
        if category == Category.PERSON:
            person_id = auto_tags.person_id
            result.append(Destination(collection_store.PERSON, person_id, f"{folder}/{person_id}"))
            continue

        sub_type = auto_tags.sub_types.get(category.value)
        if sub_type:
            segment = safe_path_segment(sub_type)
            result.append(Destination(category.value, sub_type, f"{folder}/{segment}"))
        else:
            result.append(Destination(category.value, category.value, folder))

    for tag in normalize_tags(custom_tags):
        try:
            segment = safe_path_segment(tag)
        except ValueError:
            logger.warning(f"Skipping custom tag with no usable folder name: {tag!r}")
            continue
        result.append(Destination(collection_store.TAG, tag, f"tags/{segment}"))

    if not result:
        result.append(UNCATEGORIZED_DESTINATION)

    return result


def primary_destination(auto_tags: AutoTags, custom_tags: Optional[Sequence[str]] = None) -> Destination:
    return destinations(auto_tags, custom_tags)[0]


class FanoutOrganizer:
    """Keeps category documents and organized folders in step with AutoTags."""

    def __init__(
        self,
        store: CollectionStore,
        engine: Optional[ClassificationEngine] = None,
        organized_dir: Union[str, Path] = ORGANIZED_DIR,
        url_prefix: str = "/uploads/",
    ):
        self.store = store
        self.engine = engine
        self.organized_dir = Path(organized_dir)
        self.url_prefix = url_prefix

    def destinations(self, auto_tags: AutoTags, custom_tags: Optional[Sequence[str]] = None) -> List[Destination]:
        return destinations(auto_tags, custom_tags)

    def image_url(self, filename: str) -> str:
        return f"{self.url_prefix}{filename}"

    def sync(self, record: ImageRecord) -> SyncResult:
        """
        Upsert the record into the document of every destination.

        A destination that already holds this filename is left untouched.
        Failures are collected per destination instead of raised.
        """
        result = SyncResult()
        document = record.to_document()
        sample_url = self.image_url(record.filename)

        for destination in self.destinations(record.auto_tags, record.tags):
            try:
                added = self.store.add_image(
                    destination.collection, destination.key, document, sample_url
                )
            except Exception as e:
                logger.error(f"Failed to add {record.filename} to {destination.path}: {e}")
                result.errors.append({"destination": destination.path, "error": str(e)})
                continue

            if added:
                result.added_to.append(destination.path)
            else:
                result.skipped.append(destination.path)

        logger.info(
            f"Synced {record.filename}: added to {result.added_to or 'nothing'}"
            + (f", already in {result.skipped}" if result.skipped else "")
        )
        return result

    def get_record(self, filename: str) -> ImageRecord:
        image = self.store.find_image(filename)
        if image is None:
            raise ImageNotFound(filename)
        return ImageRecord.from_document(image)

    def remove(self, filename: str) -> Dict:
        """
        Remove an image from every category document.

        Raises:
            ImageNotFound: if no document holds the filename
        """
        affected = self.store.remove_image(filename)
        if not affected:
            raise ImageNotFound(filename)
        logger.info(f"Removed {filename} from {len(affected)} document(s)")
        return {"success": True, "removed_from": [f"{c}/{k}" for c, k in affected]}

    def retag(self, filename: str, new_custom_tags: Sequence[str]) -> RetagResult:
        """
        Replace an image's custom tags and re-run classification and fanout.

        The image is removed everywhere first, its stale organized copies
        are deleted and it is reinserted unorganized.
        """
        if self.engine is None:
            raise RuntimeError("retag needs a ClassificationEngine")

        record = self.get_record(filename)
        previous = [f"{c}/{k}" for c, k in self.store.locations(filename)]

        self.remove_organized_copies(record)
        self.remove(filename)

        tags = normalize_tags(new_custom_tags)
        embedding = record.embedding or pseudo_embedding(record.original_name)
        analysis = self.engine.analyze(
            embedding, record.original_name, tags, image_path=record.filepath
        )

        updated = ImageRecord(
            filename=record.filename,
            original_name=record.original_name,
            filepath=record.filepath,
            mimetype=record.mimetype,
            size=record.size,
            embedding=embedding,
            tags=tags,
            auto_tags=analysis.auto_tags,
            organized=False,
            organized_paths=[],
            uploaded_at=record.uploaded_at,
        )
        sync_result = self.sync(updated)
        logger.info(f"Retagged {filename}: {previous} -> {sync_result.added_to}")
        return RetagResult(updated, previous, sync_result, analysis.method)

    def organize(self, filename: str) -> OrganizeResult:
        """
        Copy a stored image into every destination folder.

        Raises:
            ImageNotFound: if no document holds the filename
        """
        return self.organize_record(self.get_record(filename))

    def organize_record(self, record: ImageRecord, update_store: bool = True) -> OrganizeResult:
        """
        Copy ``record``'s file into ``organized/<destination>/<filename>``.

        Copies overwrite (last write wins). There is no rollback: if one
        destination fails the others are kept and the failure is reported.
        """
        result = OrganizeResult(record.filename)
        targets = self.destinations(record.auto_tags, record.tags)

        try:
            source = validate_photo_path(record.filepath)
        except ValueError as e:
            logger.error(f"Cannot organize {record.filename}: {e}")
            result.results = [DestinationResult(t.path, error=str(e)) for t in targets]
            return result

        for target in targets:
            target_dir = self.organized_dir / target.path
            target_path = target_dir / record.filename
            try:
                if not is_within(target_path, self.organized_dir):
                    raise ValueError(f"Destination escapes organized folder: {target.path}")
                target_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target_path)
                result.results.append(DestinationResult(target.path, path=str(target_path.resolve())))
            except (OSError, ValueError) as e:
                logger.error(f"Failed to copy {record.filename} to {target.path}: {e}")
                result.results.append(DestinationResult(target.path, error=str(e)))

        record.organized = result.organized
        record.organized_paths = result.organized_paths
        if update_store:
            self.store.update_image(
                record.filename,
                {"organized": record.organized, "organizedPaths": record.organized_paths},
            )

        logger.info(
            f"Organized {record.filename} into {len(result.organized_paths)}/{len(targets)} folder(s)"
        )
        return result

    def remove_organized_copies(self, record: ImageRecord) -> List[str]:
        """Delete the organized copies recorded for an image. Returns paths deleted."""
        deleted = []
        for raw in record.organized_paths:
            path = Path(raw)
            if not is_within(path, self.organized_dir):
                logger.warning(f"Refusing to delete path outside organized folder: {raw}")
                continue
            try:
                if path.is_file():
                    path.unlink()
                    deleted.append(raw)
                self._prune_empty_dirs(path.parent)
            except OSError as e:
                logger.warning(f"Failed to delete organized copy {raw}: {e}")
        return deleted

    def _prune_empty_dirs(self, directory: Path) -> None:
        root = self.organized_dir.resolve()
        current = directory.resolve()
        while current != root and is_within(current, root):
            try:
                current.rmdir()
            except OSError:
                break
            current = current.parent
