"""
Library orchestrator for PhotoSort-AI.

Wires the classification engine, the identity registry, the category
collections and the fanout organizer together and exposes the operations
the API calls: ingest, delete, retag, organize, reprocess, reorganize,
search and summaries.

Design decisions:
1. Bulk rebuilds (reprocess/reorganize) run one image at a time, in sorted
   filename order, after resetting the identity registry. Person grouping
   depends on that order.
2. A rebuild keeps what it knows about each file (original name, custom
   tags, embedding) but recomputes AutoTags from scratch.
3. Store and filesystem are not kept transactionally consistent. A record
   whose file is gone stays until the next rebuild.
"""

import logging
import re
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from photosort.config import (
    ALLOWED_IMAGE_EXTENSIONS,
    CLASSIFICATION_CONFIG,
    DB_PATH,
    ORGANIZED_DIR,
    UPLOADS_DIR,
)
from photosort.ml.classification import ClassificationEngine
from photosort.ml.embeddings.pseudo_embedding import pseudo_embedding
from photosort.ml.embeddings.signature import embedding_to_list
from photosort.ml.fanout import FanoutOrganizer, RetagResult
from photosort.ml.identity_registry import IdentityRegistry
from photosort.ml.label_sources.base import LabelSource
from photosort.ml.storage import collection_store
from photosort.ml.storage.collection_store import CollectionStore
from photosort.ml.types import AutoTags, ImageRecord, OrganizeResult, SyncResult, utc_now
from photosort.ml.utils.path_utils import is_within

logger = logging.getLogger(__name__)

# Collection name -> category label shown on images
_COLLECTION_CATEGORIES = {
    collection_store.PERSON: "person",
    collection_store.PET: "pet",
    collection_store.NATURE: "nature",
    collection_store.VEHICLE: "vehicle",
    collection_store.UNCATEGORIZED: "uncategorized",
}

# Public collection names used by the API
COLLECTION_ALIASES = {
    "persons": collection_store.PERSON,
    "pets": collection_store.PET,
    "nature": collection_store.NATURE,
    "vehicles": collection_store.VEHICLE,
    "tags": collection_store.TAG,
    "uncategorized": collection_store.UNCATEGORIZED,
}


@dataclass
class IngestResult:
    record: ImageRecord
    sync: SyncResult
    method: str


class PhotoLibrary:
    """Photo library backed by category collections and organized folders."""

    def __init__(
        self,
        db_path: Union[str, Path] = DB_PATH,
        uploads_dir: Union[str, Path] = UPLOADS_DIR,
        organized_dir: Union[str, Path] = ORGANIZED_DIR,
        label_source: Optional[LabelSource] = None,
        registry: Optional[IdentityRegistry] = None,
        hash_fallback: bool = CLASSIFICATION_CONFIG["hash_fallback"],
    ):
        self.uploads_dir = Path(uploads_dir)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.organized_dir = Path(organized_dir)
        self.organized_dir.mkdir(parents=True, exist_ok=True)

        self.store = CollectionStore(str(db_path))
        self.registry = registry or IdentityRegistry()
        self.engine = ClassificationEngine(
            self.registry, label_source=label_source, hash_fallback=hash_fallback
        )
        self.organizer = FanoutOrganizer(self.store, self.engine, self.organized_dir)
        self._bulk_lock = threading.Lock()

    @property
    def label_source(self) -> Optional[LabelSource]:
        return self.engine.label_source

    def start_label_source_warmup(self) -> Optional[threading.Thread]:
        """Load the model label source in the background. Requests fall back until it is ready."""
        source = self.engine.label_source
        if source is None or source.is_ready():
            return None
        thread = threading.Thread(target=source.initialize, name=f"{source.name}-warmup", daemon=True)
        thread.start()
        return thread

    def label_status(self) -> Dict[str, Any]:
        source = self.engine.label_source
        if source is None:
            return {
                "name": "keyword",
                "status": "ready",
                "ready": True,
                "method": "Filename only",
            }
        status = source.status()
        status["method"] = f"{source.name} + Filename" if source.is_ready() else "Filename only"
        return status

    # ------------------------------------------------------------------
    # Single image operations
    # ------------------------------------------------------------------

    def ingest(
        self,
        filepath: Union[str, Path],
        original_name: str,
        mimetype: Optional[str] = None,
        size: Optional[int] = None,
        embedding: Optional[Sequence[float]] = None,
        tags: Optional[Sequence[str]] = None,
        filename: Optional[str] = None,
    ) -> IngestResult:
        """
        Classify a stored upload and index it into its category collections.

        Raises:
            InvalidEmbedding: if an embedding is given with too few values or
                with NaN or infinite values
        """
        filepath = Path(filepath)
        filename = filename or filepath.name

        if embedding is not None and len(embedding) > 0:
            embedding = embedding_to_list(embedding)
        else:
            embedding = pseudo_embedding(original_name)

        if size is None and filepath.is_file():
            size = filepath.stat().st_size

        record = ImageRecord(
            filename=filename,
            original_name=original_name,
            filepath=str(filepath),
            mimetype=mimetype,
            size=size,
            embedding=embedding,
            tags=list(tags or []),
        )
        analysis = self.engine.analyze(
            record.embedding, original_name, record.tags, image_path=str(filepath)
        )
        record.auto_tags = analysis.auto_tags

        logger.info(f"Processing {original_name}: {record.auto_tags.labels()} ({analysis.method})")
        sync_result = self.organizer.sync(record)
        return IngestResult(record, sync_result, analysis.method)

    def get_image(self, filename: str) -> Dict[str, Any]:
        """Raises ImageNotFound."""
        record = self.organizer.get_record(filename)
        entry = self.image_entry(record.to_document())
        entry["collections"] = [f"{c}/{k}" for c, k in self.store.locations(filename)]
        return entry

    def delete(self, filename: str) -> Dict[str, Any]:
        """
        Delete an image from every collection, its organized copies and its upload.

        Raises:
            ImageNotFound: if no collection holds the filename
        """
        record = self.organizer.get_record(filename)
        copies = self.organizer.remove_organized_copies(record)
        removal = self.organizer.remove(filename)

        file_deleted = False
        upload = Path(record.filepath) if record.filepath else self.uploads_dir / filename
        if is_within(upload, self.uploads_dir):
            try:
                if upload.is_file():
                    upload.unlink()
                    file_deleted = True
                    logger.info(f"Deleted file: {upload}")
                else:
                    logger.warning(f"File not found or not a file: {upload}")
            except OSError as e:
                logger.error(f"Failed to delete file {upload}: {e}")
        else:
            logger.warning(f"Not deleting file outside uploads folder: {upload}")

        return {
            "filename": filename,
            "removed_from": removal["removed_from"],
            "organized_copies_deleted": len(copies),
            "file_deleted": file_deleted,
        }

    def retag(self, filename: str, tags: Sequence[str]) -> RetagResult:
        """Raises ImageNotFound."""
        return self.organizer.retag(filename, tags)

    def organize(self, filename: Optional[str] = None) -> List[OrganizeResult]:
        """Organize one image, or every image not yet organized."""
        if filename:
            return [self.organizer.organize(filename)]

        results = []
        for image in self.list_images(organized=False):
            record = ImageRecord.from_document(image)
            results.append(self.organizer.organize_record(record))
        return results

    # ------------------------------------------------------------------
    # Bulk rebuilds
    # ------------------------------------------------------------------

    def _upload_files(self) -> List[Path]:
        return sorted(
            p for p in self.uploads_dir.iterdir()
            if p.is_file() and p.suffix.lower() in ALLOWED_IMAGE_EXTENSIONS
        )

    def _clear_organized_dir(self) -> None:
        for child in self.organized_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()

    def _rebuild(self, organize: bool) -> List[Dict[str, Any]]:
        with self._bulk_lock:
            known = {img["filename"]: ImageRecord.from_document(img) for img in self.list_images()}
            files = self._upload_files()

            self.store.clear_all()
            self.registry.reset()
            if organize:
                self._clear_organized_dir()

            results = []
            failed = 0
            for path in files:
                entry: Dict[str, Any] = {"filename": path.name, "addedTo": [], "errors": []}
                if organize:
                    entry["organizedTo"] = []
                try:
                    self._rebuild_one(path, known.get(path.name), organize, entry)
                except Exception as e:
                    failed += 1
                    logger.error(f"Failed to rebuild {path.name}: {e}")
                    entry["errors"].append({"destination": None, "error": str(e)})
                results.append(entry)

            logger.info(
                f"{'Reorganized' if organize else 'Reprocessed'} {len(results)} image(s) "
                f"({failed} failed), {len(self.registry)} person identities"
            )
            return results

    def _rebuild_one(
        self,
        path: Path,
        previous: Optional[ImageRecord],
        organize: bool,
        entry: Dict[str, Any],
    ) -> None:
        original_name = previous.original_name if previous else path.name
        embedding = (previous.embedding if previous else None) or pseudo_embedding(original_name)
        tags = previous.tags if previous else []

        analysis = self.engine.analyze(embedding, original_name, tags, image_path=str(path))
        record = ImageRecord(
            filename=path.name,
            original_name=original_name,
            filepath=str(path),
            mimetype=(previous.mimetype if previous else None) or _guess_mimetype(path),
            size=path.stat().st_size,
            embedding=embedding,
            tags=tags,
            auto_tags=analysis.auto_tags,
            uploaded_at=previous.uploaded_at if previous else utc_now(),
        )
        entry["autoTags"] = record.auto_tags.labels()
        entry["method"] = analysis.method

        if organize:
            organized = self.organizer.organize_record(record, update_store=False)
            entry["organizedTo"] = [r.destination for r in organized.results if r.ok]
            entry["errors"].extend(
                {"destination": r.destination, "error": r.error} for r in organized.errors
            )

        sync_result = self.organizer.sync(record)
        entry["addedTo"] = sync_result.added_to
        entry["errors"].extend(sync_result.errors)

    def reprocess(self) -> List[Dict[str, Any]]:
        """Rebuild every collection from the uploads folder."""
        return self._rebuild(organize=False)

    def reorganize(self) -> List[Dict[str, Any]]:
        """Rebuild every collection and the organized folder tree from scratch."""
        return self._rebuild(organize=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def image_entry(self, image: Dict[str, Any]) -> Dict[str, Any]:
        entry = {k: v for k, v in image.items() if k not in ("collection", "categoryKey")}
        auto_tags = AutoTags.from_dict(entry.get("autoTags"))
        entry["categories"] = auto_tags.categories() or ["uncategorized"]
        entry["personId"] = auto_tags.person_id
        entry["url"] = self.organizer.image_url(entry["filename"])
        return entry

    def list_images(
        self,
        category: Optional[str] = None,
        organized: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        """
        Every stored image once, newest first.

        ``categories`` is gathered from all collections holding the image.
        """
        images: Dict[str, Dict[str, Any]] = {}
        for document in self.store.list_documents():
            collection = document["collection"]
            label = _COLLECTION_CATEGORIES.get(collection)
            for image in document.get("images", []):
                entry = images.get(image["filename"])
                if entry is None:
                    entry = self.image_entry(image)
                    images[image["filename"]] = entry
                if label and label not in entry["categories"]:
                    entry["categories"].append(label)
                if collection == collection_store.PERSON:
                    entry["personId"] = document["categoryKey"]

        result = list(images.values())
        if category:
            result = [img for img in result if category in img["categories"]]
        if organized is not None:
            result = [img for img in result if bool(img.get("organized")) == organized]

        result.sort(key=lambda img: img.get("uploadedAt") or "", reverse=True)
        return result

    def search(self, terms: Sequence[str]) -> List[Dict[str, Any]]:
        """Images whose tags, names or categories contain any of the terms."""
        patterns = [re.compile(re.escape(t.strip()), re.IGNORECASE) for t in terms if t and t.strip()]
        if not patterns:
            return []

        results = []
        for image in self.list_images():
            haystack = [
                *image.get("tags", []),
                image.get("originalName") or "",
                image.get("filename") or "",
                *image.get("categories", []),
            ]
            if any(p.search(text) for p in patterns for text in haystack):
                results.append(image)
        return results

    def stats(self) -> Dict[str, Any]:
        images = self.list_images()
        organized = sum(1 for img in images if img.get("organized"))

        counts = {"people": 0, "pets": 0, "nature": 0, "vehicles": 0, "tags": 0, "uncategorized": 0}
        collection_counts = {
            collection_store.PERSON: "people",
            collection_store.PET: "pets",
            collection_store.NATURE: "nature",
            collection_store.VEHICLE: "vehicles",
            collection_store.TAG: "tags",
            collection_store.UNCATEGORIZED: "uncategorized",
        }
        persons = 0
        for document in self.store.list_documents():
            counts[collection_counts[document["collection"]]] += len(document.get("images", []))
            if document["collection"] == collection_store.PERSON:
                persons += 1

        return {
            "total": len(images),
            "organized": organized,
            "unorganized": len(images) - organized,
            "persons": persons,
            "categories": counts,
        }

    @staticmethod
    def _summarize(document: Dict[str, Any]) -> Dict[str, Any]:
        summary = {
            "key": document["categoryKey"],
            "sampleImageUrl": document.get("sampleImageUrl"),
            "metadata": document.get("metadata", {}),
            "images": [
                {
                    "filename": i["filename"],
                    "originalName": i.get("originalName"),
                    "uploadedAt": i.get("uploadedAt"),
                    "organized": i.get("organized", False),
                }
                for i in document.get("images", [])
            ],
        }
        if document["collection"] == collection_store.PERSON:
            summary["personId"] = document["categoryKey"]
            summary["displayName"] = document.get("displayName")
        else:
            summary["category"] = document["categoryKey"]
        return summary

    def collections_summary(self) -> Dict[str, List[Dict[str, Any]]]:
        summary: Dict[str, List[Dict[str, Any]]] = {alias: [] for alias in COLLECTION_ALIASES}
        reverse = {v: k for k, v in COLLECTION_ALIASES.items()}
        for document in self.store.list_documents():
            summary[reverse[document["collection"]]].append(self._summarize(document))
        return summary

    def collection(self, name: str) -> List[Dict[str, Any]]:
        """Raw documents of one collection, by API alias (``persons``, ``pets``...)."""
        if name not in COLLECTION_ALIASES:
            raise KeyError(name)
        return self.store.list_documents(COLLECTION_ALIASES[name])

    def people(self) -> Dict[str, Any]:
        persons = [self._summarize(d) for d in self.store.list_documents(collection_store.PERSON)]
        return {"persons": persons, "trackedPersons": self.registry.list()}

    def rename_person(self, person_id: str, display_name: Optional[str]) -> Optional[Dict[str, Any]]:
        """Set a person's display name. Returns None if the person has no document."""
        if not self.store.set_document_field(
            collection_store.PERSON, person_id, "displayName", display_name
        ):
            return None
        return self._summarize(self.store.get_document(collection_store.PERSON, person_id))


def _guess_mimetype(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    return "image/jpeg" if ext == "jpg" else f"image/{ext}"
