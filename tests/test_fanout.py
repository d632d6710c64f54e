from pathlib import Path

import pytest

from photosort.ml.classification import ClassificationEngine
from photosort.ml.errors import ImageNotFound, PartialFanoutFailure
from photosort.ml.fanout import FanoutOrganizer, destinations, primary_destination
from photosort.ml.identity_registry import IdentityRegistry
from photosort.ml.storage.collection_store import CollectionStore
from photosort.ml.types import AutoTags, ImageRecord


def _organizer(tmp_path):
    engine = ClassificationEngine(IdentityRegistry())
    store = CollectionStore(tmp_path / "db.sqlite")
    return FanoutOrganizer(store, engine, tmp_path / "organized")


def _record(tmp_path, filename, auto_tags, tags=None, content=b"jpeg"):
    uploads = tmp_path / "uploads"
    uploads.mkdir(exist_ok=True)
    path = uploads / filename
    path.write_bytes(content)
    return ImageRecord(
        filename=filename,
        original_name=filename,
        filepath=str(path),
        embedding=[0.5] * 16,
        tags=tags or [],
        auto_tags=auto_tags,
    )


def _paths(dests):
    return [d.path for d in dests]


def test_destinations_order():
    tags = AutoTags(person_id="person_0002", nature=True, pets=True, vehicle=True)
    assert _paths(destinations(tags, ["Holiday", "family"])) == [
        "vehicles", "pets", "nature", "people/person_0002", "tags/holiday", "tags/family",
    ]


def test_destinations_with_sub_type():
    tags = AutoTags(pets=True, sub_types={"pet": "dog"})
    dests = destinations(tags)
    assert _paths(dests) == ["pets/dog"]
    assert dests[0].collection == "pet"
    assert dests[0].key == "dog"


def test_destinations_uncategorized():
    assert _paths(destinations(AutoTags())) == ["uncategorized"]
    assert _paths(destinations(AutoTags(), ["trip"])) == ["tags/trip"]


def test_sync_is_idempotent(tmp_path):
    organizer = _organizer(tmp_path)
    record = _record(tmp_path, "a.jpg", AutoTags(pets=True, vehicle=True))

    first = organizer.sync(record)
    assert first.added_to == ["vehicles", "pets"]
    second = organizer.sync(record)
    assert second.added_to == []
    assert second.skipped == ["vehicles", "pets"]

    for collection in ("pet", "vehicle"):
        document = organizer.store.get_document(collection, collection)
        assert document["metadata"]["imageCount"] == 1


def test_remove_is_symmetric(tmp_path):
    organizer = _organizer(tmp_path)
    organizer.sync(_record(tmp_path, "a.jpg", AutoTags(pets=True, vehicle=True)))
    organizer.sync(_record(tmp_path, "b.jpg", AutoTags(pets=True)))

    result = organizer.remove("a.jpg")
    assert result["success"]
    assert sorted(result["removed_from"]) == ["pet/pet", "vehicle/vehicle"]
    assert organizer.store.get_document("vehicle", "vehicle") is None
    assert organizer.store.get_document("pet", "pet")["metadata"]["imageCount"] == 1

    with pytest.raises(ImageNotFound):
        organizer.remove("a.jpg")


def test_retag_moves_image(tmp_path):
    organizer = _organizer(tmp_path)
    organizer.sync(_record(tmp_path, "IMG_0007.jpg", AutoTags(nature=True)))

    result = organizer.retag("IMG_0007.jpg", ["Puppy"])
    assert result.method == "override"
    assert result.previous == ["nature/nature"]
    assert result.sync.added_to == ["pets", "tags/puppy"]
    assert result.record.tags == ["puppy"]
    assert organizer.store.get_document("nature", "nature") is None
    assert organizer.store.locations("IMG_0007.jpg") == [("pet", "pet"), ("tag", "puppy")]


def test_retag_unknown_image(tmp_path):
    with pytest.raises(ImageNotFound):
        _organizer(tmp_path).retag("missing.jpg", ["x"])


def test_organize_copies_into_every_destination(tmp_path):
    organizer = _organizer(tmp_path)
    record = _record(tmp_path, "a.jpg", AutoTags(pets=True, vehicle=True), tags=["trip"])
    organizer.sync(record)

    result = organizer.organize("a.jpg")
    assert result.organized
    assert not result.errors
    for folder in ("vehicles", "pets", "tags/trip"):
        assert (tmp_path / "organized" / folder / "a.jpg").read_bytes() == b"jpeg"

    stored = organizer.get_record("a.jpg")
    assert stored.organized
    assert len(stored.organized_paths) == 3


def test_organize_reports_partial_failure(tmp_path):
    organizer = _organizer(tmp_path)
    record = _record(tmp_path, "a.jpg", AutoTags(pets=True, vehicle=True))
    organizer.sync(record)
    # A file where the vehicles folder should be makes that copy fail
    (tmp_path / "organized").mkdir()
    (tmp_path / "organized" / "vehicles").write_text("not a folder")

    result = organizer.organize("a.jpg")
    assert [r.destination for r in result.errors] == ["vehicles"]
    assert result.organized
    assert (tmp_path / "organized" / "pets" / "a.jpg").exists()
    with pytest.raises(PartialFanoutFailure):
        result.raise_for_errors()


def test_organize_missing_source_file(tmp_path):
    organizer = _organizer(tmp_path)
    record = _record(tmp_path, "a.jpg", AutoTags(nature=True))
    organizer.sync(record)
    Path(record.filepath).unlink()

    result = organizer.organize("a.jpg")
    assert not result.organized
    assert [r.destination for r in result.errors] == ["nature"]


def test_remove_organized_copies_prunes_folders(tmp_path):
    organizer = _organizer(tmp_path)
    record = _record(tmp_path, "a.jpg", AutoTags(pets=True, sub_types={"pet": "cat"}))
    organizer.sync(record)
    organizer.organize("a.jpg")

    deleted = organizer.remove_organized_copies(organizer.get_record("a.jpg"))
    assert len(deleted) == 1
    assert not (tmp_path / "organized" / "pets").exists()
    assert (tmp_path / "organized").exists()


def test_primary_destination_is_first():
    tags = AutoTags(person_id="person_0001", nature=True)
    assert primary_destination(tags, ["x"]).path == "nature"
    assert primary_destination(AutoTags()).path == "uncategorized"


class _FailingStore(CollectionStore):
    def __init__(self, db_path, failing_collection):
        super().__init__(db_path)
        self.failing_collection = failing_collection

    def add_image(self, collection, key, image, sample_image_url=None):
        if collection == self.failing_collection:
            raise RuntimeError("database is locked")
        return super().add_image(collection, key, image, sample_image_url)


def test_sync_reports_failed_destination_and_keeps_the_rest(tmp_path):
    store = _FailingStore(tmp_path / "db.sqlite", "vehicle")
    organizer = FanoutOrganizer(store, ClassificationEngine(IdentityRegistry()), tmp_path / "organized")
    record = _record(tmp_path, "a.jpg", AutoTags(pets=True, vehicle=True))

    result = organizer.sync(record)
    assert [e["destination"] for e in result.errors] == ["vehicles"]
    assert result.errors[0]["error"] == "database is locked"
    assert result.added_to == ["pets"]
    assert store.get_document("pet", "pet")["metadata"]["imageCount"] == 1
    assert store.get_document("vehicle", "vehicle") is None
