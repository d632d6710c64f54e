import numpy as np
import pytest

from photosort.ml.errors import ImageNotFound, InvalidEmbedding
from photosort.ml.fanout import destinations


def test_round_trip_person_upload(library, write_upload):
    path = write_upload("family_birthday_party.jpg")

    result = library.ingest(path, "family_birthday_party.jpg", mimetype="image/jpeg")
    auto_tags = result.record.auto_tags
    assert auto_tags.person_id == "person_0001"
    assert "portrait" in auto_tags.objects
    assert [d.path for d in destinations(auto_tags, result.record.tags)] == ["people/person_0001"]
    assert result.sync.added_to == ["people/person_0001"]

    [organized] = library.organize("family_birthday_party.jpg")
    copy = library.organized_dir / "people" / "person_0001" / "family_birthday_party.jpg"
    assert organized.organized_paths == [str(copy.resolve())]
    assert copy.exists()

    deleted = library.delete("family_birthday_party.jpg")
    assert deleted["removed_from"] == ["person/person_0001"]
    assert deleted["file_deleted"]
    assert deleted["organized_copies_deleted"] == 1
    assert not path.exists()
    assert not copy.exists()
    assert library.list_images() == []
    with pytest.raises(ImageNotFound):
        library.get_image("family_birthday_party.jpg")


def test_ingest_rejects_short_embedding(library, write_upload):
    path = write_upload("dog.jpg")
    with pytest.raises(InvalidEmbedding):
        library.ingest(path, "dog.jpg", embedding=[0.1, 0.2, 0.3])
    assert library.list_images() == []


def test_ingest_with_custom_tags(library, write_upload):
    path = write_upload("IMG_0100.jpg")
    result = library.ingest(path, "IMG_0100.jpg", tags=["Beach", "Summer 2024"])
    assert result.method == "override"
    assert result.record.tags == ["beach", "summer 2024"]
    assert result.sync.added_to == ["nature", "tags/beach", "tags/summer 2024"]


def test_list_images_filters(library, write_upload):
    library.ingest(write_upload("my_dog_in_the_car.jpg"), "my_dog_in_the_car.jpg")
    library.ingest(write_upload("sunset.jpg"), "sunset.jpg")
    library.organize("sunset.jpg")

    images = library.list_images()
    assert {i["filename"] for i in images} == {"my_dog_in_the_car.jpg", "sunset.jpg"}
    dog = next(i for i in images if i["filename"] == "my_dog_in_the_car.jpg")
    assert dog["categories"] == ["vehicle", "pet"]
    assert dog["url"] == "/uploads/my_dog_in_the_car.jpg"

    assert [i["filename"] for i in library.list_images(category="pet")] == ["my_dog_in_the_car.jpg"]
    assert [i["filename"] for i in library.list_images(organized=True)] == ["sunset.jpg"]
    assert [i["filename"] for i in library.list_images(organized=False)] == ["my_dog_in_the_car.jpg"]


def test_organize_all_unorganized(library, write_upload):
    library.ingest(write_upload("kitten.jpg"), "kitten.jpg")
    library.ingest(write_upload("truck.jpg"), "truck.jpg")

    results = library.organize()
    assert {r.filename for r in results} == {"kitten.jpg", "truck.jpg"}
    assert library.organize() == []
    assert (library.organized_dir / "pets" / "kitten.jpg").exists()
    assert (library.organized_dir / "vehicles" / "truck.jpg").exists()


def test_retag_through_library(library, write_upload):
    library.ingest(write_upload("kitten.jpg"), "kitten.jpg")
    library.organize("kitten.jpg")

    result = library.retag("kitten.jpg", ["road trip car"])
    assert result.record.auto_tags.vehicle
    assert not result.record.auto_tags.pets
    assert not result.record.organized
    assert not (library.organized_dir / "pets" / "kitten.jpg").exists()
    assert [i["filename"] for i in library.list_images(category="vehicle")] == ["kitten.jpg"]


def test_reprocess_rebuilds_collections(library, write_upload):
    library.ingest(write_upload("b_puppy.jpg"), "b_puppy.jpg", tags=["holiday"])
    library.ingest(write_upload("a_selfie.jpg"), "a_selfie.jpg")
    library.registry.resolve([1.0] * 16)
    library.registry.resolve([-1.0, 1.0] * 8)

    results = library.reprocess()
    assert [r["filename"] for r in results] == ["a_selfie.jpg", "b_puppy.jpg"]
    # Registry was reset, so the only person seen during the rebuild is first
    assert library.registry.list() == ["person_0001"]
    assert library.get_image("b_puppy.jpg")["tags"] == ["holiday"]
    assert library.store.locations("b_puppy.jpg") == [("pet", "pet"), ("tag", "holiday")]


def test_reorganize_rebuilds_folders(library, write_upload):
    library.ingest(write_upload("kitten.jpg"), "kitten.jpg")
    stale = library.organized_dir / "stale" / "old.jpg"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"old")

    results = library.reorganize()
    assert results[0]["organizedTo"] == ["pets"]
    assert not stale.exists()
    assert (library.organized_dir / "pets" / "kitten.jpg").exists()
    assert library.get_image("kitten.jpg")["organized"]


def test_search(library, write_upload):
    library.ingest(write_upload("IMG_1.jpg"), "IMG_1.jpg", tags=["Graduation"])
    library.ingest(write_upload("kitten.jpg"), "kitten.jpg")

    assert [i["filename"] for i in library.search(["GRAD"])] == ["IMG_1.jpg"]
    assert [i["filename"] for i in library.search(["kitten"])] == ["kitten.jpg"]
    assert library.search([" "]) == []


def test_stats_and_summaries(library, write_upload):
    library.ingest(write_upload("my_dog_in_the_car.jpg"), "my_dog_in_the_car.jpg")
    library.ingest(write_upload("family.jpg"), "family.jpg")
    library.organize("family.jpg")

    stats = library.stats()
    assert stats["total"] == 2
    assert stats["organized"] == 1
    assert stats["persons"] == 1
    assert stats["categories"]["pets"] == 1
    assert stats["categories"]["vehicles"] == 1
    assert stats["categories"]["people"] == 1

    summary = library.collections_summary()
    assert [p["personId"] for p in summary["persons"]] == ["person_0001"]
    assert summary["pets"][0]["images"][0]["filename"] == "my_dog_in_the_car.jpg"

    assert len(library.collection("vehicles")) == 1
    with pytest.raises(KeyError):
        library.collection("faces")


def test_rename_person(library, write_upload):
    library.ingest(write_upload("family.jpg"), "family.jpg")
    renamed = library.rename_person("person_0001", "Grandma")
    assert renamed["displayName"] == "Grandma"
    assert library.people()["persons"][0]["displayName"] == "Grandma"
    assert library.people()["trackedPersons"] == ["person_0001"]
    assert library.rename_person("person_0404", "Nobody") is None


def test_label_status_keyword_only(library):
    status = library.label_status()
    assert status["ready"]
    assert status["method"] == "Filename only"
    assert library.start_label_source_warmup() is None


@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_ingest_rejects_non_finite_embedding(library, write_upload, bad):
    embedding = [bad] + [0.5] * 15
    for name in ("family_a.jpg", "family_b.jpg"):
        with pytest.raises(InvalidEmbedding):
            library.ingest(write_upload(name), name, embedding=embedding)
    assert library.list_images() == []
    assert library.registry.list() == []


def test_ingest_accepts_numpy_embedding(library, write_upload):
    vector = np.linspace(0, 1, 16)
    first = library.ingest(write_upload("family_a.jpg"), "family_a.jpg", embedding=vector)
    second = library.ingest(write_upload("family_b.jpg"), "family_b.jpg", embedding=vector)
    assert first.record.auto_tags.person_id == second.record.auto_tags.person_id == "person_0001"
    assert library.get_image("family_a.jpg")["embedding"] == vector.tolist()


def test_rebuild_continues_past_a_failing_image(library, write_upload, monkeypatch):
    library.ingest(write_upload("broken.jpg"), "broken.jpg")
    library.ingest(write_upload("kitten.jpg"), "kitten.jpg")

    analyze = library.engine.analyze

    def flaky_analyze(embedding, filename, *args, **kwargs):
        if filename == "broken.jpg":
            raise RuntimeError("cannot read image")
        return analyze(embedding, filename, *args, **kwargs)

    monkeypatch.setattr(library.engine, "analyze", flaky_analyze)

    results = library.reorganize()
    assert [r["filename"] for r in results] == ["broken.jpg", "kitten.jpg"]
    assert results[0]["errors"] == [{"destination": None, "error": "cannot read image"}]
    assert results[0]["addedTo"] == []
    assert results[1]["addedTo"] == ["pets"]
    assert results[1]["organizedTo"] == ["pets"]
    assert results[1]["errors"] == []
    assert library.get_image("kitten.jpg")["categories"] == ["pet"]
    with pytest.raises(ImageNotFound):
        library.get_image("broken.jpg")
