from photosort.ml.storage import collection_store
from photosort.ml.storage.collection_store import CollectionStore


def _image(filename, **extra):
    return {"filename": filename, "originalName": filename, "organized": False, **extra}


def test_add_creates_document(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    assert store.add_image(collection_store.PET, "dog", _image("a.jpg"), "/uploads/a.jpg")

    document = store.get_document(collection_store.PET, "dog")
    assert document["category"] == "dog"
    assert document["metadata"]["imageCount"] == 1
    assert document["sampleImageUrl"] == "/uploads/a.jpg"
    assert [i["filename"] for i in document["images"]] == ["a.jpg"]


def test_person_document_has_person_fields(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    store.add_image(collection_store.PERSON, "person_0001", _image("a.jpg"))
    document = store.get_document(collection_store.PERSON, "person_0001")
    assert document["personId"] == "person_0001"
    assert document["displayName"] is None


def test_duplicate_filename_is_skipped(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    assert store.add_image(collection_store.NATURE, "nature", _image("a.jpg"))
    assert not store.add_image(collection_store.NATURE, "nature", _image("a.jpg"))
    document = store.get_document(collection_store.NATURE, "nature")
    assert document["metadata"]["imageCount"] == 1
    assert len(document["images"]) == 1


def test_remove_touches_only_holding_documents(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    store.add_image(collection_store.PET, "pet", _image("a.jpg"))
    store.add_image(collection_store.PET, "pet", _image("b.jpg"))
    store.add_image(collection_store.VEHICLE, "vehicle", _image("a.jpg"))
    store.add_image(collection_store.NATURE, "nature", _image("c.jpg"))

    affected = store.remove_image("a.jpg")
    assert sorted(affected) == [("pet", "pet"), ("vehicle", "vehicle")]

    pet = store.get_document(collection_store.PET, "pet")
    assert pet["metadata"]["imageCount"] == 1
    assert [i["filename"] for i in pet["images"]] == ["b.jpg"]
    # Emptied document is garbage collected
    assert store.get_document(collection_store.VEHICLE, "vehicle") is None
    # Unrelated document keeps its count
    assert store.get_document(collection_store.NATURE, "nature")["metadata"]["imageCount"] == 1


def test_remove_unknown_filename(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    store.add_image(collection_store.PET, "pet", _image("a.jpg"))
    assert store.remove_image("zzz.jpg") == []
    assert store.get_document(collection_store.PET, "pet")["metadata"]["imageCount"] == 1


def test_update_and_find_image(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    store.add_image(collection_store.PET, "pet", _image("a.jpg"))
    store.add_image(collection_store.TAG, "holiday", _image("a.jpg"))

    assert store.update_image("a.jpg", {"organized": True}) == 2
    found = store.find_image("a.jpg")
    assert found["organized"] is True
    assert found["collection"] == collection_store.PET
    assert store.locations("a.jpg") == [("pet", "pet"), ("tag", "holiday")]
    assert store.find_image("missing.jpg") is None


def test_list_set_field_and_clear(tmp_path):
    store = CollectionStore(tmp_path / "db.sqlite")
    store.add_image(collection_store.TAG, "holiday", _image("a.jpg"))
    store.add_image(collection_store.PERSON, "person_0001", _image("a.jpg"))

    collections = [d["collection"] for d in store.list_documents()]
    assert collections == [collection_store.PERSON, collection_store.TAG]
    assert len(store.list_documents(collection_store.TAG)) == 1

    assert store.set_document_field(collection_store.PERSON, "person_0001", "displayName", "Ana")
    assert store.get_document(collection_store.PERSON, "person_0001")["displayName"] == "Ana"
    assert not store.set_document_field(collection_store.PERSON, "person_0404", "displayName", "X")

    store.clear_all()
    assert store.list_documents() == []
    assert store.locations("a.jpg") == []
