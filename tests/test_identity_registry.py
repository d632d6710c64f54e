import threading

import numpy as np
import pytest

from photosort.ml.errors import InvalidEmbedding
from photosort.ml.identity_registry import IdentityRegistry


def _embedding(segment, scale=1.0):
    """16 values whose signature is a one-hot vector at ``segment``."""
    values = [0.0] * 16
    values[segment * 2] = scale
    values[segment * 2 + 1] = scale
    return values


def test_first_identity_is_person_0001():
    registry = IdentityRegistry()
    assert registry.resolve(_embedding(0)) == "person_0001"
    assert len(registry) == 1


def test_similar_embeddings_share_an_identity():
    registry = IdentityRegistry()
    first = registry.resolve(_embedding(0))
    # Same direction, different magnitude: cosine similarity 1.0
    assert registry.resolve(_embedding(0, scale=3.0)) == first
    assert len(registry) == 1


def test_dissimilar_embeddings_get_increasing_ids():
    registry = IdentityRegistry()
    assert registry.resolve(_embedding(0)) == "person_0001"
    assert registry.resolve(_embedding(1)) == "person_0002"
    assert registry.resolve(_embedding(2)) == "person_0003"
    assert registry.resolve(_embedding(1)) == "person_0002"
    assert registry.list() == ["person_0001", "person_0002", "person_0003"]


def test_first_match_in_insertion_order_wins():
    registry = IdentityRegistry(threshold=0.5)
    a = [1.0, 0.0, 0, 0, 0, 0, 0, 0]
    b = [0.8, 0.6, 0, 0, 0, 0, 0, 0]
    registry.resolve(a)
    # b is close enough to a, so no new identity is minted
    assert registry.resolve(b) == "person_0001"


def test_short_embedding_raises():
    with pytest.raises(InvalidEmbedding):
        IdentityRegistry().resolve([0.5] * 4)


def test_get_and_reset():
    registry = IdentityRegistry()
    person_id = registry.resolve(_embedding(3))
    identity = registry.get(person_id)
    assert identity.person_id == person_id
    assert len(identity.signature) == 8
    assert registry.get("person_9999") is None

    registry.reset()
    assert len(registry) == 0
    assert registry.resolve(_embedding(5)) == "person_0001"


def test_concurrent_resolution_mints_one_identity():
    registry = IdentityRegistry()
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(registry.resolve(_embedding(4)))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert set(results) == {"person_0001"}
    assert len(registry) == 1


def test_grouping_depends_on_insertion_order():
    a = [1.0, 0.0, 0, 0, 0, 0, 0, 0]
    c = [0.0, 1.0, 0, 0, 0, 0, 0, 0]
    b = [1.0, 1.0, 0, 0, 0, 0, 0, 0]  # ~0.71 similar to both a and c

    first = IdentityRegistry(threshold=0.6)
    ids = [first.resolve(a), first.resolve(c), first.resolve(b)]
    assert ids == ["person_0001", "person_0002", "person_0001"]

    second = IdentityRegistry(threshold=0.6)
    ids = [second.resolve(c), second.resolve(a), second.resolve(b)]
    assert ids == ["person_0001", "person_0002", "person_0001"]
    # b joined c here, a in the first run
    assert second.get("person_0001").signature == tuple(c)


def test_nan_embedding_never_mints_an_identity():
    registry = IdentityRegistry()
    embedding = [float("nan")] + [0.5] * 15
    for _ in range(2):
        with pytest.raises(InvalidEmbedding):
            registry.resolve(embedding)
    assert len(registry) == 0


def test_numpy_embedding_resolves_like_a_list():
    registry = IdentityRegistry()
    assert registry.resolve(np.array(_embedding(2))) == "person_0001"
    assert registry.resolve(_embedding(2)) == "person_0001"
