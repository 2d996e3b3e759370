from __future__ import annotations

import pytest

from isolated_settings import (
    MISSING,
    DuplicateKeyError,
    KeyNotFoundError,
    MemoryContainer,
    NullKeyError,
    SettingsStore,
    WrongKeyTypeError,
)


@pytest.fixture
def store() -> SettingsStore:
    return SettingsStore(MemoryContainer())


def test_object_key_view_contract(store: SettingsStore):
    d = store.untyped
    assert not d.is_fixed_size
    assert not d.is_read_only

    key = object()

    d.add("key", "string")
    assert len(d) == 1
    with pytest.raises(WrongKeyTypeError):
        d.add(key, "object")
    with pytest.raises(NullKeyError):
        d.add(None, "null")
    with pytest.raises(DuplicateKeyError):
        d.add("key", "another string")

    d.remove("value")
    assert len(d) == 1
    d.remove("key")
    assert len(d) == 0
    d.remove(key)  # no exception
    with pytest.raises(NullKeyError):
        d.remove(None)

    d.add("key", None)
    assert len(d) == 1
    assert d.contains("key")
    assert "key" in d
    assert not d.contains(key)
    with pytest.raises(NullKeyError):
        d.contains(None)

    assert d["key"] is None  # a stored None
    assert d[key] is MISSING
    with pytest.raises(NullKeyError):
        d[None]
    with pytest.raises(KeyNotFoundError):
        d["non-existing"]

    d["key"] = "value"  # replace
    assert len(d) == 1
    with pytest.raises(WrongKeyTypeError):
        d[key] = key
    with pytest.raises(NullKeyError):
        d[None] = None

    d.clear()
    assert len(d) == 0


def test_object_key_view_remove_of_wrong_type_leaves_state(store: SettingsStore):
    store["1"] = "one"
    store.untyped.remove(1)
    assert dict(store) == {"1": "one"}
    assert not store.untyped.contains(1)


def test_object_key_view_shares_the_store(store: SettingsStore):
    store.untyped["a"] = 1
    assert store["a"] == 1
    store["b"] = 2
    assert list(store.untyped) == ["a", "b"]
    assert list(store.untyped.items()) == [("a", 1), ("b", 2)]


def test_pair_collection_contract(store: SettingsStore):
    c = store.pairs
    assert len(c) == 0
    assert not c.is_read_only

    kvp = ("key", "value")
    c.add(kvp)
    assert len(c) == 1
    with pytest.raises(NullKeyError):
        c.add((None, "value"))
    with pytest.raises(DuplicateKeyError):
        c.add(("key", "value"))

    assert c.contains(kvp)
    assert ("key", "value") in c
    assert not c.contains(("value", "key"))

    assert c.remove(kvp)
    assert not c.contains(kvp)
    assert len(c) == 0
    assert not c.remove(kvp)

    c.add(kvp)
    c.clear()
    assert len(c) == 0


def test_pair_collection_contains_matches_by_key(store: SettingsStore):
    store["key"] = "value"
    assert store.pairs.contains(("key", "something else"))


def test_pair_collection_copy_to(store: SettingsStore):
    store["a"] = 1
    store["b"] = 2

    array = [None, None, None]
    store.pairs.copy_to(array, 1)
    assert array == [None, ("a", 1), ("b", 2)]

    with pytest.raises(IndexError):
        store.pairs.copy_to([None, None], 1)
    with pytest.raises(IndexError):
        store.pairs.copy_to([None, None, None], -1)

    assert list(store.pairs) == [("a", 1), ("b", 2)]
