import os
import sys
import json
import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from priority_map import CorruptStoreError, MapStore, PriorityMap
from priority_map.utils import descending


def sample():
    pm = PriorityMap()
    pm.add("a", 3)
    pm.add({"job": 7}, 1)
    pm.add("b", 3)
    return pm


def test_serialize_shape():
    data = json.loads(sample().serialize())
    assert data == {"priority_map": {"1": [{"job": 7}], "3": ["a", "b"]}}
    assert list(data["priority_map"]) == ["1", "3"]


def test_deserialize_builds_independent_map():
    original = sample()
    restored = PriorityMap.deserialize(original.serialize())
    assert restored.to_bucket_list() == original.to_bucket_list()
    restored.remove_highest()
    assert original.count() == 3


def test_deserialize_with_comparator():
    restored = PriorityMap.deserialize(sample().serialize(), comparator=descending)
    assert restored.all_priorities() == [3, 1]
    assert restored.peek_highest() == {"job": 7}


def test_deserialize_skips_empty_buckets():
    restored = PriorityMap.deserialize('{"priority_map": {"2": [], "4": ["x"]}}')
    assert restored.all_priorities() == [4]


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"other": {}}',
        '{"priority_map": []}',
        '{"priority_map": {"high": ["x"]}}',
        '{"priority_map": {"1": "x"}}',
    ],
)
def test_deserialize_malformed_returns_none(text):
    assert PriorityMap.deserialize(text) is None


def test_store_round_trip(tmp_path):
    store = MapStore(str(tmp_path / "nested" / "map.json"))
    store.save(sample())
    loaded = store.load()
    assert loaded.to_bucket_list() == [[{"job": 7}], ["a", "b"]]
    assert not os.path.exists(store.path + ".tmp")


def test_store_load_missing_file_is_empty(tmp_path):
    store = MapStore(str(tmp_path / "missing.json"))
    assert store.load().is_empty()


def test_store_load_corrupt_file_is_empty(tmp_path):
    path = tmp_path / "map.json"
    path.write_text("{broken", encoding="utf-8")
    assert MapStore(str(path)).load().is_empty()


def test_store_save_failure_keeps_previous_file(tmp_path):
    store = MapStore(str(tmp_path / "map.json"))
    store.save(sample())
    bad = PriorityMap()
    bad.add(object(), 1)
    with pytest.raises(TypeError):
        store.save(bad)
    assert store.load().count() == 3
    assert not os.path.exists(store.path + ".tmp")


def test_strict_load_refuses_corrupt_file(tmp_path):
    path = tmp_path / "map.json"
    path.write_text('{"priority_map": [1, 2]}', encoding="utf-8")
    with pytest.raises(CorruptStoreError):
        MapStore(str(path)).load(strict=True)
    assert MapStore(str(tmp_path / "absent.json")).load(strict=True).is_empty()
