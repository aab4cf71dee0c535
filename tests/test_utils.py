import os
import sys
import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from priority_map import PriorityMap
from priority_map.utils import descending, format_map, parse_element, parse_priorities


def test_parse_priorities_valid():
    assert parse_priorities("3,1,2") == [3, 1, 2]
    assert parse_priorities(" 4, -1 ") == [4, -1]


def test_parse_priorities_empty():
    assert parse_priorities("") == []
    assert parse_priorities("   ") == []


def test_parse_priorities_invalid():
    with pytest.raises(ValueError):
        parse_priorities("1;2")
    with pytest.raises(ValueError):
        parse_priorities("1,,2")
    with pytest.raises(ValueError):
        parse_priorities("foo")


def test_parse_element():
    assert parse_element("42") == "42"
    assert parse_element("42", as_json=True) == 42
    assert parse_element('{"a": [1]}', as_json=True) == {"a": [1]}
    with pytest.raises(ValueError):
        parse_element("{nope", as_json=True)


def test_descending_comparator():
    assert descending(1, 5) > 0
    assert descending(5, 1) < 0
    assert descending(3, 3) == 0


def test_format_map_truncates_long_buckets():
    pm = PriorityMap()
    for e in ("a", "b", "c"):
        pm.add(e, 1)
    pm.add(7, 12)
    assert format_map(pm, limit=2) == '     1: ["a", "b", ... (+1)]\n    12: [7]'
    assert format_map(pm, limit=0).startswith('     1: ["a", "b", "c"]')


def test_format_map_empty():
    assert format_map(PriorityMap()) == "(empty)"
