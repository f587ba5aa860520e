"""
Pytest tests for query-string serialization.

Run from the repository root:
    pytest common_buildbot/test_query.py -v
"""

from common_buildbot.query import encode_query, with_query


def test_encode_query_omits_default_values():
    q = encode_query({"limit": 10, "order": None, "revision": "abc", "branch": None})
    assert q == "limit=10&revision=abc"
    assert "order" not in q
    assert "branch" not in q


def test_encode_query_keeps_map_order():
    assert encode_query({"order": "-changeid", "limit": 5}) == "order=-changeid&limit=5"
    assert encode_query({"limit": 5, "order": "-changeid"}) == "limit=5&order=-changeid"


def test_encode_query_url_encodes_values_once():
    q = encode_query({"branch": "feature/x y&z", "limit": 3})
    assert q == "branch=feature%2Fx%20y%26z&limit=3"
    keys = [pair.split("=", 1)[0] for pair in q.split("&")]
    assert keys == ["branch", "limit"]
    assert len(keys) == len(set(keys))


def test_encode_query_empty_and_all_default():
    assert encode_query({}) == ""
    assert encode_query(None) == ""
    assert encode_query({"limit": None}) == ""


def test_encode_query_keeps_falsy_but_present_values():
    assert encode_query({"limit": 0, "flag": False, "name": ""}) == "limit=0&flag=false&name="


def test_with_query_adds_question_mark_only_when_needed():
    assert with_query("/changes", {"limit": 1}) == "/changes?limit=1"
    assert with_query("/changes", {"limit": None}) == "/changes"
