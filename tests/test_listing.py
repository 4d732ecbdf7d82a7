"""
Tests for in-memory pagination and filtering.
"""
import pandas as pd
import pytest

from issho.listing import filter_by_status, filter_entries_by_query, paginate, search_text, trending_anime


@pytest.fixture
def entries():
    return pd.DataFrame([
        {"id": "1", "username": "Alice", "entry_type": "review", "anime_name": "Frieren", "content": "Great pacing", "user_id": "u1"},
        {"id": "2", "username": "bob", "entry_type": "rating", "anime_name": "Frieren", "content": "", "user_id": "u2"},
        {"id": "3", "username": "bob", "entry_type": "status_update", "anime_name": "Dandadan", "content": "", "user_id": "u2"},
        {"id": "4", "username": "carol", "entry_type": "review", "anime_name": "Mushishi", "content": "so calm, frieren-like", "user_id": "u3"},
    ])


def test_paginate_list_pages():
    items = list(range(23))
    p0 = paginate(items, 0, page_size=10)
    assert p0.items == list(range(10))
    assert (p0.total, p0.start, p0.end, p0.page_count) == (23, 0, 10, 3)
    assert not p0.has_prev and p0.has_next

    p2 = paginate(items, 2, page_size=10)
    assert p2.items == [20, 21, 22]
    assert p2.has_prev and not p2.has_next
    assert p2.caption() == "Showing 21–23 of 23"


def test_paginate_clamps_out_of_range():
    items = list(range(5))
    assert paginate(items, 9, page_size=2).page == 2
    assert paginate(items, -3, page_size=2).page == 0


def test_paginate_empty():
    p = paginate([], 4)
    assert p.items == []
    assert p.page == 0 and p.page_count == 1 and p.total == 0
    assert not p.has_prev and not p.has_next


def test_paginate_dataframe(entries):
    p = paginate(entries, 1, page_size=3)
    assert p.items["id"].tolist() == ["4"]


def test_paginate_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate([1], 0, page_size=0)


def test_filter_by_user(entries):
    assert filter_entries_by_query(entries, "@ALICE")["id"].tolist() == ["1"]


def test_filter_by_entry_type(entries):
    assert filter_entries_by_query(entries, "#review")["id"].tolist() == ["1", "4"]
    assert filter_entries_by_query(entries, "#status update")["id"].tolist() == ["3"]
    assert filter_entries_by_query(entries, "#nonsense").empty


def test_filter_by_text_matches_name_or_content(entries):
    assert filter_entries_by_query(entries, "frieren")["id"].tolist() == ["1", "2", "4"]
    assert filter_entries_by_query(entries, "PACING")["id"].tolist() == ["1"]


def test_empty_query_is_no_filter(entries):
    assert len(filter_entries_by_query(entries, "")) == 4
    assert len(filter_entries_by_query(entries, "   ")) == 4


def test_search_text_and_status_filter():
    df = pd.DataFrame({"name": ["Naruto", "Bleach", "naruto shippuden"], "status": ["watching", "dropped", "watching"]})
    assert search_text(df, "name", "NARUTO")["name"].tolist() == ["Naruto", "naruto shippuden"]
    assert len(search_text(df, "name", "")) == 3
    assert filter_by_status(df, "dropped")["name"].tolist() == ["Bleach"]
    assert len(filter_by_status(df, "all")) == 3


def test_trending_anime(entries):
    assert trending_anime(entries, topk=2) == [("Frieren", 2), ("Dandadan", 1)]
