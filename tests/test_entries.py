"""
Tests for entry creation, the counts query and deletion.
"""
from issho.comments import create_comment
from issho.entries import (
    create_entry, delete_entry, entry_type_label, fetch_anime_entries, get_entries_with_counts, get_entry,
)
from issho.store import load_table, update_rows
from issho.votes import cast_vote
from issho.watchlist import get_user_anime_entry


def test_entry_type_follows_fields(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    create_entry(user["id"], anime["id"], status="watching")
    create_entry(user["id"], anime["id"], rating="9")
    create_entry(user["id"], anime["id"], rating=7, review="Loved it")

    types = load_table("entries")["entry_type"].tolist()
    assert types == ["status_update", "rating", "review"]
    last = load_table("entries").iloc[2]
    assert last["content"] == "Loved it"
    assert last["rating_value"] == "7"


def test_create_entry_upserts_list_row(make_user, make_anime):
    user = make_user()
    anime = make_anime()

    create_entry(user["id"], anime["id"], rating=6)
    row = get_user_anime_entry(anime["id"], user["id"])
    assert row["status"] == "not_started"
    assert row["rating"] == "6"

    create_entry(user["id"], anime["id"], status="completed")
    row = get_user_anime_entry(anime["id"], user["id"])
    assert row["status"] == "completed"
    assert row["rating"] == "6"
    assert len(load_table("user_anime_entries")) == 1


def test_create_entry_validation(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    assert not create_entry(None, anime["id"], status="watching")[0]
    assert not create_entry(user["id"], "", status="watching")[0]
    assert not create_entry(user["id"], anime["id"])[0]
    assert not create_entry(user["id"], anime["id"], rating=11)[0]
    assert not create_entry(user["id"], anime["id"], status="paused")[0]
    assert load_table("entries").empty


def test_entries_with_counts_joins_and_orders(make_user, make_anime):
    alice = make_user()
    bob = make_user("bob@example.com")
    frieren = make_anime("Frieren")
    mushishi = make_anime("Mushishi")

    create_entry(alice["id"], frieren["id"], review="A")
    create_entry(bob["id"], mushishi["id"], review="B")
    update_rows("entries", lambda df: df["content"] == "A", {"created_at": "2024-01-01T00:00:00"})
    update_rows("entries", lambda df: df["content"] == "B", {"created_at": "2024-02-01T00:00:00"})

    df = get_entries_with_counts()
    assert df["content"].tolist() == ["B", "A"]
    first = df.iloc[0]
    assert first["anime_name"] == "Mushishi"
    assert first["username"] == bob["username"]
    assert first["vote_count"] == 0 and first["comment_count"] == 0

    only_frieren = fetch_anime_entries(frieren["id"])
    assert only_frieren["content"].tolist() == ["A"]


def test_get_entry_includes_anime(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    create_entry(user["id"], anime["id"], status="dropped")
    entry_id = load_table("entries").iloc[0]["id"]
    entry = get_entry(entry_id)
    assert entry["anime"]["name"] == "Frieren"
    assert get_entry("missing") is None


def test_delete_entry_cascades(make_user, make_anime):
    user = make_user()
    other = make_user("bob@example.com")
    anime = make_anime()
    create_entry(user["id"], anime["id"], status="watching")
    entry_id = load_table("entries").iloc[0]["id"]
    cast_vote(entry_id, other["id"], 1)
    create_comment(entry_id, other["id"], "nice")

    assert not delete_entry(entry_id, other["id"])[0]
    ok, _ = delete_entry(entry_id, user["id"])
    assert ok
    assert load_table("entries").empty
    assert load_table("votes").empty
    assert load_table("comments").empty


def test_entry_type_label():
    assert entry_type_label("review") == "📝 Review"
    assert entry_type_label("mystery") == "mystery"


def test_back_to_back_entries_newest_first(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    create_entry(user["id"], anime["id"], review="older")
    create_entry(user["id"], anime["id"], review="newer")
    assert get_entries_with_counts()["content"].tolist() == ["newer", "older"]
