"""
Tests for profile editing, avatars and user search.
"""
from pathlib import Path

from issho.profiles import (
    avatar_initial, delete_avatar, get_profile_by_id, get_profile_by_username, search_users, update_avatar,
    update_profile,
)


def test_update_username_and_bio(make_user):
    user = make_user()
    ok, msg = update_profile(user["id"], username="  Alice_99 ", bio="Watching everything.")
    assert ok, msg
    profile = get_profile_by_id(user["id"])
    assert profile["username"] == "Alice_99"
    assert profile["bio"] == "Watching everything."
    assert get_profile_by_username("alice_99")["id"] == user["id"]


def test_update_profile_validation(make_user):
    alice = make_user()
    bob = make_user("bob@example.com")
    assert not update_profile(alice["id"], username="ab")[0]
    assert not update_profile(alice["id"], username="x" * 21)[0]
    assert not update_profile(alice["id"], username="has space")[0]
    assert not update_profile(alice["id"], username=bob["username"].upper())[0]
    assert not update_profile(alice["id"], bio="x" * 501)[0]
    assert not update_profile("missing", bio="hi")[0]
    # keeping your own name is fine
    assert update_profile(alice["id"], username=alice["username"])[0]


def test_avatar_upload_replace_delete(make_user):
    user = make_user()
    assert not update_avatar(user["id"], "me.png", b"")[0]

    assert update_avatar(user["id"], "me.PNG", b"first")[0]
    first = Path(get_profile_by_id(user["id"])["avatar_url"])
    assert first.name == "avatar.png"
    assert first.read_bytes() == b"first"

    assert update_avatar(user["id"], "me.jpg", b"second")[0]
    second = Path(get_profile_by_id(user["id"])["avatar_url"])
    assert second.name == "avatar.jpg"
    assert not first.exists()

    delete_avatar(user["id"])
    assert get_profile_by_id(user["id"])["avatar_url"] == ""
    assert not second.exists()


def test_avatar_initial():
    assert avatar_initial("alice") == "A"
    assert avatar_initial("") == "?"


def test_search_users(make_user):
    for email in ("anna@example.com", "hannah@example.com", "bob@example.com"):
        make_user(email)
    assert search_users("n") == []
    assert [p["username"] for p in search_users("NN")] == ["anna", "hannah"]
    assert search_users("zz") == []


def test_search_users_limit(make_user):
    for i in range(12):
        make_user(f"fan{i:02d}@example.com")
    hits = search_users("fan")
    assert len(hits) == 10
    assert hits[0]["username"] == "fan00"
