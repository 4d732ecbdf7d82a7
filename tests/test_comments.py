"""
Tests for comment creation, tree building and deletion.
"""
from issho.comments import build_comment_tree, count_replies, create_comment, delete_comment, fetch_comments
from issho.entries import create_entry, get_entries_with_counts
from issho.store import load_table


def _c(cid, parent=None):
    return {"id": cid, "parent_comment_id": parent or "", "content": cid}


def _shape(nodes):
    return [(n.id, _shape(n.children)) for n in nodes]


def test_tree_nests_replies_under_parents():
    flat = [_c("a"), _c("b"), _c("a1", "a"), _c("a2", "a"), _c("a1x", "a1")]
    tree = build_comment_tree(flat)
    assert _shape(tree) == [
        ("a", [("a1", [("a1x", [])]), ("a2", [])]),
        ("b", []),
    ]


def test_tree_handles_child_before_parent():
    flat = [_c("r1", "r"), _c("r")]
    tree = build_comment_tree(flat)
    assert _shape(tree) == [("r", [("r1", [])])]


def test_tree_drops_orphans():
    flat = [_c("a"), _c("x", "missing")]
    assert _shape(build_comment_tree(flat)) == [("a", [])]


def test_tree_empty():
    assert build_comment_tree([]) == []


def test_count_replies_counts_all_descendants():
    tree = build_comment_tree([_c("a"), _c("b", "a"), _c("c", "b"), _c("d", "a")])
    assert count_replies(tree[0]) == 3
    assert count_replies(tree[0].children[1]) == 0


def _entry(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    ok, _ = create_entry(user["id"], anime["id"], status="watching")
    assert ok
    return user, get_entries_with_counts().iloc[0]["id"]


def test_create_comment_requires_login(make_user, make_anime):
    _, entry_id = _entry(make_user, make_anime)
    ok, msg = create_comment(entry_id, None, "hello")
    assert not ok
    assert msg == "You must be logged in to comment."


def test_create_comment_rejects_blank(make_user, make_anime):
    user, entry_id = _entry(make_user, make_anime)
    ok, _ = create_comment(entry_id, user["id"], "   ")
    assert not ok


def test_reply_parent_must_exist_on_same_entry(make_user, make_anime):
    user, entry_id = _entry(make_user, make_anime)
    ok, _ = create_comment(entry_id, user["id"], "reply", parent_comment_id="nope")
    assert not ok


def test_fetch_comments_joins_author_and_builds_tree(make_user, make_anime):
    user, entry_id = _entry(make_user, make_anime)
    assert create_comment(entry_id, user["id"], "first")[0]
    parent_id = load_table("comments").iloc[0]["id"]
    assert create_comment(entry_id, user["id"], "spoilery reply", parent_comment_id=parent_id, is_spoiler=True)[0]

    rows = fetch_comments(entry_id)
    assert [r["content"] for r in rows] == ["first", "spoilery reply"]
    assert rows[0]["username"] == user["username"]
    assert rows[1]["is_spoiler"] is True

    tree = build_comment_tree(rows)
    assert len(tree) == 1
    assert tree[0].children[0].comment["content"] == "spoilery reply"
    assert get_entries_with_counts().iloc[0]["comment_count"] == 2


def test_delete_comment_removes_subtree_for_author_only(make_user, make_anime):
    user, entry_id = _entry(make_user, make_anime)
    other = make_user("bob@example.com")
    create_comment(entry_id, user["id"], "root")
    root_id = load_table("comments").iloc[0]["id"]
    create_comment(entry_id, other["id"], "child", parent_comment_id=root_id)
    child_id = load_table("comments").iloc[1]["id"]
    create_comment(entry_id, user["id"], "grandchild", parent_comment_id=child_id)
    create_comment(entry_id, other["id"], "unrelated")

    ok, _ = delete_comment(root_id, other["id"])
    assert not ok
    assert len(load_table("comments")) == 4

    ok, _ = delete_comment(root_id, user["id"])
    assert ok
    assert load_table("comments")["content"].tolist() == ["unrelated"]
