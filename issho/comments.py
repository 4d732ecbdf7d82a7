"""
Threaded comments on entries.

Comments are stored flat with a ``parent_comment_id`` pointer and rebuilt into
a reply tree for display.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

import pandas as pd

from . import config
from .profiles import profile_lookup
from .store import append_row, delete_rows, find_row, load_table, new_id, now_iso

logger = logging.getLogger(__name__)


@dataclass
class CommentNode:
    comment: dict
    children: List["CommentNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.comment["id"]


def create_comment(
    entry_id: str,
    user_id: str | None,
    content: str,
    parent_comment_id: str | None = None,
    is_spoiler: bool = False,
) -> tuple[bool, str]:
    if not user_id:
        return False, "You must be logged in to comment."
    content = (content or "").strip()
    if not content:
        return False, "Please write something first."
    if len(content) > config.COMMENT_MAX_CHARS:
        return False, f"Comments can be at most {config.COMMENT_MAX_CHARS} characters."
    if parent_comment_id and find_row("comments", id=parent_comment_id, entry_id=entry_id) is None:
        return False, "The comment you are replying to no longer exists."

    append_row("comments", {
        "id": new_id(),
        "created_at": now_iso(),
        "entry_id": entry_id,
        "user_id": user_id,
        "parent_comment_id": parent_comment_id or "",
        "content": content,
        "is_spoiler": "True" if is_spoiler else "False",
    })
    return True, "Reply posted." if parent_comment_id else "Comment posted."


def fetch_comments(entry_id: str) -> list[dict]:
    """Comments on an entry, oldest first, with author username/avatar."""
    df = load_table("comments")
    df = df[df["entry_id"] == entry_id].sort_values("created_at", kind="stable")
    profiles = profile_lookup()
    rows = df.to_dict("records")
    for row in rows:
        author = profiles.get(row["user_id"], {})
        row["username"] = author.get("username", "")
        row["avatar_url"] = author.get("avatar_url", "")
        row["is_spoiler"] = str(row.get("is_spoiler", "")).lower() == "true"
    return rows


def build_comment_tree(flat: Iterable[dict]) -> list[CommentNode]:
    """Nest a flat comment list into reply trees.

    Top-level comments become roots, replies hang under their parent, and a
    reply whose parent is not in ``flat`` is dropped. Order within each level
    follows the input order.
    """
    flat = list(flat)
    nodes = {c["id"]: CommentNode(c) for c in flat}
    roots: list[CommentNode] = []

    for c in flat:
        parent_id = c.get("parent_comment_id")
        if not parent_id:
            roots.append(nodes[c["id"]])
        elif parent_id in nodes:
            nodes[parent_id].children.append(nodes[c["id"]])

    return roots


def count_replies(node: CommentNode) -> int:
    return sum(1 + count_replies(child) for child in node.children)


def _descendant_ids(df: pd.DataFrame, comment_id: str) -> set[str]:
    ids = {comment_id}
    frontier = {comment_id}
    while frontier:
        children = set(df[df["parent_comment_id"].isin(frontier)]["id"]) - ids
        ids |= children
        frontier = children
    return ids


def delete_comment(comment_id: str, user_id: str | None) -> tuple[bool, str]:
    """Delete a comment and every reply below it (author only)."""
    comment = find_row("comments", id=comment_id)
    if comment is None:
        return False, "Comment not found."
    if comment["user_id"] != user_id:
        return False, "You can only delete your own comments."
    ids = _descendant_ids(load_table("comments"), comment_id)
    delete_rows("comments", lambda df: df["id"].isin(ids))
    logger.info(f"Deleted comment {comment_id} and {len(ids) - 1} replies")
    return True, "Comment deleted."
