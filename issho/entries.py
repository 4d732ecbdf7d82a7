"""
Entries: the social posts about an anime (review / rating / status update).
"""

import logging

import pandas as pd

from .anime import get_anime
from .profiles import profile_lookup
from .store import append_row, delete_rows, find_row, load_table, new_id, newest_first, now_iso
from .watchlist import STATUS_LABELS, get_user_anime_entry, parse_rating, update_user_anime_entry

logger = logging.getLogger(__name__)

ENTRY_TYPE_LABELS = {
    "review": "📝 Review",
    "rating": "⭐ Rating",
    "status_update": "📺 Status Update",
}


def entry_type_label(entry_type: str) -> str:
    return ENTRY_TYPE_LABELS.get(entry_type, entry_type)


def create_entry(
    user_id: str | None,
    anime_id: str,
    status: str | None = None,
    rating=None,
    review: str | None = None,
) -> tuple[bool, str]:
    """Record list changes for ``anime_id`` and post one entry describing them."""
    if not user_id:
        return False, "User not authenticated"
    if not anime_id or get_anime(anime_id) is None:
        return False, "Please select an anime."
    review = (review or "").strip()
    status = status or None
    if status and status not in STATUS_LABELS:
        return False, f"Unknown status: {status}"
    ok, rating_value = parse_rating(rating)
    if not ok:
        return False, rating_value
    if not status and not rating_value and not review:
        return False, "Fill in at least one of status, rating, or review."

    existing = get_user_anime_entry(anime_id, user_id)
    if existing:
        changes: dict = {}
        if status:
            changes["status"] = status
        if rating_value:
            changes["rating"] = rating_value
        if review:
            changes["review"] = review
        if changes:
            update_user_anime_entry(existing["id"], user_id, **changes)
    else:
        ts = now_iso()
        append_row("user_anime_entries", {
            "id": new_id(),
            "created_at": ts,
            "updated_at": ts,
            "user_id": user_id,
            "anime_id": anime_id,
            "status": status or "not_started",
            "rating": rating_value,
            "review": review,
        })

    entry_type = "review" if review else "rating" if rating_value else "status_update"
    append_row("entries", {
        "id": new_id(),
        "created_at": now_iso(),
        "user_id": user_id,
        "anime_id": anime_id,
        "entry_type": entry_type,
        "content": review,
        "rating_value": rating_value,
        "status_value": status or "",
    })
    return True, "Entry created."


def get_entries_with_counts(anime_id: str | None = None) -> pd.DataFrame:
    """Entries, newest first, with vote/comment counts and anime + author columns.

    ``vote_count`` is the net score (sum of +1/-1 votes).
    """
    entries = load_table("entries")
    if anime_id is not None:
        entries = entries[entries["anime_id"] == anime_id]
    entries = entries.copy()

    votes = load_table("votes")
    vote_sum = pd.to_numeric(votes["vote"], errors="coerce").fillna(0).groupby(votes["entry_id"]).sum()
    comment_count = load_table("comments").groupby("entry_id").size()

    entries["vote_count"] = entries["id"].map(vote_sum).fillna(0).astype(int)
    entries["comment_count"] = entries["id"].map(comment_count).fillna(0).astype(int)

    anime = load_table("anime").set_index("id")
    entries["anime_name"] = entries["anime_id"].map(anime["name"]).fillna("")
    entries["cover_image_url"] = entries["anime_id"].map(anime["cover_image_url"]).fillna("")

    profiles = profile_lookup()
    entries["username"] = entries["user_id"].map(lambda uid: profiles.get(uid, {}).get("username", ""))
    entries["avatar_url"] = entries["user_id"].map(lambda uid: profiles.get(uid, {}).get("avatar_url", ""))

    return newest_first(entries)


def fetch_anime_entries(anime_id: str) -> pd.DataFrame:
    return get_entries_with_counts(anime_id=anime_id)


def get_entry(entry_id: str) -> dict | None:
    entry = find_row("entries", id=entry_id)
    if entry is None:
        return None
    entry["anime"] = get_anime(entry["anime_id"])
    return entry


def delete_entry(entry_id: str, user_id: str | None) -> tuple[bool, str]:
    """Delete an entry with its votes and comments (author only)."""
    entry = find_row("entries", id=entry_id)
    if entry is None:
        return False, "Entry not found."
    if entry["user_id"] != user_id:
        return False, "You can only delete your own entries."
    delete_rows("votes", lambda df: df["entry_id"] == entry_id)
    delete_rows("comments", lambda df: df["entry_id"] == entry_id)
    delete_rows("entries", lambda df: df["id"] == entry_id)
    logger.info(f"Deleted entry {entry_id}")
    return True, "Entry deleted."
