"""
Personal anime list: one row per (user, anime) with status, rating and notes.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from . import config
from .store import append_row, delete_rows, find_row, load_table, new_id, newest_first, now_iso, update_rows

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "not_started": "To Watch",
    "watching": "Watching",
    "completed": "Completed",
    "dropped": "Dropped",
}
STATUSES = list(STATUS_LABELS)

_UNSET = object()


@dataclass
class ListStats:
    total: int = 0
    watching: int = 0
    completed: int = 0
    dropped: int = 0
    not_started: int = 0
    avg_rating: str = "N/A"

    def count_for(self, status: str) -> int:
        return self.total if status == "all" else getattr(self, status)


def parse_rating(value) -> tuple[bool, str]:
    """Normalise a rating to its stored string ('' for none)."""
    if value is None or value == "":
        return True, ""
    try:
        rating = int(str(value).strip())
    except ValueError:
        return False, "Rating must be a whole number."
    if not (config.RATING_MIN <= rating <= config.RATING_MAX):
        return False, f"Rating must be between {config.RATING_MIN} and {config.RATING_MAX}."
    return True, str(rating)


def _join_anime(df: pd.DataFrame) -> list[dict]:
    anime = {r["id"]: r for r in load_table("anime").to_dict("records")}
    rows = df.to_dict("records")
    for row in rows:
        row["anime"] = anime.get(row["anime_id"])
    return rows


def fetch_user_anime_list(user_id: str, status: str | None = None) -> list[dict]:
    """List rows for a user, most recently updated first, each with its ``anime``."""
    df = load_table("user_anime_entries")
    df = df[df["user_id"] == user_id]
    if status:
        df = df[df["status"] == status]
    df = newest_first(df, "updated_at")
    return _join_anime(df)


def get_user_anime_entry(anime_id: str, user_id: str) -> dict | None:
    row = find_row("user_anime_entries", anime_id=anime_id, user_id=user_id)
    if row is None:
        return None
    row["anime"] = find_row("anime", id=anime_id)
    return row


def add_user_anime_entry(anime_id: str, user_id: str, status: str = "not_started") -> tuple[bool, str]:
    if status not in STATUS_LABELS:
        return False, f"Unknown status: {status}"
    if find_row("user_anime_entries", anime_id=anime_id, user_id=user_id):
        return False, "This anime is already on your list."
    ts = now_iso()
    append_row("user_anime_entries", {
        "id": new_id(),
        "created_at": ts,
        "updated_at": ts,
        "user_id": user_id,
        "anime_id": anime_id,
        "status": status,
    })
    return True, f"Added to your list as {STATUS_LABELS[status]}."


def update_user_anime_entry(
    entry_id: str, user_id: str | None, status=_UNSET, rating=_UNSET, review=_UNSET,
) -> tuple[bool, str]:
    """Change only the fields that were passed; None or '' clears rating/review."""
    row = find_row("user_anime_entries", id=entry_id)
    if row is None:
        return False, "List entry not found."
    if row["user_id"] != user_id:
        return False, "You can only edit your own list."

    updates: dict = {}
    if status is not _UNSET:
        if status not in STATUS_LABELS:
            return False, f"Unknown status: {status}"
        updates["status"] = status
    if rating is not _UNSET:
        ok, value = parse_rating(rating)
        if not ok:
            return False, value
        updates["rating"] = value
    if review is not _UNSET:
        updates["review"] = (review or "").strip()

    updates["updated_at"] = now_iso()
    update_rows("user_anime_entries", lambda df: df["id"] == entry_id, updates)
    return True, "List entry updated."


def remove_user_anime_entry(entry_id: str, user_id: str | None) -> tuple[bool, str]:
    row = find_row("user_anime_entries", id=entry_id)
    if row is None:
        return False, "List entry not found."
    if row["user_id"] != user_id:
        return False, "You can only edit your own list."
    delete_rows("user_anime_entries", lambda df: df["id"] == entry_id)
    return True, "Removed from your list."


def get_user_list_stats(user_id: str) -> ListStats:
    df = load_table("user_anime_entries")
    df = df[df["user_id"] == user_id]
    counts = df["status"].value_counts()
    ratings = pd.to_numeric(df["rating"], errors="coerce").dropna()
    return ListStats(
        total=len(df),
        watching=int(counts.get("watching", 0)),
        completed=int(counts.get("completed", 0)),
        dropped=int(counts.get("dropped", 0)),
        not_started=int(counts.get("not_started", 0)),
        avg_rating=f"{ratings.mean():.1f}" if not ratings.empty else "N/A",
    )
