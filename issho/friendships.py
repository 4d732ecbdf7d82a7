"""
Friendships between users.

A request creates a ``pending`` row (requester -> addressee). The addressee
may accept it (``accepted``) or reject it, the requester may cancel it, and
either side may later unfriend. Reject, cancel and unfriend delete the row.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from .profiles import get_profile_by_id, profile_lookup
from .store import append_row, delete_rows, find_row, load_table, new_id, newest_first, now_iso, update_rows

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"


@dataclass
class FriendshipStatus:
    friendship: dict | None = None
    is_friend: bool = False
    is_pending: bool = False
    is_requester: bool = False
    is_addressee: bool = False


def _between(df: pd.DataFrame, a: str, b: str) -> pd.Series:
    return ((df["requester_id"] == a) & (df["addressee_id"] == b)) | (
        (df["requester_id"] == b) & (df["addressee_id"] == a)
    )


def _involving(df: pd.DataFrame, user_id: str) -> pd.Series:
    return (df["requester_id"] == user_id) | (df["addressee_id"] == user_id)


def find_friendship(a: str, b: str) -> dict | None:
    df = load_table("friendships")
    rows = df[_between(df, a, b)]
    if rows.empty:
        return None
    return rows.iloc[0].to_dict()


def send_friend_request(requester_id: str | None, addressee_id: str) -> tuple[bool, str]:
    if not requester_id:
        return False, "Not authenticated"
    if requester_id == addressee_id:
        return False, "You can't send a friend request to yourself."
    if get_profile_by_id(addressee_id) is None:
        return False, "User not found."
    if find_friendship(requester_id, addressee_id):
        return False, "A friend request already exists between you two."
    append_row("friendships", {
        "id": new_id(),
        "created_at": now_iso(),
        "requester_id": requester_id,
        "addressee_id": addressee_id,
        "status": PENDING,
    })
    logger.info(f"Friend request {requester_id} -> {addressee_id}")
    return True, "Friend request sent."


def accept_friend_request(friendship_id: str, user_id: str | None) -> tuple[bool, str]:
    row = find_row("friendships", id=friendship_id)
    if row is None or row["status"] != PENDING:
        return False, "Friend request not found."
    if row["addressee_id"] != user_id:
        return False, "Only the recipient can accept this request."
    update_rows("friendships", lambda df: df["id"] == friendship_id, {"status": ACCEPTED})
    return True, "Friend request accepted."


def _delete_if(friendship_id: str, allowed, not_found: str, forbidden: str, done: str) -> tuple[bool, str]:
    row = find_row("friendships", id=friendship_id)
    if row is None:
        return False, not_found
    if not allowed(row):
        return False, forbidden
    delete_rows("friendships", lambda df: df["id"] == friendship_id)
    return True, done


def reject_friend_request(friendship_id: str, user_id: str | None) -> tuple[bool, str]:
    return _delete_if(
        friendship_id,
        lambda r: r["status"] == PENDING and r["addressee_id"] == user_id,
        "Friend request not found.",
        "Only the recipient can reject this request.",
        "Friend request rejected.",
    )


def cancel_friend_request(friendship_id: str, user_id: str | None) -> tuple[bool, str]:
    return _delete_if(
        friendship_id,
        lambda r: r["status"] == PENDING and r["requester_id"] == user_id,
        "Friend request not found.",
        "Only the sender can cancel this request.",
        "Friend request cancelled.",
    )


def unfriend(friendship_id: str, user_id: str | None) -> tuple[bool, str]:
    return _delete_if(
        friendship_id,
        lambda r: r["status"] == ACCEPTED and user_id in (r["requester_id"], r["addressee_id"]),
        "Friendship not found.",
        "You are not part of this friendship.",
        "Friend removed.",
    )


def get_friendship_status(user_id: str | None, other_user_id: str) -> FriendshipStatus:
    if not user_id:
        return FriendshipStatus()
    row = find_friendship(user_id, other_user_id)
    if row is None:
        return FriendshipStatus()
    return FriendshipStatus(
        friendship=row,
        is_friend=row["status"] == ACCEPTED,
        is_pending=row["status"] == PENDING,
        is_requester=row["requester_id"] == user_id,
        is_addressee=row["addressee_id"] == user_id,
    )


def _with_profiles(df: pd.DataFrame, user_id: str, key: str = "friend") -> list[dict]:
    """Attach the other party's profile under ``key``."""
    profiles = profile_lookup()
    rows = newest_first(df).to_dict("records")
    for row in rows:
        other = row["addressee_id"] if row["requester_id"] == user_id else row["requester_id"]
        row[key] = profiles.get(other)
    return rows


def get_friends(user_id: str) -> list[dict]:
    df = load_table("friendships")
    return _with_profiles(df[(df["status"] == ACCEPTED) & _involving(df, user_id)], user_id)


def get_pending_incoming(user_id: str) -> list[dict]:
    df = load_table("friendships")
    return _with_profiles(df[(df["status"] == PENDING) & (df["addressee_id"] == user_id)], user_id, "requester")


def get_pending_outgoing(user_id: str) -> list[dict]:
    df = load_table("friendships")
    return _with_profiles(df[(df["status"] == PENDING) & (df["requester_id"] == user_id)], user_id, "addressee")


def get_friend_ids(user_id: str | None) -> list[str]:
    if not user_id:
        return []
    df = load_table("friendships")
    rows = df[(df["status"] == ACCEPTED) & _involving(df, user_id)]
    return [
        r["addressee_id"] if r["requester_id"] == user_id else r["requester_id"]
        for r in rows.to_dict("records")
    ]


def friends_feed(entries: pd.DataFrame, user_id: str) -> pd.DataFrame:
    """Keep entries written by the user or by their friends."""
    ids = set(get_friend_ids(user_id))
    ids.add(user_id)
    return entries[entries["user_id"].isin(ids)]
