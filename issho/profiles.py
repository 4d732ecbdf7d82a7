"""
User profiles: lookup, editing, avatars and user search.
"""

import logging
import re

from . import config
from .store import (
    append_row, delete_avatar_files, find_row, load_table, now_iso,
    save_avatar_file, update_rows,
)

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def get_profile_by_id(user_id: str) -> dict | None:
    return find_row("profiles", id=user_id)


def get_profile_by_username(username: str) -> dict | None:
    return find_row("profiles", username_lc=(username or "").lower())


def username_taken(username: str, exclude_user_id: str = "") -> bool:
    profiles = load_table("profiles")
    clash = profiles[(profiles["username_lc"] == username.lower()) & (profiles["id"] != exclude_user_id)]
    return not clash.empty


def validate_username(username: str) -> str | None:
    """Return an error message, or None when the username is acceptable."""
    if not (config.USERNAME_MIN_CHARS <= len(username) <= config.USERNAME_MAX_CHARS):
        return (
            f"Username must be {config.USERNAME_MIN_CHARS}-{config.USERNAME_MAX_CHARS} characters."
        )
    if not USERNAME_RE.match(username):
        return "Username may only contain letters, numbers, and underscores."
    return None


def create_profile(user_id: str, username: str) -> dict:
    ts = now_iso()
    return append_row("profiles", {
        "id": user_id,
        "username": username,
        "username_lc": username.lower(),
        "bio": "",
        "avatar_url": "",
        "created_at": ts,
        "updated_at": ts,
    })


def update_profile(user_id: str, username: str | None = None, bio: str | None = None) -> tuple[bool, str]:
    """Update username and/or bio for ``user_id``."""
    if get_profile_by_id(user_id) is None:
        return False, "Profile not found."

    updates: dict = {}
    if username is not None:
        username = username.strip()
        error = validate_username(username)
        if error:
            return False, error
        if username_taken(username, exclude_user_id=user_id):
            return False, "That username is already taken."
        updates["username"] = username
        updates["username_lc"] = username.lower()

    if bio is not None:
        if len(bio) > config.BIO_MAX_CHARS:
            return False, f"Bio can be at most {config.BIO_MAX_CHARS} characters."
        updates["bio"] = bio

    updates["updated_at"] = now_iso()
    update_rows("profiles", lambda df: df["id"] == user_id, updates)
    return True, "Profile saved."


# --------------------------
# Avatars
# --------------------------
def upload_avatar(user_id: str, filename: str, data: bytes) -> str:
    """Store the image and return its location."""
    return save_avatar_file(user_id, filename, data)


def update_avatar(user_id: str, filename: str, data: bytes) -> tuple[bool, str]:
    if not data:
        return False, "The uploaded file is empty."
    url = upload_avatar(user_id, filename, data)
    update_rows("profiles", lambda df: df["id"] == user_id, {"avatar_url": url, "updated_at": now_iso()})
    return True, "Avatar updated."


def delete_avatar(user_id: str) -> None:
    delete_avatar_files(user_id)
    update_rows("profiles", lambda df: df["id"] == user_id, {"avatar_url": "", "updated_at": now_iso()})


def avatar_initial(username: str) -> str:
    """Fallback shown when a user has no avatar image."""
    return username[:1].upper() if username else "?"


# --------------------------
# Search
# --------------------------
def search_users(query: str) -> list[dict]:
    q = (query or "").strip().lower()
    if len(q) < config.USER_SEARCH_MIN_CHARS:
        return []
    profiles = load_table("profiles")
    hits = profiles[profiles["username_lc"].str.contains(q, regex=False)]
    hits = hits.sort_values("username").head(config.USER_SEARCH_LIMIT)
    return hits.to_dict("records")


def profile_lookup() -> dict[str, dict]:
    """Map of user id to profile row, for joining author data onto lists."""
    profiles = load_table("profiles")
    return {r["id"]: r for r in profiles.to_dict("records")}


def new_profile_username(email: str) -> str:
    """Derive a unique, valid username from an email's local part."""
    base = re.sub(r"[^A-Za-z0-9_]", "", (email or "").split("@")[0])
    base = base[:config.USERNAME_MAX_CHARS]
    if len(base) < config.USERNAME_MIN_CHARS:
        base = (base + "user")[:config.USERNAME_MAX_CHARS]
    candidate = base
    n = 1
    while username_taken(candidate):
        suffix = str(n)
        candidate = base[:config.USERNAME_MAX_CHARS - len(suffix)] + suffix
        n += 1
    logger.debug(f"Derived username {candidate!r} from {email!r}")
    return candidate
