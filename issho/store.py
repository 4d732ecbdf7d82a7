"""
CSV-backed table store.

Every table lives in ``config.DATA_DIR`` as one CSV file with all columns
stored as strings. Reads go through ``st.cache_data``; every write clears the
caches so the next rerun sees fresh data.
"""

import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable

import pandas as pd
import streamlit as st

from . import config

logger = logging.getLogger(__name__)

# ▶ table schemas
SCHEMAS: dict[str, list[str]] = {
    "users": ["id", "email", "email_lc", "password_hash", "created_at"],
    "profiles": ["id", "username", "username_lc", "bio", "avatar_url", "created_at", "updated_at"],
    "anime": [
        "id", "created_at", "updated_at", "name", "name_japanese", "description",
        "episode_count", "cover_image_url", "year", "external_id", "genres", "status", "mal_url",
    ],
    "user_anime_entries": ["id", "created_at", "updated_at", "user_id", "anime_id", "status", "rating", "review"],
    "entries": ["id", "created_at", "user_id", "anime_id", "entry_type", "content", "rating_value", "status_value"],
    "votes": ["id", "created_at", "entry_id", "user_id", "vote"],
    "comments": ["id", "created_at", "entry_id", "user_id", "parent_comment_id", "content", "is_spoiler"],
    "friendships": ["id", "created_at", "requester_id", "addressee_id", "status"],
}

RowMask = Callable[[pd.DataFrame], pd.Series]


def table_path(name: str) -> Path:
    if name not in SCHEMAS:
        raise KeyError(f"Unknown table: {name}")
    return Path(config.DATA_DIR) / f"{name}.csv"


def now_iso() -> str:
    """Return the current time as an ISO8601 string (microseconds)."""
    return datetime.now().isoformat(timespec="microseconds")


def newest_first(df: pd.DataFrame, column: str = "created_at") -> pd.DataFrame:
    """Sort descending on ``column``; rows written later win ties."""
    return df.iloc[::-1].sort_values(column, ascending=False, kind="stable")


def new_id() -> str:
    return uuid.uuid4().hex


# ======================================================================
# File creation / schema upgrade
# ======================================================================

def ensure_csv(path: Path, columns: list[str]) -> None:
    """Create a header-only CSV at ``path`` if it doesn't exist."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        pd.DataFrame(columns=columns).to_csv(path, index=False)


def upgrade_csv_schema(path: Path, required_cols: list[str]) -> None:
    """Add missing columns to an existing CSV and put required columns first."""
    if not path.exists():
        return
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    changed = False

    for col in required_cols:
        if col not in df.columns:
            df[col] = ""
            changed = True

    ordered = required_cols + [c for c in df.columns if c not in required_cols]
    if list(df.columns) != ordered:
        df = df[ordered]
        changed = True

    if changed:
        logger.info(f"Upgraded schema of {path.name}")
        df.fillna("").to_csv(path, index=False)


def bootstrap_data_files() -> None:
    """Create every table file and bring old files up to the current schema."""
    for name, columns in SCHEMAS.items():
        path = table_path(name)
        ensure_csv(path, columns)
        upgrade_csv_schema(path, columns)


# ======================================================================
# Reads
# ======================================================================

@st.cache_data(show_spinner=False)
def _read_table(path_str: str) -> pd.DataFrame:
    return pd.read_csv(path_str, dtype=str, keep_default_na=False).fillna("")


def load_table(name: str) -> pd.DataFrame:
    path = table_path(name)
    ensure_csv(path, SCHEMAS[name])
    return _read_table(str(path))


def clear_data_caches() -> None:
    """Invalidate every cached table."""
    _read_table.clear()


def find_row(name: str, **match: str) -> dict | None:
    """Return the first row whose columns equal ``match``, or None."""
    df = load_table(name)
    mask = pd.Series(True, index=df.index)
    for col, value in match.items():
        mask &= df[col] == str(value)
    rows = df[mask]
    if rows.empty:
        return None
    return rows.iloc[0].to_dict()


# ======================================================================
# Writes
# ======================================================================

def append_row(name: str, row: dict) -> dict:
    """Append one row to a table and return it as stored."""
    path = table_path(name)
    columns = SCHEMAS[name]
    ensure_csv(path, columns)
    stored = {col: "" if row.get(col) is None else str(row.get(col)) for col in columns}
    pd.DataFrame([stored], columns=columns).to_csv(
        path,
        mode="a",
        header=os.path.getsize(path) == 0,
        index=False,
    )
    clear_data_caches()
    return stored


def overwrite_table(name: str, df: pd.DataFrame) -> None:
    """Replace the whole table."""
    df.to_csv(table_path(name), index=False)
    clear_data_caches()


def update_rows(name: str, mask_fn: RowMask, updates: dict) -> int:
    """Set ``updates`` on every row selected by ``mask_fn``; return the row count."""
    df = load_table(name)
    mask = mask_fn(df)
    count = int(mask.sum())
    if count == 0:
        return 0
    for col, value in updates.items():
        df.loc[mask, col] = "" if value is None else str(value)
    overwrite_table(name, df)
    return count


def delete_rows(name: str, mask_fn: RowMask) -> int:
    """Delete every row selected by ``mask_fn``; return the row count."""
    df = load_table(name)
    mask = mask_fn(df)
    count = int(mask.sum())
    if count:
        overwrite_table(name, df[~mask])
    return count


# ======================================================================
# Avatar storage
# ======================================================================

def avatar_dir(user_id: str) -> Path:
    return Path(config.DATA_DIR) / config.AVATAR_DIR_NAME / user_id


def delete_avatar_files(user_id: str) -> int:
    folder = avatar_dir(user_id)
    if not folder.exists():
        return 0
    removed = 0
    for f in folder.glob("avatar.*"):
        f.unlink()
        removed += 1
    return removed


def save_avatar_file(user_id: str, filename: str, data: bytes) -> str:
    """Store an avatar as ``<user_id>/avatar.<ext>``, replacing any previous one."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "png"
    folder = avatar_dir(user_id)
    folder.mkdir(parents=True, exist_ok=True)
    delete_avatar_files(user_id)
    target = folder / f"avatar.{ext}"
    target.write_bytes(data)
    logger.info(f"Stored avatar for {user_id} at {target}")
    return str(target)
