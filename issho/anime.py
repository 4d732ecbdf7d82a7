"""
Anime catalog: local table, manual creation, and import from Jikan.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import config
from .jikan import JikanClient
from .log import IsshoError, JikanError
from .store import append_row, find_row, load_table, new_id, newest_first, now_iso, update_rows

logger = logging.getLogger(__name__)


@dataclass
class CombinedSearchResults:
    local_results: List[dict] = field(default_factory=list)
    jikan_results: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.local_results and not self.jikan_results


def _blank(value) -> str:
    return "" if value is None else str(value)


def map_jikan_to_anime(item: Dict[str, Any]) -> dict:
    """Keep only what we show, preferring the English title."""
    title = item.get("title") or ""
    title_english = item.get("title_english")
    alternate = title if title_english and title != title_english else ""
    jpg = (item.get("images") or {}).get("jpg") or {}
    genres = ", ".join(g["name"] for g in item.get("genres") or [])
    return {
        "name": title_english or title,
        "name_japanese": alternate,
        "external_id": _blank(item.get("mal_id")),
        "cover_image_url": jpg.get("large_image_url") or jpg.get("image_url") or "",
        "description": item.get("synopsis") or "",
        "episode_count": _blank(item.get("episodes") or None),
        "year": _blank(item.get("year") or None),
        "genres": genres,
        "status": item.get("status") or "",
        "mal_url": item.get("url") or "",
    }


# --------------------------
# Local catalog
# --------------------------
def get_anime(anime_id: str) -> dict | None:
    return find_row("anime", id=anime_id)


def get_anime_by_external_id(mal_id: int | str) -> dict | None:
    return find_row("anime", external_id=str(mal_id))


def fetch_all_anime() -> list[dict]:
    df = load_table("anime")
    return newest_first(df).to_dict("records")


def create_anime(name: str, description: str = "") -> tuple[bool, str]:
    name = (name or "").strip()
    if not name:
        return False, "Please enter a name for the anime."
    ts = now_iso()
    append_row("anime", {
        "id": new_id(),
        "created_at": ts,
        "updated_at": ts,
        "name": name,
        "description": (description or "").strip(),
    })
    return True, "Anime created."


def search_anime_in_db(query: str) -> list[dict]:
    q = (query or "").strip().lower()
    df = load_table("anime")
    hits = df[df["name"].str.lower().str.contains(q, regex=False)]
    return hits.sort_values("name").head(config.ANIME_SEARCH_LIMIT).to_dict("records")


def is_stale(anime: dict, now: Optional[datetime] = None) -> bool:
    try:
        updated = datetime.fromisoformat(anime.get("updated_at") or anime.get("created_at", ""))
    except ValueError:
        return True
    age = (now or datetime.now()) - updated
    return age.total_seconds() > config.ANIME_STALE_DAYS * 24 * 60 * 60


# --------------------------
# Jikan import
# --------------------------
def import_anime_from_jikan(mal_id: int, client: JikanClient) -> dict:
    """Return the local row for ``mal_id``, importing or refreshing it as needed."""
    existing = get_anime_by_external_id(mal_id)
    if existing:
        if is_stale(existing):
            logger.info(f"Anime {existing['id']} is older than {config.ANIME_STALE_DAYS} days, refreshing")
            return refresh_anime_from_jikan(existing["id"], client)
        return existing

    row = map_jikan_to_anime(client.get_anime_by_id(mal_id))
    ts = now_iso()
    row.update({"id": new_id(), "created_at": ts, "updated_at": ts})
    stored = append_row("anime", row)
    logger.info(f"Imported MAL {mal_id} as {stored['id']} ({stored['name']})")
    return stored


def refresh_anime_from_jikan(anime_id: str, client: JikanClient) -> dict:
    current = get_anime(anime_id)
    if not current or not current.get("external_id"):
        raise IsshoError("Cannot refresh anime without external_id")

    updates = map_jikan_to_anime(client.get_anime_by_id(int(current["external_id"])))
    updates["updated_at"] = now_iso()
    update_rows("anime", lambda df: df["id"] == anime_id, updates)
    return get_anime(anime_id)


def search_anime_combined(query: str, client: JikanClient) -> CombinedSearchResults:
    """Search the local table and Jikan; a failing side yields no results."""
    results = CombinedSearchResults()
    try:
        results.local_results = search_anime_in_db(query)
    except (OSError, KeyError, ValueError) as e:
        logger.error(f"Error searching anime in DB: {e}")
    try:
        results.jikan_results = client.search_anime(query, 1, 10).get("data", [])
    except JikanError as e:
        logger.warning(f"Error searching anime from Jikan: {e}")
    return results


def is_imported(jikan_item: Dict[str, Any], local_results: List[dict]) -> bool:
    mal_id = str(jikan_item.get("mal_id"))
    return any(a.get("external_id") == mal_id for a in local_results)
