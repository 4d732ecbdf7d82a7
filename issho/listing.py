"""
In-memory search, filtering and pagination over lists that were already loaded.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Sequence

import pandas as pd

from . import config
from .entries import ENTRY_TYPE_LABELS


@dataclass
class Page:
    items: Any
    page: int
    total: int
    start: int
    end: int
    page_count: int

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count - 1

    def caption(self) -> str:
        if self.total == 0:
            return "Nothing to show"
        return f"Showing {self.start + 1}–{self.end} of {self.total}"


def paginate(items: Sequence | pd.DataFrame, page: int, page_size: int = config.PAGE_SIZE) -> Page:
    """Slice one page out of ``items``; out-of-range pages are clamped."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total = len(items)
    page_count = max(1, math.ceil(total / page_size))
    page = min(max(0, page), page_count - 1)
    start = page * page_size
    end = min(start + page_size, total)
    if isinstance(items, pd.DataFrame):
        sliced = items.iloc[start:end]
    else:
        sliced = list(items)[start:end]
    return Page(items=sliced, page=page, total=total, start=start, end=end, page_count=page_count)


def search_text(df: pd.DataFrame, column: str, query: str) -> pd.DataFrame:
    """Case-insensitive substring filter on one column."""
    q = (query or "").strip().lower()
    if not q:
        return df
    return df[df[column].fillna("").str.lower().str.contains(q, regex=False)]


def filter_by_status(df: pd.DataFrame, status: str | None) -> pd.DataFrame:
    if not status or status == "all":
        return df
    return df[df["status"] == status]


def filter_entries_by_query(entries: pd.DataFrame, query: str) -> pd.DataFrame:
    """Query rules:
       - empty/None : no filter
       - '@name'    : entries by that user
       - '#type'    : entries of that type (review, rating, status_update)
       - otherwise  : substring of anime name or content, case-insensitive
    """
    if not query or not query.strip():
        return entries
    q = query.strip().lower()

    if q.startswith("@"):
        return entries[entries["username"].str.lower() == q[1:]]

    if q.startswith("#"):
        wanted = q[1:].replace(" ", "_")
        if wanted not in ENTRY_TYPE_LABELS:
            return entries.iloc[0:0]
        return entries[entries["entry_type"] == wanted]

    name_hit = entries["anime_name"].fillna("").str.lower().str.contains(q, regex=False)
    content_hit = entries["content"].fillna("").str.lower().str.contains(q, regex=False)
    return entries[name_hit | content_hit]


def trending_anime(entries: pd.DataFrame, topk: int = 10) -> list[tuple[str, int]]:
    """Anime with the most entries, as (name, count)."""
    names = [n for n in entries["anime_name"].tolist() if n]
    return Counter(names).most_common(topk)
