"""
Up/down votes on entries. One vote per (entry, user).
"""

from dataclasses import dataclass

import pandas as pd

from .store import append_row, delete_rows, find_row, load_table, new_id, now_iso, update_rows

VOTE_VALUES = (1, -1)


@dataclass
class VoteTally:
    likes: int = 0
    dislikes: int = 0
    user_vote: int = 0

    @property
    def score(self) -> int:
        return self.likes - self.dislikes


def fetch_votes(entry_id: str) -> pd.DataFrame:
    df = load_table("votes")
    return df[df["entry_id"] == entry_id]


def cast_vote(entry_id: str, user_id: str | None, value: int) -> tuple[bool, str]:
    """Vote, switch the vote, or take it back when the same value is cast again."""
    if not user_id:
        return False, "You must be logged in to vote!"
    if value not in VOTE_VALUES:
        return False, "A vote must be 1 or -1."

    existing = find_row("votes", entry_id=entry_id, user_id=user_id)
    if existing is None:
        append_row("votes", {
            "id": new_id(),
            "created_at": now_iso(),
            "entry_id": entry_id,
            "user_id": user_id,
            "vote": value,
        })
        return True, "Vote recorded."

    if int(existing["vote"]) == value:
        delete_rows("votes", lambda df: df["id"] == existing["id"])
        return True, "Vote removed."

    update_rows("votes", lambda df: df["id"] == existing["id"], {"vote": value})
    return True, "Vote changed."


def tally_votes(votes: pd.DataFrame, user_id: str | None = None) -> VoteTally:
    values = pd.to_numeric(votes["vote"], errors="coerce")
    tally = VoteTally(likes=int((values == 1).sum()), dislikes=int((values == -1).sum()))
    if user_id:
        mine = values[votes["user_id"] == user_id]
        if not mine.empty:
            tally.user_vote = int(mine.iloc[0])
    return tally
