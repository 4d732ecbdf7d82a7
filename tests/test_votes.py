import pandas as pd

from issho.entries import create_entry, get_entries_with_counts
from issho.votes import cast_vote, fetch_votes, tally_votes


def _entry_id(make_user, make_anime):
    user = make_user()
    anime = make_anime()
    create_entry(user["id"], anime["id"], rating=8)
    return get_entries_with_counts().iloc[0]["id"]


def test_vote_toggle_and_switch(make_user, make_anime):
    entry_id = _entry_id(make_user, make_anime)
    voter = make_user("bob@example.com")["id"]

    assert cast_vote(entry_id, voter, 1) == (True, "Vote recorded.")
    assert tally_votes(fetch_votes(entry_id), voter).user_vote == 1

    assert cast_vote(entry_id, voter, -1) == (True, "Vote changed.")
    tally = tally_votes(fetch_votes(entry_id), voter)
    assert (tally.likes, tally.dislikes, tally.user_vote) == (0, 1, -1)

    assert cast_vote(entry_id, voter, -1) == (True, "Vote removed.")
    assert fetch_votes(entry_id).empty


def test_one_vote_per_user(make_user, make_anime):
    entry_id = _entry_id(make_user, make_anime)
    voter = make_user("bob@example.com")["id"]
    cast_vote(entry_id, voter, 1)
    cast_vote(entry_id, voter, -1)
    assert len(fetch_votes(entry_id)) == 1


def test_vote_requires_login_and_valid_value(make_user, make_anime):
    entry_id = _entry_id(make_user, make_anime)
    ok, msg = cast_vote(entry_id, None, 1)
    assert not ok and "logged in" in msg
    ok, _ = cast_vote(entry_id, "someone", 2)
    assert not ok


def test_net_vote_count_in_feed(make_user, make_anime):
    entry_id = _entry_id(make_user, make_anime)
    for email, value in (("b@example.com", 1), ("c@example.com", 1), ("d@example.com", -1)):
        cast_vote(entry_id, make_user(email)["id"], value)
    assert get_entries_with_counts().iloc[0]["vote_count"] == 1


def test_tally_without_user():
    votes = pd.DataFrame({"user_id": ["a", "b", "c"], "vote": ["1", "1", "-1"]})
    tally = tally_votes(votes)
    assert (tally.likes, tally.dislikes, tally.user_vote, tally.score) == (2, 1, 0, 1)
