import logging

import streamlit as st

from issho import config
from issho.anime import (
    create_anime, fetch_all_anime, get_anime, import_anime_from_jikan, is_imported,
    refresh_anime_from_jikan, search_anime_combined,
)
from issho.auth import current_user, login, logout, refresh_session_user, sign_in, sign_up
from issho.comments import (
    CommentNode, build_comment_tree, count_replies, create_comment, delete_comment, fetch_comments,
)
from issho.entries import (
    create_entry, delete_entry, entry_type_label, fetch_anime_entries, get_entries_with_counts, get_entry,
)
from issho.friendships import (
    accept_friend_request, cancel_friend_request, friends_feed, get_friends, get_friendship_status,
    get_pending_incoming, get_pending_outgoing, reject_friend_request, send_friend_request, unfriend,
)
from issho.jikan import JikanClient
from issho.listing import filter_entries_by_query, paginate, search_text, trending_anime
from issho.log import IsshoError, JikanError, setup_logging
from issho.profiles import (
    avatar_initial, delete_avatar, get_profile_by_id, get_profile_by_username, search_users,
    update_avatar, update_profile,
)
from issho.store import bootstrap_data_files, load_table, newest_first
from issho.votes import cast_vote, fetch_votes, tally_votes
from issho.watchlist import (
    STATUS_LABELS, STATUSES, add_user_anime_entry, fetch_user_anime_list, get_user_anime_entry,
    get_user_list_stats, remove_user_anime_entry, update_user_anime_entry,
)

logger = logging.getLogger(__name__)

PAGES = ["Home", "Anime", "Create Entry", "My List", "Friends", "Profile"]


@st.cache_resource
def get_jikan_client() -> JikanClient:
    """One client per server process so the rate limit holds across reruns."""
    return JikanClient()


def go(view: str, **params) -> None:
    """Switch the main view (sidebar page) and remember its parameters."""
    st.session_state["view"] = view
    for key, value in params.items():
        st.session_state[key] = value
    st.rerun()


def show_result(ok: bool, msg: str) -> None:
    if ok:
        st.success(msg)
    else:
        st.warning(msg)


# ======================================================================
# Small components
# ======================================================================

def render_avatar(username: str, avatar_url: str, width: int = 40):
    if avatar_url:
        try:
            st.image(avatar_url, width=width)
            return
        except Exception as e:  # missing file or bad url, fall back to the initial
            logger.warning(f"Could not render avatar {avatar_url}: {e}")
    st.markdown(f"**`{avatar_initial(username)}`**")


def render_vote_buttons(entry_id: str, user: dict | None):
    tally = tally_votes(fetch_votes(entry_id), user["id"] if user else None)
    cols = st.columns([1, 1, 6])
    up = f"{'✅ ' if tally.user_vote == 1 else ''}👍 {tally.likes}"
    down = f"{'❌ ' if tally.user_vote == -1 else ''}👎 {tally.dislikes}"
    for col, label, value in ((cols[0], up, 1), (cols[1], down, -1)):
        if col.button(label, key=f"vote_{value}_{entry_id}"):
            ok, msg = cast_vote(entry_id, user["id"] if user else None, value)
            if ok:
                st.rerun()
            else:
                st.warning(msg)


def render_comment(node: CommentNode, entry_id: str, user: dict | None, depth: int = 0):
    c = node.comment
    quote = "> " * depth
    st.markdown(f"{quote}**{c['username'] or 'unknown'}** · _{c['created_at'][:16].replace('T', ' ')}_")
    if c["is_spoiler"]:
        with st.expander(f"{'↳ ' * depth}⚠️ Spoiler, click to reveal"):
            st.write(c["content"])
    else:
        st.markdown(f"{quote}{c['content']}")

    cid = c["id"]
    if user:
        cols = st.columns([1, 1, 6])
        reply_key = f"show_reply_{cid}"
        if cols[0].button("Cancel" if st.session_state.get(reply_key) else "Reply", key=f"reply_toggle_{cid}"):
            st.session_state[reply_key] = not st.session_state.get(reply_key, False)
            st.rerun()
        if c["user_id"] == user["id"] and cols[1].button("Delete", key=f"cdel_{cid}"):
            ok, msg = delete_comment(cid, user["id"])
            show_result(ok, msg)
            if ok:
                st.rerun()
        if st.session_state.get(reply_key):
            with st.form(f"reply_form_{cid}", clear_on_submit=True):
                text = st.text_area("Leave a reply...", key=f"reply_text_{cid}", height=70)
                spoiler = st.checkbox("Contains spoilers", key=f"reply_spoiler_{cid}")
                if st.form_submit_button("Post Reply"):
                    ok, msg = create_comment(entry_id, user["id"], text, parent_comment_id=cid, is_spoiler=spoiler)
                    show_result(ok, msg)
                    if ok:
                        st.session_state[reply_key] = False
                        st.rerun()

    if node.children:
        n = count_replies(node)
        show_key = f"show_children_{cid}"
        label = f"Hide Replies ({n})" if st.session_state.get(show_key) else f"Show Replies ({n})"
        if st.button(label, key=f"children_toggle_{cid}"):
            st.session_state[show_key] = not st.session_state.get(show_key, False)
            st.rerun()
        if st.session_state.get(show_key):
            for child in node.children:
                render_comment(child, entry_id, user, depth + 1)


def render_comment_section(entry_id: str, user: dict | None):
    st.markdown("#### 💬 Comments")
    if user:
        with st.form(f"comment_form_{entry_id}", clear_on_submit=True):
            text = st.text_area("Leave a comment...", key=f"cmt_text_{entry_id}", height=90)
            spoiler = st.checkbox("Contains spoilers", key=f"cmt_spoiler_{entry_id}")
            if st.form_submit_button("Post Comment"):
                ok, msg = create_comment(entry_id, user["id"], text, is_spoiler=spoiler)
                show_result(ok, msg)
                if ok:
                    st.rerun()
    else:
        st.caption("You must be logged in to post a comment")

    tree = build_comment_tree(fetch_comments(entry_id))
    if not tree:
        st.caption("No comments yet.")
    for node in tree:
        render_comment(node, entry_id, user)


def render_entry_card(entry: dict, user: dict | None):
    """Feed card for one entry."""
    st.markdown("---")
    cols = st.columns([1, 5])
    with cols[0]:
        if entry.get("cover_image_url"):
            st.image(entry["cover_image_url"], width=80)
    with cols[1]:
        st.markdown(f"{entry_type_label(entry['entry_type'])} · **{entry.get('anime_name') or 'Unknown Anime'}**")
        st.caption(f"by @{entry.get('username') or 'unknown'} · {entry['created_at'][:16].replace('T', ' ')}")
        if entry.get("status_value"):
            st.write(f"Status: {STATUS_LABELS.get(entry['status_value'], entry['status_value'])}")
        if entry.get("rating_value"):
            st.write(f"⭐ {entry['rating_value']}/10")
        if entry.get("content"):
            st.write(entry["content"])
        st.caption(f"▲ {entry.get('vote_count', 0)} · 💬 {entry.get('comment_count', 0)}")

    eid = entry["id"]
    bcols = st.columns([1, 1, 1, 5])
    if bcols[0].button("Open", key=f"open_{eid}"):
        go("Entry", entry_id=eid)
    if bcols[1].button("Anime", key=f"anime_{eid}"):
        go("Anime", anime_id=entry["anime_id"])
    if bcols[2].button("Author", key=f"author_{eid}"):
        go("Profile", profile_username=entry.get("username", ""))

    with st.expander("👍 Votes / 💬 comments", expanded=False):
        render_vote_buttons(eid, user)
        render_comment_section(eid, user)


# ======================================================================
# Pages
# ======================================================================

def show_login_box():
    """Sign in / sign up."""
    st.subheader("🔐 Sign in / Sign up")
    tabs = st.tabs(["Sign in", "Sign up"])

    with tabs[0]:
        with st.form("login_form", clear_on_submit=False):
            email = st.text_input("Email address", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("Sign in", use_container_width=True)
        if submitted:
            user = sign_in(email, password)
            if user:
                login(user)
                st.rerun()
            else:
                st.error("Invalid email or password.")

    with tabs[1]:
        with st.form("signup_form", clear_on_submit=False):
            email = st.text_input("Email address", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            confirm = st.text_input("Confirm password", type="password", key="signup_confirm")
            submitted = st.form_submit_button("Sign up", use_container_width=True)
        if submitted:
            ok, msg, user = sign_up(email, password, confirm)
            if ok:
                login(user)
                st.rerun()
            else:
                st.error(msg)


def show_feed(user: dict | None):
    """Newest entries, with search, friends mode and pagination."""
    st.subheader("📰 Recent activity")
    entries = get_entries_with_counts()
    if entries.empty:
        st.info("No entries yet. Create the first one!")
        return

    if st.session_state.get("feed_mode") == "Friends" and user:
        entries = friends_feed(entries, user["id"])

    entries = filter_entries_by_query(entries, st.session_state.get("query", ""))
    page = paginate(entries, int(st.session_state.get("page", 0)))
    st.session_state["page"] = page.page

    if page.total == 0:
        st.info("No entries match.")
        return

    st.caption(page.caption())
    for row in page.items.to_dict("records"):
        render_entry_card(row, user)

    nav = st.columns([1, 1, 6])
    if nav[0].button("⬅ Prev", disabled=not page.has_prev, key="feed_prev"):
        st.session_state["page"] = page.page - 1
        st.rerun()
    if nav[1].button("Next ➡", disabled=not page.has_next, key="feed_next"):
        st.session_state["page"] = page.page + 1
        st.rerun()


def show_entry_page(user: dict | None):
    entry = get_entry(st.session_state.get("entry_id", ""))
    if entry is None:
        st.error("Entry not found.")
        return
    anime = entry.get("anime") or {}
    st.subheader(entry_type_label(entry["entry_type"]))
    st.markdown(f"## {anime.get('name', 'Unknown Anime')}")
    if anime.get("cover_image_url"):
        st.image(anime["cover_image_url"], width=200)
    author = get_profile_by_id(entry["user_id"]) or {}
    st.caption(f"Posted by @{author.get('username', 'unknown')} on {entry['created_at'][:10]}")
    if entry.get("status_value"):
        st.write(f"Status: {STATUS_LABELS.get(entry['status_value'], entry['status_value'])}")
    if entry.get("rating_value"):
        st.write(f"⭐ {entry['rating_value']}/10")
    if entry.get("content"):
        st.write(entry["content"])

    if user and user["id"] == entry["user_id"]:
        if st.button("Delete entry", key="entry_delete"):
            ok, msg = delete_entry(entry["id"], user["id"])
            if ok:
                go("Home")
            st.warning(msg)

    render_vote_buttons(entry["id"], user)
    render_comment_section(entry["id"], user)


def show_list_controls(anime_id: str, user: dict):
    """Status picker + edit form for the user's list row of one anime."""
    row = get_user_anime_entry(anime_id, user["id"])
    options = STATUSES
    current = row["status"] if row else None
    picked = st.selectbox(
        "Your list",
        [None] + options,
        index=(options.index(current) + 1) if current else 0,
        format_func=lambda s: "+ Add to your List" if s is None else STATUS_LABELS[s] + (" ✓" if s == current else ""),
        key=f"status_pick_{anime_id}",
    )
    if picked and picked != current:
        if row:
            ok, msg = update_user_anime_entry(row["id"], user["id"], status=picked)
        else:
            ok, msg = add_user_anime_entry(anime_id, user["id"], picked)
        show_result(ok, msg)
        if ok:
            st.rerun()

    if row:
        with st.expander("Edit list entry"):
            render_list_entry_form(row, user["id"])


def render_list_entry_form(row: dict, user_id: str):
    with st.form(f"edit_list_{row['id']}"):
        status = st.selectbox(
            "Status", STATUSES, index=STATUSES.index(row["status"]),
            format_func=STATUS_LABELS.get, key=f"edit_status_{row['id']}",
        )
        rating = st.selectbox(
            "Rating", [""] + [str(i) for i in range(config.RATING_MIN, config.RATING_MAX + 1)],
            index=int(row["rating"]) if row["rating"] else 0,
            format_func=lambda r: "No rating" if r == "" else f"{r}/10",
            key=f"edit_rating_{row['id']}",
        )
        review = st.text_area("Notes / review", value=row.get("review", ""), key=f"edit_review_{row['id']}")
        save_col, remove_col = st.columns(2)
        saved = save_col.form_submit_button("Save")
        removed = remove_col.form_submit_button("Remove from list")
    if saved:
        ok, msg = update_user_anime_entry(row["id"], user_id, status=status, rating=rating, review=review)
        show_result(ok, msg)
        if ok:
            st.rerun()
    if removed:
        ok, msg = remove_user_anime_entry(row["id"], user_id)
        show_result(ok, msg)
        if ok:
            st.rerun()


def show_anime_detail(anime_id: str, user: dict | None):
    anime = get_anime(anime_id)
    if anime is None:
        st.error("Error loading anime details")
        return
    if st.button("⬅ All anime", key="anime_back"):
        go("Anime", anime_id="")

    cols = st.columns([1, 2])
    with cols[0]:
        if anime.get("cover_image_url"):
            st.image(anime["cover_image_url"], use_container_width=True)
    with cols[1]:
        st.markdown(f"## {anime['name']}")
        if anime.get("name_japanese"):
            st.caption(anime["name_japanese"])
        meta = [m for m in (anime.get("year"), anime.get("status")) if m]
        if anime.get("episode_count"):
            meta.append(f"{anime['episode_count']} Episodes")
        if meta:
            st.write(" · ".join(meta))
        if anime.get("mal_url"):
            st.markdown(f"[MyAnimeList ↗]({anime['mal_url']})")
        if anime.get("genres"):
            st.write(" ".join(f"`{g}`" for g in anime["genres"].split(", ")))
        if anime.get("description"):
            st.write(anime["description"])
        if anime.get("external_id") and st.button("Refresh from MyAnimeList", key="anime_refresh"):
            try:
                refresh_anime_from_jikan(anime_id, get_jikan_client())
                st.rerun()
            except IsshoError as e:
                st.error(str(e))

    if user:
        show_list_controls(anime_id, user)

    st.markdown("### Activity")
    entries = fetch_anime_entries(anime_id)
    if entries.empty:
        st.caption("No activity for this anime yet.")
    for row in entries.to_dict("records"):
        render_entry_card(row, user)


def show_anime_search():
    st.markdown("#### 🔎 Search MyAnimeList")
    with st.form("anime_search_form"):
        q = st.text_input("Search for anime from MyAnimeList...", key="anime_query")
        submitted = st.form_submit_button("Search")
    if submitted and q.strip():
        with st.spinner("Searching..."):
            st.session_state["anime_results"] = search_anime_combined(q.strip(), get_jikan_client())
    results = st.session_state.get("anime_results")
    if results is None:
        return
    if results.empty:
        st.info(f'No anime found for "{q}"')
        return

    if results.local_results:
        st.markdown(f"**In Your Database ({len(results.local_results)})**")
        for a in results.local_results:
            if st.button(f"{a['name']} {('(' + a['year'] + ')') if a.get('year') else ''}", key=f"local_{a['id']}"):
                go("Anime", anime_id=a["id"])

    if results.jikan_results:
        st.markdown(f"**From MyAnimeList ({len(results.jikan_results)})**")
        for item in results.jikan_results:
            title = item.get("title_english") or item.get("title")
            cols = st.columns([1, 4, 2])
            image = ((item.get("images") or {}).get("jpg") or {}).get("image_url")
            if image:
                cols[0].image(image, width=60)
            cols[1].markdown(f"**{title}**" + (f" ({item['year']})" if item.get("year") else ""))
            genres = ", ".join(g["name"] for g in item.get("genres") or [])
            if genres:
                cols[1].caption(genres)
            done = is_imported(item, results.local_results)
            if cols[2].button("Already Added" if done else "Add to Database", key=f"import_{item['mal_id']}", disabled=done):
                try:
                    imported = import_anime_from_jikan(item["mal_id"], get_jikan_client())
                    st.session_state["anime_results"] = search_anime_combined(q.strip() or title, get_jikan_client())
                    st.success(f"Added {imported['name']}.")
                    st.rerun()
                except JikanError as e:
                    st.error(str(e))


def show_anime_page(user: dict | None):
    anime_id = st.session_state.get("anime_id")
    if anime_id:
        show_anime_detail(anime_id, user)
        return

    st.subheader("🎬 Anime")
    show_anime_search()

    with st.expander("➕ Create anime manually"):
        with st.form("create_anime_form", clear_on_submit=True):
            name = st.text_input("Anime Name")
            description = st.text_area("Anime Description", height=80)
            if st.form_submit_button("Create Anime"):
                show_result(*create_anime(name, description))

    st.markdown("#### Catalog")
    flt = st.text_input("Filter catalog by name", key="catalog_filter")
    catalog = search_text(newest_first(load_table("anime")), "name", flt)
    for a in catalog.to_dict("records"):
        cols = st.columns([5, 1])
        cols[0].markdown(f"**{a['name']}**  \n{(a.get('description') or '')[:200]}")
        if cols[1].button("Open", key=f"catalog_{a['id']}"):
            go("Anime", anime_id=a["id"])


def show_create_entry(user: dict):
    st.subheader("✍️ Create Entry")
    st.caption("Fill out any combination of fields below. All fields are optional except anime selection.")
    all_anime = fetch_all_anime()
    if not all_anime:
        st.info("The catalog is empty. Import an anime first.")
        return
    names = {a["id"]: a["name"] for a in all_anime}
    with st.form("create_entry_form"):
        anime_id = st.selectbox("Select Anime *", list(names), format_func=names.get)
        status = st.selectbox(
            "📺 Status", [""] + STATUSES,
            format_func=lambda s: "-- No Status Change --" if s == "" else STATUS_LABELS[s],
        )
        rating = st.selectbox(
            "⭐ Rating (1-10)", [""] + [str(i) for i in range(config.RATING_MIN, config.RATING_MAX + 1)],
            format_func=lambda r: "-- No Rating --" if r == "" else r,
        )
        review = st.text_area("📝 Review", height=180, placeholder="Write your review...")
        submitted = st.form_submit_button("Create Entry")
    if submitted:
        ok, msg = create_entry(user["id"], anime_id, status=status or None, rating=rating or None, review=review)
        if ok:
            st.session_state["page"] = 0
            go("Home")
        st.error(f"Error creating entry: {msg}")


def show_list(user_id: str, editable: bool, key_prefix: str):
    """Status tabs with counts, stats panel, and the filtered list."""
    stats = get_user_list_stats(user_id)
    filters = ["all"] + STATUSES
    active = st.radio(
        "Filter",
        filters,
        format_func=lambda f: f"{'All' if f == 'all' else STATUS_LABELS[f]} ({stats.count_for(f)})",
        horizontal=True,
        key=f"{key_prefix}_filter",
    )
    metric_cols = st.columns(6)
    metric_cols[0].metric("Avg Rating", stats.avg_rating)
    metric_cols[1].metric("Total", stats.total)
    for col, status in zip(metric_cols[2:], STATUSES):
        col.metric(STATUS_LABELS[status], getattr(stats, status))

    search = st.text_input("Filter by title", key=f"{key_prefix}_search")
    rows = fetch_user_anime_list(user_id, None if active == "all" else active)
    if search:
        rows = [r for r in rows if search.lower() in ((r.get("anime") or {}).get("name", "")).lower()]

    if not rows:
        if active == "all":
            st.info("The list is empty. Add anime to start tracking!")
        else:
            st.info(f'No anime in "{STATUS_LABELS[active]}" status')
        return

    for row in rows:
        anime = row.get("anime") or {}
        st.markdown("---")
        cols = st.columns([1, 4])
        if anime.get("cover_image_url"):
            cols[0].image(anime["cover_image_url"], width=70)
        else:
            cols[0].caption("No Image")
        with cols[1]:
            st.markdown(f"**{anime.get('name') or 'Unknown Anime'}**")
            meta = [m for m in (anime.get("year"), anime.get("episode_count") and f"{anime['episode_count']} eps") if m]
            if anime.get("genres"):
                meta.extend(anime["genres"].split(", ")[:2])
            if meta:
                st.caption(" · ".join(meta))
            badge = STATUS_LABELS.get(row["status"], row["status"])
            st.write(f"`{badge}`" + (f" ⭐ {row['rating']}/10" if row.get("rating") else ""))
            st.write(row.get("review") or "_No review added._")
            st.caption(f"Updated {row['updated_at'][:10]}")
            if st.button("Community", key=f"{key_prefix}_community_{row['id']}"):
                go("Anime", anime_id=row["anime_id"])
            if editable:
                with st.expander("Edit"):
                    render_list_entry_form(row, user_id)


def show_my_list(user: dict):
    st.subheader("📋 My List")
    show_list(user["id"], editable=True, key_prefix="mylist")


def render_friend_button(user: dict | None, target_id: str, key: str):
    if not user or user["id"] == target_id:
        return
    status = get_friendship_status(user["id"], target_id)
    fid = status.friendship["id"] if status.friendship else ""
    if status.is_friend:
        if st.button("Unfriend", key=f"unfriend_{key}"):
            show_result(*unfriend(fid, user["id"]))
            st.rerun()
    elif status.is_pending and status.is_requester:
        if st.button("Request Pending (cancel)", key=f"cancel_{key}"):
            show_result(*cancel_friend_request(fid, user["id"]))
            st.rerun()
    elif status.is_pending and status.is_addressee:
        cols = st.columns(2)
        if cols[0].button("Accept", key=f"accept_{key}"):
            show_result(*accept_friend_request(fid, user["id"]))
            st.rerun()
        if cols[1].button("Reject", key=f"reject_{key}"):
            show_result(*reject_friend_request(fid, user["id"]))
            st.rerun()
    else:
        if st.button("Add Friend", key=f"add_{key}"):
            ok, msg = send_friend_request(user["id"], target_id)
            show_result(ok, msg)
            if ok:
                st.rerun()


def show_friends_page(user: dict):
    st.subheader("🤝 Friends")

    st.markdown("#### Find Friends")
    q = st.text_input("Search users by username...", key="user_search")
    if len(q.strip()) >= config.USER_SEARCH_MIN_CHARS:
        results = [r for r in search_users(q) if r["id"] != user["id"]]
        if not results:
            st.caption(f'No users found matching "{q}"')
        for r in results:
            cols = st.columns([3, 2])
            if cols[0].button(f"@{r['username']}", key=f"search_profile_{r['id']}"):
                go("Profile", profile_username=r["username"])
            if r.get("bio"):
                cols[0].caption(r["bio"])
            with cols[1]:
                render_friend_button(user, r["id"], f"search_{r['id']}")

    incoming = get_pending_incoming(user["id"])
    if incoming:
        st.markdown(f"#### Pending Friend Requests ({len(incoming)})")
        for req in incoming:
            who = req.get("requester") or {}
            cols = st.columns([3, 1, 1])
            cols[0].write(f"@{who.get('username', 'unknown')}")
            if cols[1].button("Accept", key=f"in_accept_{req['id']}"):
                show_result(*accept_friend_request(req["id"], user["id"]))
                st.rerun()
            if cols[2].button("Reject", key=f"in_reject_{req['id']}"):
                show_result(*reject_friend_request(req["id"], user["id"]))
                st.rerun()

    outgoing = get_pending_outgoing(user["id"])
    if outgoing:
        st.markdown(f"#### Sent Requests ({len(outgoing)})")
        for req in outgoing:
            who = req.get("addressee") or {}
            cols = st.columns([3, 1])
            cols[0].write(f"@{who.get('username', 'unknown')}")
            if cols[1].button("Cancel", key=f"out_cancel_{req['id']}"):
                show_result(*cancel_friend_request(req["id"], user["id"]))
                st.rerun()

    friends = get_friends(user["id"])
    st.markdown(f"#### Friends ({len(friends)})")
    if not friends:
        st.caption("You haven't added any friends yet. Visit user profiles to send friend requests!")
    for f in friends:
        friend = f.get("friend") or {}
        if st.button(f"@{friend.get('username', 'unknown')}", key=f"friend_{f['id']}"):
            go("Profile", profile_username=friend.get("username", ""))


def show_edit_profile(user: dict):
    profile = get_profile_by_id(user["id"]) or {}
    with st.expander("✏️ Edit profile"):
        with st.form("profile_form", clear_on_submit=False):
            username = st.text_input(
                "Username", value=profile.get("username", ""),
                max_chars=config.USERNAME_MAX_CHARS,
                help="3-20 characters, letters, numbers, and underscores only",
            )
            bio = st.text_area("Bio", value=profile.get("bio", ""), max_chars=config.BIO_MAX_CHARS)
            upload = st.file_uploader("Profile Picture", type=["png", "jpg", "jpeg", "gif", "webp"])
            saved = st.form_submit_button("Save Profile")
        if saved:
            if upload is not None:
                show_result(*update_avatar(user["id"], upload.name, upload.getvalue()))
            ok, msg = update_profile(user["id"], username=username, bio=bio)
            show_result(ok, msg)
            if ok:
                refresh_session_user()
                go("Profile", profile_username=username.strip())
        if profile.get("avatar_url") and st.button("Remove avatar", key="avatar_remove"):
            delete_avatar(user["id"])
            refresh_session_user()
            st.rerun()


def show_profile_page(user: dict | None):
    username = st.session_state.get("profile_username") or (user["username"] if user else "")
    profile = get_profile_by_username(username) if username else None
    if profile is None:
        st.error("User not found")
        return

    cols = st.columns([1, 4])
    with cols[0]:
        render_avatar(profile["username"], profile.get("avatar_url", ""), width=96)
    with cols[1]:
        st.markdown(f"## {profile['username']}'s List")
        if profile.get("bio"):
            st.write(profile["bio"])
        render_friend_button(user, profile["id"], f"profile_{profile['id']}")

    if user and user["id"] == profile["id"]:
        show_edit_profile(user)

    show_list(profile["id"], editable=bool(user and user["id"] == profile["id"]), key_prefix=f"profile_{profile['id']}")


# ======================================================================
# Sidebar
# ======================================================================

def _on_nav():
    picked = st.session_state["nav"]
    st.session_state["view"] = picked
    if picked == "Anime":
        st.session_state["anime_id"] = ""
    elif picked == "Profile":
        st.session_state["profile_username"] = (current_user() or {}).get("username", "")


def _set_query(query: str):
    st.session_state["query"] = query
    st.session_state["page"] = 0


def sidebar(user: dict | None):
    """Navigation, feed search/mode, trending, account."""
    with st.sidebar:
        st.header(f"{config.APP_ICON} {config.APP_TITLE}")

        view = st.session_state.get("view", "Home")
        if view in PAGES:
            st.session_state["nav"] = view
        st.radio("Go to", PAGES, key="nav", on_change=_on_nav)

        if view == "Home":
            st.markdown("---")
            q = st.text_input("Search (@user, #review, text)", key="query", placeholder="e.g. #review, @alice, frieren")
            if st.session_state.get("last_query") != q:
                st.session_state["page"] = 0
                st.session_state["last_query"] = q
            if user:
                st.radio("Feed", ["All", "Friends"], key="feed_mode", horizontal=True)

            trending = trending_anime(get_entries_with_counts(), topk=10)
            if trending:
                st.markdown("**📈 Trending anime**")
                for name, cnt in trending:
                    st.button(f"{name} ({cnt})", key=f"trend_{name}", on_click=_set_query, args=(name,))

        st.markdown("---")
        if user:
            st.success(f"Signed in: @{user['username']}")
            if st.button("Sign out", key="btn_logout"):
                logout()
                go("Home")
        else:
            st.info("Sign in to post entries and track your list.")


# ======================================================================
# Main
# ======================================================================

def main():
    """App entry point."""
    st.set_page_config(page_title=config.APP_TITLE, page_icon=config.APP_ICON, layout="centered")
    setup_logging()
    bootstrap_data_files()

    user = current_user()
    sidebar(user)
    st.title(f"{config.APP_ICON} {config.APP_TITLE}")

    view = st.session_state.get("view", "Home")
    if view == "Home":
        if not user:
            show_login_box()
            st.divider()
        show_feed(user)
    elif view == "Entry":
        show_entry_page(user)
    elif view == "Anime":
        show_anime_page(user)
    elif view == "Profile":
        show_profile_page(user)
    elif not user:
        show_login_box()
    elif view == "Create Entry":
        show_create_entry(user)
    elif view == "My List":
        show_my_list(user)
    elif view == "Friends":
        show_friends_page(user)


if __name__ == "__main__":
    main()
