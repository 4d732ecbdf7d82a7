"""
Accounts (email + password) and the signed-in user kept in Streamlit session state.
"""

import logging
import re

import streamlit as st
from werkzeug.security import check_password_hash, generate_password_hash

from . import config
from .log import NotAuthenticatedError
from .profiles import create_profile, get_profile_by_id, new_profile_username
from .store import append_row, find_row, new_id, now_iso

logger = logging.getLogger(__name__)

SESSION_KEY = "user"


def validate_password(password: str, confirm: str) -> str | None:
    """Return the first failed rule as a message, or None if the password is fine."""
    if password != confirm:
        return "Passwords do not match"
    if len(password) < config.PASSWORD_MIN_CHARS:
        return f"Password must be at least {config.PASSWORD_MIN_CHARS} characters"
    if password == password.upper():
        return "Password must contain at least one lowercase letter"
    if password == password.lower():
        return "Password must contain at least one uppercase letter"
    if not re.search(r"\d", password):
        return "Password must contain at least one number"
    if not re.search(r"[^a-zA-Z0-9]", password):
        return "Password must contain at least one special character"
    return None


def email_exists(email: str) -> bool:
    return find_row("users", email_lc=email.lower()) is not None


def sign_up(email: str, password: str, confirm: str) -> tuple[bool, str, dict | None]:
    """Create an account and its profile."""
    email = (email or "").strip()
    if not email or "@" not in email:
        return False, "Please enter a valid email address.", None
    error = validate_password(password or "", confirm or "")
    if error:
        return False, error, None
    if email_exists(email):
        return False, "An account with that email already exists.", None

    user_id = new_id()
    append_row("users", {
        "id": user_id,
        "email": email,
        "email_lc": email.lower(),
        "password_hash": generate_password_hash(password),
        "created_at": now_iso(),
    })
    profile = create_profile(user_id, new_profile_username(email))
    logger.info(f"New account {user_id} ({profile['username']})")
    return True, "Account created.", session_user(user_id)


def sign_in(email: str, password: str) -> dict | None:
    row = find_row("users", email_lc=(email or "").strip().lower())
    if row is None or not check_password_hash(row["password_hash"], password or ""):
        return None
    return session_user(row["id"])


def session_user(user_id: str) -> dict | None:
    """User dict kept in the session: id, email, username, avatar_url."""
    row = find_row("users", id=user_id)
    if row is None:
        return None
    profile = get_profile_by_id(user_id) or {}
    return {
        "id": user_id,
        "email": row["email"],
        "username": profile.get("username", ""),
        "avatar_url": profile.get("avatar_url", ""),
    }


# --------------------------
# Session state
# --------------------------
def current_user() -> dict | None:
    return st.session_state.get(SESSION_KEY)


def login(user: dict) -> None:
    st.session_state[SESSION_KEY] = user


def logout() -> None:
    st.session_state.pop(SESSION_KEY, None)


def refresh_session_user() -> None:
    """Reload username/avatar after a profile edit."""
    user = current_user()
    if user:
        fresh = session_user(user["id"])
        if fresh is None:
            logout()
        else:
            login(fresh)


def require_user() -> dict:
    user = current_user()
    if not user:
        raise NotAuthenticatedError("You must be logged in.")
    return user
