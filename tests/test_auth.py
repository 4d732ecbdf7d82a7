import pytest

from issho import auth
from issho.auth import (
    current_user, login, logout, refresh_session_user, require_user, sign_in, sign_up, validate_password,
)
from issho.log import NotAuthenticatedError
from issho.profiles import update_profile


@pytest.fixture
def session(monkeypatch):
    state = {}
    monkeypatch.setattr(auth.st, "session_state", state)
    return state


@pytest.mark.parametrize("password, confirm, message", [
    ("Secret#123", "Secret#124", "Passwords do not match"),
    ("Ab#1", "Ab#1", "Password must be at least 6 characters"),
    ("SECRET#123", "SECRET#123", "Password must contain at least one lowercase letter"),
    ("secret#123", "secret#123", "Password must contain at least one uppercase letter"),
    ("Secret#abc", "Secret#abc", "Password must contain at least one number"),
    ("Secret1234", "Secret1234", "Password must contain at least one special character"),
    ("Secret#123", "Secret#123", None),
])
def test_validate_password(password, confirm, message):
    assert validate_password(password, confirm) == message


def test_sign_up_and_sign_in():
    ok, msg, user = sign_up("Alice@Example.com", "Secret#123", "Secret#123")
    assert ok, msg
    assert user["username"] == "Alice"
    assert user["avatar_url"] == ""

    assert sign_in("alice@example.com", "Secret#123")["id"] == user["id"]
    assert sign_in("alice@example.com", "wrong") is None
    assert sign_in("nobody@example.com", "Secret#123") is None


def test_sign_up_rejects_bad_email_and_duplicates():
    assert sign_up("not-an-email", "Secret#123", "Secret#123")[1] == "Please enter a valid email address."
    assert sign_up("a@example.com", "Secret#123", "Secret#123")[0]
    ok, msg, user = sign_up("A@EXAMPLE.com", "Secret#123", "Secret#123")
    assert not ok and user is None
    assert msg == "An account with that email already exists."


def test_usernames_are_derived_and_unique():
    first = sign_up("jo@example.com", "Secret#123", "Secret#123")[2]
    second = sign_up("jo@other.org", "Secret#123", "Secret#123")[2]
    dotted = sign_up("mary.jane@example.com", "Secret#123", "Secret#123")[2]
    assert first["username"] == "jouser"
    assert second["username"] == "jouser1"
    assert dotted["username"] == "maryjane"


def test_session_helpers(session, make_user):
    assert current_user() is None
    with pytest.raises(NotAuthenticatedError):
        require_user()

    user = make_user()
    login(user)
    assert require_user()["id"] == user["id"]

    update_profile(user["id"], username="alice_renamed")
    refresh_session_user()
    assert current_user()["username"] == "alice_renamed"

    logout()
    assert current_user() is None
    logout()
