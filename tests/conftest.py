"""
Shared fixtures: every test gets its own data directory.
"""
import pytest

from issho import config
from issho.anime import create_anime, fetch_all_anime
from issho.auth import sign_up
from issho.store import bootstrap_data_files, clear_data_caches

PASSWORD = "Secret#123"


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path / "data")
    clear_data_caches()
    bootstrap_data_files()
    yield tmp_path / "data"
    clear_data_caches()


@pytest.fixture
def make_user():
    def _make(email="alice@example.com"):
        ok, msg, user = sign_up(email, PASSWORD, PASSWORD)
        assert ok, msg
        return user
    return _make


@pytest.fixture
def make_anime():
    def _make(name="Frieren", description=""):
        ok, msg = create_anime(name, description)
        assert ok, msg
        return next(a for a in fetch_all_anime() if a["name"] == name)
    return _make
