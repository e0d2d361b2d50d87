import os
import json
import pytest
from datetime import datetime, timezone

from shellmark.models import Bookmark
from shellmark.store import Store


@pytest.fixture(autouse=True)
def isolated_environment(request, tmp_path, monkeypatch):
    """Keep tests away from the real user config and environment."""
    fake_user_config_path = lambda: tmp_path / "home-config.toml"
    monkeypatch.setattr("shellmark.config.user_config_path", fake_user_config_path)
    # Test modules that imported the name directly need the same isolation.
    if hasattr(request.module, "user_config_path"):
        monkeypatch.setattr(request.module, "user_config_path", fake_user_config_path)
    for key in list(os.environ):
        if key.startswith("SHELLMARK_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("EDITOR", raising=False)


@pytest.fixture
def store_path(tmp_path):
    """Location of a store file that does not exist yet."""
    return tmp_path / "data" / "bookmarks.json"


@pytest.fixture
def project_dirs(tmp_path):
    """Real directories to bookmark."""
    dirs = {}
    for name in ["alpha", "beta", "gamma project", "it's here"]:
        path = tmp_path / "projects" / name
        path.mkdir(parents=True)
        dirs[name] = str(path)
    return dirs


@pytest.fixture
def sample_bookmarks():
    """Bookmarks with distinct usage metadata."""
    return [
        Bookmark(
            path="/home/u/src/shellmark",
            label="shellmark",
            score=5,
            created_at=datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
            last_used_at=datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc),
        ),
        Bookmark(
            path="/home/u/notes",
            score=2,
            created_at=datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc),
            last_used_at=datetime(2025, 2, 1, 9, 30, tzinfo=timezone.utc),
        ),
        Bookmark(
            path="/etc/nginx",
            label="nginx",
            score=2,
            created_at=datetime(2025, 1, 3, 10, 0, tzinfo=timezone.utc),
            last_used_at=datetime(2025, 2, 15, 9, 30, tzinfo=timezone.utc),
        ),
        Bookmark(
            path="/var/log",
            created_at=datetime(2025, 1, 4, 10, 0, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def populated_store(store_path, sample_bookmarks):
    """A saved store holding the sample bookmarks."""
    store = Store(store_path, sample_bookmarks)
    store.save()
    return Store.load(store_path)


@pytest.fixture
def write_store_file(store_path):
    """Write raw content to the store location."""
    def _write(content):
        store_path.parent.mkdir(parents=True, exist_ok=True)
        if not isinstance(content, str):
            content = json.dumps(content)
        store_path.write_text(content, encoding="utf-8")
        return store_path
    return _write
