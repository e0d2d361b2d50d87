"""
Tests for shellmark/utils.py path helpers.
"""
import os
import pytest

from shellmark.errors import ValidationError
from shellmark.utils import (
    default_label,
    default_store_path,
    ensure_parent_dir,
    friendly_path,
    normalize_path,
    resolve_destination,
)


class TestNormalizePath:
    """Test normalize_path()."""

    def test_absolute_path_unchanged(self):
        assert normalize_path("/home/u/proj") == "/home/u/proj"

    def test_trailing_separator_removed(self):
        assert normalize_path("/home/u/proj/") == "/home/u/proj"

    def test_dot_segments_collapsed(self):
        assert normalize_path("/home/u/./x/../proj") == "/home/u/proj"

    def test_relative_path_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert normalize_path("proj") == os.path.join(str(tmp_path), "proj")

    def test_tilde_expanded(self):
        assert normalize_path("~/proj") == os.path.join(os.path.expanduser("~"), "proj")

    @pytest.mark.parametrize("path", ["", "   ", None])
    def test_empty_rejected(self, path):
        with pytest.raises(ValidationError):
            normalize_path(path)

    def test_missing_path_is_fine(self):
        """Normalization never touches the filesystem."""
        assert normalize_path("/does/not/exist") == "/does/not/exist"


class TestResolveDestination:
    """Test resolve_destination()."""

    def test_existing_directory(self, project_dirs):
        path = project_dirs["alpha"]
        assert resolve_destination(path) == os.path.realpath(path)

    def test_default_is_cwd(self, project_dirs, monkeypatch):
        monkeypatch.chdir(project_dirs["beta"])
        assert resolve_destination() == normalize_path(os.getcwd())

    def test_symlink_followed(self, project_dirs, tmp_path):
        link = tmp_path / "link"
        link.symlink_to(project_dirs["alpha"])

        assert resolve_destination(str(link)) == os.path.realpath(project_dirs["alpha"])

    def test_missing_path_rejected(self, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            resolve_destination(str(tmp_path / "missing"))

    def test_blank_rejected(self):
        with pytest.raises(ValidationError):
            resolve_destination("  ")


class TestFriendlyPath:
    """Test friendly_path()."""

    def test_home_prefix_shortened(self):
        assert friendly_path("/home/u/proj", home="/home/u") == "~/proj"

    def test_home_itself(self):
        assert friendly_path("/home/u", home="/home/u/") == "~"

    def test_similar_prefix_not_shortened(self):
        assert friendly_path("/home/user2/x", home="/home/u") == "/home/user2/x"

    def test_other_paths_unchanged(self):
        assert friendly_path("/etc/nginx", home="/home/u") == "/etc/nginx"


class TestDefaultLabel:
    def test_basename(self):
        assert default_label("/home/u/proj") == "proj"

    def test_trailing_separator(self):
        assert default_label("/home/u/proj/") == "proj"

    def test_root(self):
        assert default_label("/") == "/"


class TestDataDir:
    def test_default_store_path(self):
        path = default_store_path()
        assert path.name == "bookmarks.json"
        assert "shellmark" in str(path.parent)

    def test_ensure_parent_dir(self, tmp_path):
        target = tmp_path / "a" / "b" / "bookmarks.json"
        ensure_parent_dir(target)
        assert target.parent.is_dir()
        assert not target.exists()
