"""Tests for root confinement and working-directory changes."""

import os

import pytest

from tgdl.core.path_guard import PathGuard
from tgdl.exceptions import ChangeDirectoryError, MakeDirectoryError, OutsideRootError
from tgdl.utils.path import safe_file_name


class TestResolve:
    """Tests for PathGuard.resolve."""

    def test_relative_path_joins_current_directory(self, guard, root):
        assert guard.resolve("sub/dir") == root / "sub" / "dir"

    def test_relative_path_follows_current_directory(self, guard, root):
        guard.change_directory("a")
        assert guard.resolve("b") == root / "a" / "b"

    def test_absolute_path_inside_root(self, guard, root):
        assert guard.resolve(str(root / "x")) == root / "x"

    def test_root_itself_is_allowed(self, guard, root):
        assert guard.resolve(str(root)) == root

    @pytest.mark.parametrize("path", ["/etc", "/", "/tmp"])
    def test_absolute_path_outside_root_fails(self, guard, path):
        with pytest.raises(OutsideRootError):
            guard.resolve(path)

    def test_sibling_with_common_prefix_fails(self, guard, root):
        sibling = root.parent / (root.name + "2")
        with pytest.raises(OutsideRootError):
            guard.resolve(str(sibling))

    def test_parent_traversal_fails(self, guard):
        with pytest.raises(OutsideRootError):
            guard.resolve("../outside")

    def test_absolute_traversal_fails(self, guard, root):
        with pytest.raises(OutsideRootError):
            guard.resolve(f"{root}/../outside")

    def test_traversal_that_stays_inside_is_normalized(self, guard, root):
        assert guard.resolve("a/../b") == root / "b"

    def test_symlink_escape_fails(self, guard, root):
        os.symlink(root.parent / "outside", root / "link")
        with pytest.raises(OutsideRootError):
            guard.resolve("link/file")

    def test_error_carries_path_and_root(self, guard, root):
        with pytest.raises(OutsideRootError) as exc_info:
            guard.resolve("/etc")
        assert exc_info.value.path == "/etc"
        assert exc_info.value.root == str(root)


class TestChangeDirectory:
    """Tests for PathGuard.change_directory."""

    def test_creates_missing_directories(self, guard, root):
        result = guard.change_directory("relative/sub")

        assert result == root / "relative" / "sub"
        assert (root / "relative" / "sub").is_dir()
        assert guard.current_directory() == root / "relative" / "sub"

    def test_existing_directory(self, guard, root):
        (root / "exists").mkdir()
        guard.change_directory("exists")
        assert guard.current_directory() == root / "exists"

    def test_outside_root_leaves_directory_unchanged(self, guard, root):
        guard.change_directory("keep")
        with pytest.raises(OutsideRootError):
            guard.change_directory("/etc")
        assert guard.current_directory() == root / "keep"

    def test_reset_returns_to_root(self, guard, root):
        guard.change_directory("a/b/c")
        assert guard.change_directory("-r") == root
        assert guard.current_directory() == root

    def test_reset_is_idempotent(self, guard, root):
        for _ in range(3):
            guard.change_directory("-r")
            assert guard.current_directory() == root

    def test_mkdir_failure(self, guard, root):
        (root / "file").write_text("not a dir")

        with pytest.raises(MakeDirectoryError):
            guard.change_directory("file/sub")
        assert guard.current_directory() == root

    def test_enter_failure_keeps_current_directory(self, guard, root, monkeypatch):
        def refuse(target):
            raise PermissionError(f"Permission denied: '{target}'")

        monkeypatch.setattr(PathGuard, "_check_enterable", staticmethod(refuse))

        with pytest.raises(ChangeDirectoryError):
            guard.change_directory("locked")
        assert (root / "locked").is_dir()
        assert guard.current_directory() == root


class TestSafeFileName:
    """Tests for attachment name sanitizing."""

    def test_keeps_plain_name(self):
        assert safe_file_name("report.pdf", "uniq") == "report.pdf"

    @pytest.mark.parametrize("name", ["", ".", "..", "/"])
    def test_unusable_name_falls_back(self, name):
        assert safe_file_name(name, "uniq") == "uniq"

    def test_never_empty(self):
        name = safe_file_name("", "")
        assert name and "/" not in name

    def test_respects_max_len(self):
        assert len(safe_file_name("a" * 300, "uniq", max_len=251)) <= 251
