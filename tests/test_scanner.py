"""Tests for repository discovery."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from git_census import scanner
from git_census.scanner import ScanOptions, find_repositories, is_repository_root


def make_marker(path: Path) -> Path:
    (path / ".git").mkdir(parents=True)
    return path


def discovered(root: Path, **kwargs) -> list[Path]:
    return list(find_repositories(root, ScanOptions(**kwargs)))


class TestMarker:
    def test_git_directory_is_marker(self, tmp_path):
        make_marker(tmp_path / "a")
        assert is_repository_root(tmp_path / "a")

    def test_gitfile_is_marker(self, tmp_path):
        (tmp_path / "wt").mkdir()
        (tmp_path / "wt" / ".git").write_text("gitdir: /elsewhere\n")
        assert is_repository_root(tmp_path / "wt")

    def test_plain_directory_is_not(self, tmp_path):
        assert not is_repository_root(tmp_path)


class TestDiscovery:
    def test_root_itself_is_found(self, tmp_path):
        make_marker(tmp_path)
        assert discovered(tmp_path) == [tmp_path]

    def test_nested_repositories_are_found(self, tmp_path):
        outer = make_marker(tmp_path / "outer")
        inner = make_marker(tmp_path / "outer" / "libs" / "inner")
        assert discovered(tmp_path) == [outer, inner]

    def test_parent_precedes_children(self, tmp_path):
        make_marker(tmp_path / "a")
        make_marker(tmp_path / "a" / "x")
        make_marker(tmp_path / "b")
        make_marker(tmp_path / "b" / "y")
        found = discovered(tmp_path)
        assert set(found) == {
            tmp_path / "a",
            tmp_path / "a" / "x",
            tmp_path / "b",
            tmp_path / "b" / "y",
        }
        assert found.index(tmp_path / "a") < found.index(tmp_path / "a" / "x")
        assert found.index(tmp_path / "b") < found.index(tmp_path / "b" / "y")

    def test_returns_a_one_shot_iterator(self, tmp_path):
        make_marker(tmp_path / "a")
        found = find_repositories(tmp_path)
        assert list(found) == [tmp_path / "a"]
        assert list(found) == []


class TestDepth:
    def test_marker_at_max_depth_is_found(self, tmp_path):
        repo = make_marker(tmp_path / "one" / "two")
        assert discovered(tmp_path, max_depth=2) == [repo]

    def test_marker_beyond_max_depth_is_not_found(self, tmp_path):
        make_marker(tmp_path / "one" / "two" / "three")
        assert discovered(tmp_path, max_depth=2) == []

    def test_depth_zero_only_checks_root(self, tmp_path):
        make_marker(tmp_path)
        make_marker(tmp_path / "child")
        assert discovered(tmp_path, max_depth=0) == [tmp_path]


class TestSkipRules:
    @pytest.mark.parametrize("name", ["vendor", "node_modules"])
    def test_builtin_skip_dirs(self, tmp_path, name):
        make_marker(tmp_path / name)
        make_marker(tmp_path / name / "pkg")
        assert discovered(tmp_path) == []

    def test_extra_skip_dirs(self, tmp_path):
        make_marker(tmp_path / "build")
        kept = make_marker(tmp_path / "src")
        assert discovered(tmp_path, extra_skip=frozenset({"build"})) == [kept]

    def test_hidden_directories_skipped_by_default(self, tmp_path):
        make_marker(tmp_path / ".cache")
        assert discovered(tmp_path) == []

    def test_hidden_directories_included_on_request(self, tmp_path):
        hidden = make_marker(tmp_path / ".dotfiles")
        assert discovered(tmp_path, include_hidden=True) == [hidden]

    def test_git_directory_never_descended(self, tmp_path):
        repo = make_marker(tmp_path / "repo")
        make_marker(tmp_path / "repo" / ".git" / "modules" / "sub")
        assert discovered(tmp_path, include_hidden=True) == [repo]

    def test_symlinked_directories_not_followed(self, tmp_path):
        target = make_marker(tmp_path / "real")
        (tmp_path / "scan").mkdir()
        os.symlink(target, tmp_path / "scan" / "link", target_is_directory=True)
        assert discovered(tmp_path / "scan") == []

    def test_symlink_loop_terminates(self, tmp_path):
        os.symlink(tmp_path, tmp_path / "loop", target_is_directory=True)
        make_marker(tmp_path / "repo")
        assert discovered(tmp_path) == [tmp_path / "repo"]

    def test_unreadable_directory_is_skipped(self, tmp_path, monkeypatch):
        make_marker(tmp_path / "locked" / "inner")
        ok = make_marker(tmp_path / "open")
        real_scandir = os.scandir

        def guarded_scandir(path):
            if Path(path) == tmp_path / "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(scanner.os, "scandir", guarded_scandir)
        assert discovered(tmp_path) == [ok]


class TestScanOptions:
    def test_should_skip(self):
        options = ScanOptions(extra_skip=frozenset({"dist"}))
        assert options.should_skip("vendor")
        assert options.should_skip("dist")
        assert options.should_skip(".hidden")
        assert options.should_skip(".git")
        assert not options.should_skip("src")

    def test_git_skipped_even_with_hidden(self):
        assert ScanOptions(include_hidden=True).should_skip(".git")
