"""Shared fixtures: throwaway git repositories and remotes."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Census Test",
    "GIT_AUTHOR_EMAIL": "census@example.com",
    "GIT_COMMITTER_NAME": "Census Test",
    "GIT_COMMITTER_EMAIL": "census@example.com",
}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path_factory):
    """Keep the user's git config, ssh agent and census config out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    for key, value in GIT_IDENTITY.items():
        monkeypatch.setenv(key, value)
    for key in (
        "GIT_DIR",
        "GIT_WORK_TREE",
        "GIT_INDEX_FILE",
        "GIT_CENSUS_CONFIG",
        "SSH_AUTH_SOCK",
        "XDG_CONFIG_HOME",
    ):
        monkeypatch.delenv(key, raising=False)


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def init_repo(path: Path, branch: str = "main") -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q", "-b", branch)
    return path


def commit_file(repo: Path, name: str, content: str, message: str | None = None) -> str:
    target = repo / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message or f"update {name}")
    return git(repo, "rev-parse", "HEAD")


def head_commit(repo: Path) -> str:
    return git(repo, "rev-parse", "HEAD")


@dataclass
class RemoteSetup:
    """A bare origin, the clone under test, and a second clone that publishes."""

    origin: Path
    local: Path
    publisher: Path

    def publish(self, name: str, content: str) -> str:
        sha = commit_file(self.publisher, name, content)
        git(self.publisher, "push", "-q", "origin", "main")
        return sha


@pytest.fixture
def repo(tmp_path) -> Path:
    """A repository with one commit on main."""
    path = init_repo(tmp_path / "repo")
    commit_file(path, "README.md", "hello\n")
    return path


@pytest.fixture
def remote_setup(tmp_path) -> RemoteSetup:
    seed = init_repo(tmp_path / "seed")
    commit_file(seed, "README.md", "hello\n")
    origin = tmp_path / "origin.git"
    git(tmp_path, "clone", "-q", "--bare", str(seed), str(origin))
    local = tmp_path / "work" / "local"
    local.parent.mkdir(parents=True)
    git(tmp_path, "clone", "-q", str(origin), str(local))
    publisher = tmp_path / "publisher"
    git(tmp_path, "clone", "-q", str(origin), str(publisher))
    return RemoteSetup(origin=origin, local=local, publisher=publisher)
