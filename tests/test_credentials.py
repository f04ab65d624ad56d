"""Tests for the bounded credential policy and SSH fetch retries."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from git_census.core import FetchOutcome, GitOperations, GitRepository, _url_username
from git_census.credentials import CredentialKind, CredentialPolicy

SSH_URL = "git@example.invalid:team/project.git"


@pytest.fixture
def ssh_dir(tmp_path):
    path = tmp_path / "ssh"
    path.mkdir()
    for name in ("id_ed25519", "id_ecdsa", "id_rsa"):
        (path / name).write_text("PRIVATE KEY\n")
        (path / f"{name}.pub").write_text("ssh-key AAAA\n")
    return path


def _completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(["git"], returncode, "", stderr)


class TestAcquire:
    def test_username_request_uses_url_username(self, ssh_dir):
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="")
        cred = policy.acquire(SSH_URL, "deploy", CredentialKind.USERNAME | CredentialKind.SSH_KEY)
        assert cred.kind is CredentialKind.USERNAME
        assert cred.username == "deploy"

    def test_username_falls_back_to_configured_then_default(self, ssh_dir):
        configured = CredentialPolicy(username="alice", ssh_dir=ssh_dir, agent_socket="")
        default = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="")
        assert configured.acquire(SSH_URL, None, CredentialKind.USERNAME).username == "alice"
        assert default.acquire(SSH_URL, None, CredentialKind.USERNAME).username == "git"

    def test_agent_is_offered_before_key_files(self, ssh_dir):
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="/tmp/agent.sock")
        first = policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY)
        second = policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY)
        assert first.from_agent
        assert second.private_key == ssh_dir / "id_ed25519"
        assert second.public_key == ssh_dir / "id_ed25519.pub"

    def test_key_files_in_priority_order(self, ssh_dir):
        (ssh_dir / "id_ed25519").unlink()
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="")
        keys = [policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY).private_key for _ in range(2)]
        assert keys == [ssh_dir / "id_ecdsa", ssh_dir / "id_rsa"]

    def test_gives_up_when_nothing_left(self, tmp_path):
        policy = CredentialPolicy(ssh_dir=tmp_path / "empty", agent_socket="")
        assert policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY) is None

    def test_bounded_to_three_attempts(self, ssh_dir):
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="/tmp/agent.sock")
        answers = [policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY) for _ in range(5)]
        assert all(a is not None for a in answers[:3])
        assert answers[3:] == [None, None]
        assert policy.attempts == 3
        assert policy.exhausted

    def test_ssh_command_for_key(self, ssh_dir):
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="")
        cred = policy.acquire(SSH_URL, "git", CredentialKind.SSH_KEY)
        command = cred.ssh_command(login=True)
        assert "BatchMode=yes" in command
        assert "IdentitiesOnly=yes" in command
        assert str(ssh_dir / "id_ed25519") in command
        assert command.endswith("-l git")


class TestUrlUsername:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("git@github.com:org/repo.git", "git"),
            ("ssh://deploy@host/srv/repo.git", "deploy"),
            ("ssh://host/srv/repo.git", None),
            ("host:repo.git", None),
        ],
    )
    def test_parsing(self, url, expected):
        assert _url_username(url) == expected


class TestSshFetch:
    def test_always_rejected_remote_stops_after_three_invocations(self, tmp_path, ssh_dir):
        ops = GitOperations(tmp_path)
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="/tmp/agent.sock")
        rejected = _completed(128, "git@example.invalid: Permission denied (publickey).")

        with (
            patch.object(GitOperations, "remote_url", return_value="ssh://example.invalid/r.git"),
            patch.object(GitOperations, "_run", return_value=rejected) as run,
        ):
            success, error = ops.fetch("origin", policy)

        assert success is False
        assert "authentication failed" in error
        assert policy.attempts == 3
        # one username answer, then two key attempts reach git
        assert run.call_count == 2

    def test_success_after_retry(self, tmp_path, ssh_dir):
        ops = GitOperations(tmp_path)
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="/tmp/agent.sock")
        outcomes = [_completed(128, "Permission denied (publickey)."), _completed(0)]

        with (
            patch.object(GitOperations, "remote_url", return_value=SSH_URL),
            patch.object(GitOperations, "_run", side_effect=outcomes) as run,
        ):
            success, _ = ops.fetch("origin", policy)

        assert success is True
        assert policy.attempts == 2
        env = run.call_args.kwargs["env"]
        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert "id_ed25519" in env["GIT_SSH_COMMAND"]

    def test_network_failure_is_not_retried(self, tmp_path, ssh_dir):
        ops = GitOperations(tmp_path)
        policy = CredentialPolicy(ssh_dir=ssh_dir, agent_socket="")
        unreachable = _completed(128, "ssh: Could not resolve hostname example.invalid")

        with (
            patch.object(GitOperations, "remote_url", return_value=SSH_URL),
            patch.object(GitOperations, "_run", return_value=unreachable) as run,
        ):
            success, error = ops.fetch("origin", policy)

        assert success is False
        assert "Could not resolve hostname" in error
        assert run.call_count == 1
        assert policy.attempts == 1

    def test_exhaustion_maps_to_fetch_error(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        repository = GitRepository(tmp_path)
        rejected = _completed(128, "Permission denied (publickey).")

        with (
            patch.object(GitOperations, "remote_url", return_value=SSH_URL),
            patch.object(GitOperations, "_run", return_value=rejected),
        ):
            assert repository.fetch() is FetchOutcome.ERROR
