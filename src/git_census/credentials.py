"""Credential resolution for fetches that need SSH authentication."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from enum import Flag, auto
from pathlib import Path

import structlog

logger = structlog.get_logger()

MAX_ATTEMPTS = 3
DEFAULT_USERNAME = "git"
DEFAULT_KEY_NAMES = ("id_ed25519", "id_ecdsa", "id_rsa")


class CredentialKind(Flag):
    """What the remote is asking for."""

    USERNAME = auto()
    SSH_KEY = auto()


@dataclass(frozen=True)
class Credential:
    """A single answer to a credential request."""

    kind: CredentialKind
    username: str
    private_key: Path | None = None
    public_key: Path | None = None

    @property
    def from_agent(self) -> bool:
        return self.kind is CredentialKind.SSH_KEY and self.private_key is None

    def ssh_command(self, login: bool = False) -> str:
        """Build the GIT_SSH_COMMAND that presents this credential."""
        parts = ["ssh", "-o", "BatchMode=yes"]
        if self.private_key is not None:
            parts += ["-o", "IdentitiesOnly=yes", "-i", str(self.private_key)]
        if login:
            parts += ["-l", self.username]
        return shlex.join(parts)


class CredentialPolicy:
    """Bounded credential source owned by a single fetch.

    Each call to ``acquire`` counts as one attempt. Username requests are
    answered first; SSH key requests get the agent (when one is running) and
    then conventional key files in priority order, each offered once. After
    ``max_attempts`` calls the policy gives up by returning ``None``.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        username: str | None = None,
        ssh_dir: Path | None = None,
        key_names: tuple[str, ...] = DEFAULT_KEY_NAMES,
        agent_socket: str | None = None,
    ):
        self.max_attempts = max_attempts
        self.username = username
        self.ssh_dir = ssh_dir if ssh_dir is not None else Path.home() / ".ssh"
        self.key_names = key_names
        self.agent_socket = (
            agent_socket if agent_socket is not None else os.environ.get("SSH_AUTH_SOCK", "")
        )
        self.attempts = 0
        self._agent_offered = False
        self._offered_keys: set[Path] = set()

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def acquire(
        self,
        url: str,
        username_from_url: str | None,
        allowed: CredentialKind,
    ) -> Credential | None:
        """Return the next credential to try, or None to give up."""
        if self.exhausted:
            logger.info("credential_attempts_exhausted", url=url, attempts=self.attempts)
            return None
        self.attempts += 1

        user = username_from_url or self.username or DEFAULT_USERNAME

        if CredentialKind.USERNAME in allowed:
            return Credential(CredentialKind.USERNAME, user)

        if CredentialKind.SSH_KEY in allowed:
            if self.agent_socket and not self._agent_offered:
                self._agent_offered = True
                return Credential(CredentialKind.SSH_KEY, user)

            for private_key in self._key_files():
                if private_key in self._offered_keys:
                    continue
                self._offered_keys.add(private_key)
                return Credential(
                    CredentialKind.SSH_KEY,
                    user,
                    private_key=private_key,
                    public_key=private_key.with_name(private_key.name + ".pub"),
                )

        logger.debug("credential_unavailable", url=url, allowed=str(allowed))
        return None

    def _key_files(self) -> list[Path]:
        """Readable private keys in priority order."""
        keys = []
        for name in self.key_names:
            candidate = self.ssh_dir / name
            if candidate.is_file() and os.access(candidate, os.R_OK):
                keys.append(candidate)
        return keys
