"""
git-census: Take a census of every Git repository under a directory tree.

Discovers repositories, inspects each one on a fixed pool of worker threads,
optionally switches branches, fetches or fast-forwards them, and aggregates
the results in discovery order.
"""

from __future__ import annotations

import os
import re
import subprocess
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import StrEnum
from itertools import count
from pathlib import Path

import structlog

from .credentials import CredentialKind, CredentialPolicy
from .scanner import ScanOptions, find_repositories

logger = structlog.get_logger()

MAX_WORKERS = 8
DEFAULT_REMOTE = "origin"

UNBORN_LABEL = "(unborn)"
DETACHED_LABEL = "(detached)"
UNRESOLVED_LABEL = "(?)"

_AUTH_FAILURE_RE = re.compile(
    r"permission denied|authentication failed|could not read (username|password)"
    r"|invalid username or password|access denied|no supported authentication methods",
    re.IGNORECASE,
)

# =============================================================================
# Domain Models
# =============================================================================


class SwitchOutcome(StrEnum):
    """Result of switching a repository to the requested branch."""

    SWITCHED = "switched"
    ALREADY_ON_BRANCH = "already_on_branch"
    DIRTY = "dirty"  # staged or modified changes block the checkout
    BRANCH_NOT_FOUND = "branch_not_found"
    ERROR = "error"  # checkout or HEAD update failed


class FetchOutcome(StrEnum):
    """Result of fetching from origin."""

    FETCHED = "fetched"
    NO_REMOTE = "no_remote"
    ERROR = "error"


class PullOutcome(StrEnum):
    """Result of a fast-forward-only pull."""

    PULLED = "pulled"
    UP_TO_DATE = "up_to_date"
    NOT_FAST_FORWARD = "not_fast_forward"
    DIRTY = "dirty"
    NO_REMOTE = "no_remote"
    ERROR = "error"


class SyncOperation(StrEnum):
    """Bulk remote operation requested for every repository."""

    NONE = "none"
    FETCH = "fetch"
    PULL = "pull"


class HeadKind(StrEnum):
    """Where HEAD currently points."""

    BRANCH = "branch"
    DETACHED = "detached"
    UNBORN = "unborn"
    UNRESOLVED = "unresolved"


class MergeAnalysis(StrEnum):
    """Relationship between the local branch and its upstream."""

    UP_TO_DATE = "up_to_date"
    FASTFORWARD = "fastforward"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class HeadState:
    """Resolved HEAD position."""

    kind: HeadKind
    name: str = ""
    commit: str = ""

    @property
    def label(self) -> str:
        """Display name for the branch column."""
        match self.kind:
            case HeadKind.BRANCH:
                return self.name
            case HeadKind.DETACHED:
                return f"({self.commit[:7]})" if self.commit else DETACHED_LABEL
            case HeadKind.UNBORN:
                return UNBORN_LABEL
            case _:
                return UNRESOLVED_LABEL


@dataclass(frozen=True)
class StatusCounts:
    staged: int = 0
    modified: int = 0
    untracked: int = 0


@dataclass
class RepoRecord:
    """Census entry for one discovered repository.

    Created with only ``path`` set when the result table is allocated and
    filled in place by the worker that claims it. A repository that could
    not be opened keeps every other field at its default.
    """

    path: Path
    branch: str = ""
    staged: int = 0
    modified: int = 0
    untracked: int = 0
    ahead: int = 0
    behind: int = 0
    has_remote: bool = False
    last_commit: datetime | None = None
    switch_result: SwitchOutcome | None = None
    operation_result: FetchOutcome | PullOutcome | None = None

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def usable(self) -> bool:
        """False when the repository could not be opened."""
        return bool(self.branch)

    @property
    def is_dirty(self) -> bool:
        return self.staged + self.modified + self.untracked > 0

    @property
    def has_local_changes(self) -> bool:
        """Staged or modified changes; untracked files alone do not count."""
        return self.staged > 0 or self.modified > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "path": str(self.path),
            "name": self.name,
            "usable": self.usable,
            "branch": self.branch,
            "staged": self.staged,
            "modified": self.modified,
            "untracked": self.untracked,
            "dirty": self.is_dirty,
            "ahead": self.ahead,
            "behind": self.behind,
            "has_remote": self.has_remote,
            "last_commit": self.last_commit.isoformat() if self.last_commit else None,
            "switch_result": self.switch_result.value if self.switch_result else None,
            "operation_result": (
                self.operation_result.value if self.operation_result else None
            ),
        }


@dataclass(frozen=True)
class CensusOptions:
    """Per-run pipeline configuration shared read-only by every worker."""

    switch_branch: str | None = None
    operation: SyncOperation = SyncOperation.NONE
    username: str | None = None
    network_timeout: float | None = None
    remote_name: str = DEFAULT_REMOTE


@dataclass
class CensusSummary:
    """Totals over a finished census."""

    total: int = 0
    clean: int = 0
    dirty: int = 0
    behind: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# Git Operations (Low-level)
# =============================================================================


class GitOperations:
    """Low-level Git operations for a single repository."""

    def __init__(self, repo_path: Path, timeout: float | None = None):
        self.repo_path = repo_path
        self.timeout = timeout

    def _run(
        self,
        *args: str,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a git command in the repository, never raising.

        Ref names and remote messages are arbitrary bytes, so output that is
        not valid UTF-8 is decoded with replacement characters.
        """
        logger.debug("git_exec", command=args, cwd=str(self.repo_path))
        try:
            return subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                env=env,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("git_exec_timeout", command=args, timeout=timeout)
            return subprocess.CompletedProcess(
                ["git", *args], 1, "", f"timed out after {timeout}s"
            )
        except OSError as e:
            logger.error("git_exec_error", command=args, error=str(e))
            return subprocess.CompletedProcess(["git", *args], 1, "", str(e))

    def open(self) -> bool:
        """Check that repo_path is itself the top level of a working tree."""
        result = self._run("rev-parse", "--show-toplevel")
        if result.returncode != 0:
            return False
        try:
            return Path(result.stdout.strip()).resolve() == self.repo_path.resolve()
        except OSError:
            return False

    def head_state(self) -> HeadState:
        """Resolve HEAD to a branch, detached commit, unborn branch or nothing."""
        symbolic = self._run("symbolic-ref", "-q", "HEAD")
        peeled = self._run("rev-parse", "-q", "--verify", "HEAD^{commit}")
        commit = peeled.stdout.strip() if peeled.returncode == 0 else ""

        if symbolic.returncode == 0:
            name = symbolic.stdout.strip().removeprefix("refs/heads/")
            if not commit:
                return HeadState(HeadKind.UNBORN, name=name)
            return HeadState(HeadKind.BRANCH, name=name, commit=commit)
        if commit or symbolic.returncode == 1:
            # exit status 1: HEAD exists but is not symbolic
            return HeadState(HeadKind.DETACHED, commit=commit)
        return HeadState(HeadKind.UNRESOLVED)

    def status_counts(self) -> StatusCounts:
        """Count staged, modified and untracked entries.

        Uses 'git status --porcelain=v2' so a single subprocess covers all
        three buckets. Unmerged entries count as both staged and modified.
        """
        result = self._run(
            "status",
            "--porcelain=v2",
            "--untracked-files=all",
            "--ignore-submodules=all",
        )
        if result.returncode != 0:
            return StatusCounts()

        staged = modified = untracked = 0
        for line in result.stdout.splitlines():
            if line.startswith("1 ") or line.startswith("2 "):
                # Changed entry: XY sub mH mI mW hH hI path
                xy = line[2:4]
                if xy[0] != ".":
                    staged += 1
                if xy[1] != ".":
                    modified += 1
            elif line.startswith("u "):
                staged += 1
                modified += 1
            elif line.startswith("? "):
                untracked += 1
        return StatusCounts(staged=staged, modified=modified, untracked=untracked)

    def branch_commit(self, branch: str) -> str | None:
        """Commit id of a local branch, or None if it does not exist."""
        result = self._run("rev-parse", "-q", "--verify", f"refs/heads/{branch}^{{commit}}")
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return None

    def upstream_ref(self, branch: str) -> str | None:
        """Full name of the branch's upstream reference."""
        result = self._run("rev-parse", "--symbolic-full-name", f"{branch}@{{upstream}}")
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return None

    def resolve_commit(self, ref: str) -> str | None:
        result = self._run("rev-parse", "-q", "--verify", f"{ref}^{{commit}}")
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return None

    def ahead_behind(self, local: str, upstream: str) -> tuple[int, int] | None:
        """Commits only on local (ahead) and only on upstream (behind)."""
        result = self._run("rev-list", "--left-right", "--count", f"{local}...{upstream}")
        if result.returncode != 0:
            return None
        parts = result.stdout.split()
        if len(parts) != 2:
            return None
        return int(parts[0]), int(parts[1])

    def commit_time(self) -> datetime | None:
        """Committer date of the commit at HEAD."""
        result = self._run("log", "-1", "--format=%cI", "HEAD")
        if result.returncode == 0 and result.stdout.strip():
            try:
                return datetime.fromisoformat(result.stdout.strip())
            except ValueError:
                return None
        return None

    def checkout_tree(self, commit: str, *, from_head: bool = True) -> tuple[bool, str]:
        """Update index and working tree to commit.

        A two-tree 'read-tree -m -u' refuses to overwrite local changes or
        untracked files that would be clobbered.
        """
        args = ["read-tree", "-m", "-u"]
        if from_head:
            args.append("HEAD")
        args.append(commit)
        result = self._run(*args)
        if result.returncode != 0:
            return False, result.stderr.strip()
        return True, ""

    def set_head(self, ref: str) -> tuple[bool, str]:
        """Point HEAD at ref symbolically."""
        result = self._run("symbolic-ref", "-m", "git-census: switch", "HEAD", ref)
        if result.returncode != 0:
            return False, result.stderr.strip()
        return True, ""

    def set_branch_target(self, ref: str, new: str, old: str) -> tuple[bool, str]:
        """Move ref from old to new, refusing if it changed underneath us."""
        result = self._run("update-ref", "-m", "git-census: fast-forward", ref, new, old)
        if result.returncode != 0:
            return False, result.stderr.strip()
        return True, ""

    def remote_url(self, name: str) -> str | None:
        result = self._run("remote", "get-url", name)
        if result.returncode == 0:
            return result.stdout.strip()
        return None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool | None:
        result = self._run("merge-base", "--is-ancestor", ancestor, descendant)
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        return None

    def merge_analysis(self, local: str, upstream: str) -> MergeAnalysis | None:
        """Classify how local relates to upstream; None when git cannot tell."""
        if local == upstream:
            return MergeAnalysis.UP_TO_DATE
        upstream_merged = self.is_ancestor(upstream, local)
        if upstream_merged is None:
            return None
        if upstream_merged:
            return MergeAnalysis.UP_TO_DATE
        can_fast_forward = self.is_ancestor(local, upstream)
        if can_fast_forward is None:
            return None
        return MergeAnalysis.FASTFORWARD if can_fast_forward else MergeAnalysis.DIVERGED

    def fetch(self, remote: str, credentials: CredentialPolicy) -> tuple[bool, str]:
        """Fetch remote without ever prompting.

        SSH remotes ask the credential policy before each attempt and retry
        only on authentication failures; other transports try once.
        """
        url = self.remote_url(remote) or ""
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}

        if self._detect_protocol(url) != "ssh":
            result = self._run("fetch", remote, env=env, timeout=self.timeout)
            if result.returncode != 0:
                return False, result.stderr.strip()
            return True, ""

        username_from_url = _url_username(url)
        allowed = CredentialKind.SSH_KEY
        if username_from_url is None:
            allowed |= CredentialKind.USERNAME
        username = username_from_url

        while not credentials.exhausted:
            credential = credentials.acquire(url, username, allowed)
            if credential is None:
                break
            if credential.kind is CredentialKind.USERNAME:
                username = credential.username
                allowed = CredentialKind.SSH_KEY
                continue

            env["GIT_SSH_COMMAND"] = credential.ssh_command(login=username_from_url is None)
            result = self._run("fetch", remote, env=env, timeout=self.timeout)
            if result.returncode == 0:
                return True, ""
            error = result.stderr.strip()
            if not _AUTH_FAILURE_RE.search(error):
                return False, error
            logger.debug(
                "fetch_auth_retry",
                path=str(self.repo_path),
                attempt=credentials.attempts,
                agent=credential.from_agent,
                key=str(credential.private_key) if credential.private_key else None,
            )

        return False, f"authentication failed after {credentials.attempts} credential attempts"

    @staticmethod
    def _detect_protocol(url: str) -> str:
        """Detect protocol from Git URL."""
        if not url:
            return "unknown"
        if url.startswith("https://"):
            return "https"
        if url.startswith("http://"):
            return "http"
        if url.startswith("git://"):
            return "git"
        if url.startswith("file://") or url.startswith("/"):
            return "file"
        if url.startswith("ssh://") or "@" in url:
            # SSH URLs: ssh://user@host/path or user@host:path
            return "ssh"
        return "unknown"


def _url_username(url: str) -> str | None:
    """User part of an SSH URL, if it names one."""
    rest = url.removeprefix("ssh://")
    host_part = rest.split("/", 1)[0] if url.startswith("ssh://") else rest.split(":", 1)[0]
    if "@" in host_part:
        return host_part.split("@", 1)[0] or None
    return None


# =============================================================================
# Repository Pipeline
# =============================================================================


class GitRepository:
    """Runs the per-repository census pipeline.

    Open, resolve branch, count status, then the optional switch and
    fetch-or-pull, then ahead/behind and the last commit time. Failures in
    the optional steps become outcome values and the pipeline carries on.
    """

    def __init__(self, path: Path, options: CensusOptions | None = None):
        self.path = path
        self.name = path.name
        self.options = options or CensusOptions()
        self.ops = GitOperations(path, timeout=self.options.network_timeout)
        self.head = HeadState(HeadKind.UNRESOLVED)

    def process(self, record: RepoRecord) -> RepoRecord:
        """Populate record in place."""
        if not self.ops.open():
            logger.warning("repo_open_failed", path=str(self.path))
            return record

        self.resolve_branch(record)
        self.compute_status(record)

        if self.options.switch_branch:
            record.switch_result = self.switch(record, self.options.switch_branch)
            if record.switch_result is SwitchOutcome.SWITCHED:
                self.resolve_branch(record)
                self.compute_status(record)

        if self.options.operation is SyncOperation.FETCH:
            record.operation_result = self.fetch()
        elif self.options.operation is SyncOperation.PULL:
            record.operation_result = self.pull(record)
            if record.operation_result is PullOutcome.PULLED:
                self.resolve_branch(record)
                self.compute_status(record)

        self.compute_ahead_behind(record)
        self.compute_last_commit(record)
        return record

    def resolve_branch(self, record: RepoRecord) -> None:
        self.head = self.ops.head_state()
        record.branch = self.head.label

    def compute_status(self, record: RepoRecord) -> None:
        counts = self.ops.status_counts()
        record.staged = counts.staged
        record.modified = counts.modified
        record.untracked = counts.untracked

    def compute_ahead_behind(self, record: RepoRecord) -> None:
        record.ahead = record.behind = 0
        record.has_remote = False
        if self.head.kind is not HeadKind.BRANCH:
            return

        upstream = self.ops.upstream_ref(self.head.name)
        if upstream is None:
            return
        upstream_commit = self.ops.resolve_commit(upstream)
        if upstream_commit is None:
            return
        counts = self.ops.ahead_behind(self.head.commit, upstream_commit)
        if counts is None:
            return
        record.ahead, record.behind = counts
        record.has_remote = True

    def compute_last_commit(self, record: RepoRecord) -> None:
        if self.head.kind in (HeadKind.UNBORN, HeadKind.UNRESOLVED):
            return
        record.last_commit = self.ops.commit_time()

    def switch(self, record: RepoRecord, target: str) -> SwitchOutcome:
        """Check out an existing local branch when nothing would be lost."""
        if record.branch == target:
            return SwitchOutcome.ALREADY_ON_BRANCH

        target_commit = self.ops.branch_commit(target)
        if target_commit is None:
            return SwitchOutcome.BRANCH_NOT_FOUND

        if record.has_local_changes:
            return SwitchOutcome.DIRTY

        success, error = self.ops.checkout_tree(target_commit, from_head=bool(self.head.commit))
        if not success:
            logger.warning("switch_checkout_failed", path=str(self.path), error=error)
            return SwitchOutcome.ERROR

        success, error = self.ops.set_head(f"refs/heads/{target}")
        if not success:
            logger.warning("switch_set_head_failed", path=str(self.path), error=error)
            return SwitchOutcome.ERROR

        return SwitchOutcome.SWITCHED

    def fetch(self) -> FetchOutcome:
        """Fetch origin; only remote-tracking refs change."""
        remote = self.options.remote_name
        if self.ops.remote_url(remote) is None:
            return FetchOutcome.NO_REMOTE

        success, error = self.ops.fetch(remote, self._credential_policy())
        if not success:
            logger.warning("fetch_failed", path=str(self.path), remote=remote, error=error)
            return FetchOutcome.ERROR
        return FetchOutcome.FETCHED

    def pull(self, record: RepoRecord) -> PullOutcome:
        """Fetch, then fast-forward the current branch to its upstream.

        Never merges or rebases: diverged histories are reported and left
        untouched.
        """
        if record.has_local_changes:
            return PullOutcome.DIRTY

        fetched = self.fetch()
        if fetched is FetchOutcome.NO_REMOTE:
            return PullOutcome.NO_REMOTE
        if fetched is FetchOutcome.ERROR:
            return PullOutcome.ERROR

        head = self.head
        if head.kind is HeadKind.DETACHED:
            return PullOutcome.NO_REMOTE
        if head.kind is not HeadKind.BRANCH:
            return PullOutcome.ERROR

        upstream = self.ops.upstream_ref(head.name)
        if upstream is None:
            return PullOutcome.NO_REMOTE
        upstream_commit = self.ops.resolve_commit(upstream)
        if upstream_commit is None:
            return PullOutcome.NO_REMOTE

        match self.ops.merge_analysis(head.commit, upstream_commit):
            case MergeAnalysis.UP_TO_DATE:
                return PullOutcome.UP_TO_DATE
            case MergeAnalysis.DIVERGED:
                return PullOutcome.NOT_FAST_FORWARD
            case MergeAnalysis.FASTFORWARD:
                pass
            case _:
                logger.warning("merge_analysis_failed", path=str(self.path), upstream=upstream)
                return PullOutcome.ERROR

        success, error = self.ops.checkout_tree(upstream_commit)
        if not success:
            logger.warning("pull_checkout_failed", path=str(self.path), error=error)
            return PullOutcome.ERROR

        success, error = self.ops.set_branch_target(
            f"refs/heads/{head.name}", upstream_commit, head.commit
        )
        if not success:
            logger.warning("pull_update_ref_failed", path=str(self.path), error=error)
            return PullOutcome.ERROR

        return PullOutcome.PULLED

    def _credential_policy(self) -> CredentialPolicy:
        return CredentialPolicy(username=self.options.username)


def process_repository(record: RepoRecord, options: CensusOptions) -> None:
    """Default worker payload: run the git pipeline for record.path."""
    GitRepository(record.path, options).process(record)


# =============================================================================
# Work Distribution
# =============================================================================


class ResultTable(Sequence[RepoRecord]):
    """One pre-allocated record per discovered path, in discovery order.

    Slot i is only ever written by the worker that claimed index i, so the
    table needs no locking; readers wait for the join.
    """

    def __init__(self, paths: Iterable[Path]):
        self.records = [RepoRecord(path=path) for path in paths]

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def __iter__(self) -> Iterator[RepoRecord]:
        return iter(self.records)


class WorkQueue:
    """Shared claim counter over indices [0, size).

    Every index is handed out exactly once; workers stop at the first
    claim past the end.
    """

    def __init__(self, size: int):
        self.size = size
        self._counter = count()
        self._lock = threading.Lock()

    def claim(self) -> int | None:
        with self._lock:
            index = next(self._counter)
        return index if index < self.size else None


Processor = Callable[[RepoRecord, CensusOptions], None]


def worker_count(total: int, max_workers: int | None = None) -> int:
    """Threads to start: CPU count capped at MAX_WORKERS and at total."""
    limit = max_workers if max_workers is not None else min(os.cpu_count() or 4, MAX_WORKERS)
    return max(1, min(limit, total))


def run_census(
    paths: Sequence[Path],
    options: CensusOptions | None = None,
    processor: Processor = process_repository,
    *,
    max_workers: int | None = None,
    sequential: bool = False,
) -> ResultTable:
    """Process every path and return the filled table in discovery order.

    Workers claim indices from a shared WorkQueue and write only the record
    they claimed. Anything a processor raises is re-raised here once every
    worker has finished.

    Args:
        paths: Repository roots in discovery order
        options: Pipeline configuration passed to every processor call
        processor: Callable that fills one record in place
        max_workers: Thread limit; defaults to the CPU count capped at MAX_WORKERS
        sequential: Process everything in the calling thread

    Returns:
        ResultTable whose order matches paths
    """
    options = options or CensusOptions()
    table = ResultTable(paths)
    queue = WorkQueue(len(table))

    def worker() -> None:
        while (index := queue.claim()) is not None:
            processor(table[index], options)

    workers = 1 if sequential else worker_count(len(table), max_workers)
    if len(table) <= 1 or workers == 1:
        worker()
        return table

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="census") as executor:
        futures = [executor.submit(worker) for _ in range(workers)]
    for future in futures:
        future.result()
    return table


# =============================================================================
# Aggregation
# =============================================================================


def summarize(records: Iterable[RepoRecord]) -> CensusSummary:
    """Count total, clean, dirty and behind repositories."""
    summary = CensusSummary()
    for record in records:
        summary.total += 1
        if record.is_dirty:
            summary.dirty += 1
        else:
            summary.clean += 1
        if record.behind > 0:
            summary.behind += 1
    return summary


def outcome_counts(
    records: Iterable[RepoRecord],
    outcome_type: type[SwitchOutcome] | type[FetchOutcome] | type[PullOutcome],
) -> dict:
    """Count records per outcome of one kind, in the enum's declaration order.

    Args:
        records: Finished census records
        outcome_type: SwitchOutcome reads switch_result; FetchOutcome and
            PullOutcome read operation_result

    Returns:
        Dictionary mapping every member of outcome_type to its count
    """
    counts = {outcome: 0 for outcome in outcome_type}
    for record in records:
        value = (
            record.switch_result if outcome_type is SwitchOutcome else record.operation_result
        )
        if isinstance(value, outcome_type):
            counts[value] += 1
    return counts


# =============================================================================
# Census Manager
# =============================================================================


class CensusManager:
    """Discover and process all repositories under a root path."""

    def __init__(
        self,
        root_path: Path,
        scan_options: ScanOptions | None = None,
        options: CensusOptions | None = None,
        max_workers: int | None = None,
        processor: Processor = process_repository,
    ):
        self.root_path = root_path.resolve()
        self.scan_options = scan_options or ScanOptions()
        self.options = options or CensusOptions()
        self.max_workers = max_workers
        self.processor = processor
        self._repositories: list[Path] | None = None

    def discover_repositories(self) -> list[Path]:
        """Discover all repository roots under root path."""
        if self._repositories is None:
            self._repositories = list(find_repositories(self.root_path, self.scan_options))
            logger.debug(
                "repositories_discovered",
                root=str(self.root_path),
                count=len(self._repositories),
            )
        return self._repositories

    def run(self, sequential: bool = False) -> ResultTable:
        return run_census(
            self.discover_repositories(),
            self.options,
            self.processor,
            max_workers=self.max_workers,
            sequential=sequential,
        )

    def get_summary(self, records: Iterable[RepoRecord]) -> CensusSummary:
        return summarize(records)
