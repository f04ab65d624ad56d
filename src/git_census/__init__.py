"""git-census: Take a census of every Git repository under a directory tree."""

# Guard against deleted CWD (e.g. directory removed by another process).
# rich crashes on import if os.getcwd() fails, so recover before any imports.
import os

try:
    os.getcwd()
except (OSError, PermissionError):
    os.chdir(os.path.expanduser("~"))

from ._version import __version__
from .cli import app
from .config import CensusConfig, load_config, resolve_config_file
from .core import (
    CensusManager,
    CensusOptions,
    CensusSummary,
    FetchOutcome,
    GitOperations,
    GitRepository,
    HeadKind,
    HeadState,
    PullOutcome,
    RepoRecord,
    ResultTable,
    SwitchOutcome,
    SyncOperation,
    WorkQueue,
    outcome_counts,
    run_census,
    summarize,
)
from .credentials import Credential, CredentialKind, CredentialPolicy
from .formatters import OutputFormatter
from .scanner import ScanOptions, find_repositories

__all__ = [
    # Version
    "__version__",
    # CLI
    "app",
    # Models
    "CensusOptions",
    "CensusSummary",
    "FetchOutcome",
    "HeadKind",
    "HeadState",
    "PullOutcome",
    "RepoRecord",
    "ScanOptions",
    "SwitchOutcome",
    "SyncOperation",
    # Operations
    "CensusManager",
    "GitOperations",
    "GitRepository",
    "ResultTable",
    "WorkQueue",
    "find_repositories",
    "run_census",
    # Aggregation
    "outcome_counts",
    "summarize",
    # Credentials
    "Credential",
    "CredentialKind",
    "CredentialPolicy",
    # Config
    "CensusConfig",
    "load_config",
    "resolve_config_file",
    # Formatters
    "OutputFormatter",
]
