"""Key-value configuration file supplying CLI defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog

from .scanner import DEFAULT_MAX_DEPTH

logger = structlog.get_logger()

CONFIG_ENV_VAR = "GIT_CENSUS_CONFIG"
TRUE_VALUES = ("true", "1")


@dataclass(frozen=True)
class CensusConfig:
    """Defaults read from the config file; CLI flags override them."""

    default_dir: Path | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    skip_dirs: tuple[str, ...] = ()
    no_color: bool = False
    username: str | None = None
    timeout: float | None = None


def resolve_config_file() -> Path | None:
    """Auto-resolve the config file from environment and standard locations.

    Priority order:
    1. $GIT_CENSUS_CONFIG environment variable (exclusive when set)
    2. ~/.config/git-census/config (XDG-compliant)
    3. ~/.gitcensusrc (legacy fallback)
    """
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        env_path = Path(env_config).expanduser()
        return env_path if env_path.is_file() else None

    xdg_path = Path.home() / ".config" / "git-census" / "config"
    if xdg_path.is_file():
        return xdg_path

    legacy_path = Path.home() / ".gitcensusrc"
    if legacy_path.is_file():
        return legacy_path

    return None


def load_config(config_file: Path | None) -> CensusConfig:
    """Load settings from a ``key=value`` file.

    Supports:
    - Comments starting with #
    - Environment variables and tilde expansion in default_dir
    - Comma-separated skip_dirs

    Unknown keys and invalid values are ignored.
    """
    values: dict = {}
    if config_file is None:
        return CensusConfig()

    try:
        with open(config_file.expanduser()) as f:
            lines = f.read().splitlines()
    except OSError as e:
        logger.warning("config_unreadable", path=str(config_file), error=str(e))
        return CensusConfig()

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))

        if key == "default_dir":
            if value:
                values["default_dir"] = Path(os.path.expandvars(value)).expanduser()
        elif key == "max_depth":
            try:
                depth = int(value)
            except ValueError:
                depth = -1
            if depth >= 0:
                values["max_depth"] = depth
            else:
                logger.warning("config_invalid_value", key=key, value=value)
        elif key == "skip_dirs":
            values["skip_dirs"] = tuple(name.strip() for name in value.split(",") if name.strip())
        elif key == "no_color":
            values["no_color"] = value.lower() in TRUE_VALUES
        elif key == "username":
            values["username"] = value or None
        elif key == "timeout":
            try:
                timeout = float(value)
            except ValueError:
                timeout = 0
            if timeout > 0:
                values["timeout"] = timeout
            else:
                logger.warning("config_invalid_value", key=key, value=value)

    return CensusConfig(**values)
