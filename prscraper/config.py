"""
Configuration management for PR Scraper.

Loads and validates:
- prscraper.yml: optional defaults (backend, listing limits, lookback window)
- Command-line arguments: resolved into an immutable RunConfig per run
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, UsageError


CONFIG_FILENAME = "prscraper.yml"
BACKENDS = ("gh", "api")
DEFAULT_LOOKBACK_MONTHS = 6
DEFAULT_LIST_LIMIT = 1000

# Syntax check only, calendar-invalid dates like 2024-13-40 pass
SINCE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


@dataclass
class ScraperConfig:
    """Defaults read from prscraper.yml."""
    backend: str = "gh"  # gh (GitHub CLI) or api (REST with GITHUB_TOKEN)
    gh_path: str = "gh"
    repo_limit: int = DEFAULT_LIST_LIMIT
    pr_limit: int = DEFAULT_LIST_LIMIT
    lookback_months: int = DEFAULT_LOOKBACK_MONTHS
    command_timeout: float | None = None  # seconds per gh call, None waits forever

    @classmethod
    def load(cls, repo_root: Path, config_path: Path | None = None) -> "ScraperConfig":
        """
        Load configuration from an explicit path or by discovery.

        Discovery checks the current directory, then the repository root.
        An explicit path that does not exist is an error; a missing
        discovered file just means defaults.
        """
        if config_path is not None:
            if not config_path.is_file():
                raise ConfigError(f"Config file not found: {config_path}")
            return cls._parse(cls._read(config_path))

        for candidate in (Path.cwd() / CONFIG_FILENAME, repo_root / CONFIG_FILENAME):
            if candidate.is_file():
                return cls._parse(cls._read(candidate))

        return cls()

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        return data

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> "ScraperConfig":
        """Parse and validate the configuration mapping."""
        config = cls(
            backend=str(data.get("backend", "gh")),
            gh_path=str(data.get("gh_path", "gh")),
            repo_limit=data.get("repo_limit", DEFAULT_LIST_LIMIT),
            pr_limit=data.get("pr_limit", DEFAULT_LIST_LIMIT),
            lookback_months=data.get("lookback_months", DEFAULT_LOOKBACK_MONTHS),
            command_timeout=data.get("command_timeout"),
        )

        if config.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {', '.join(BACKENDS)}, got '{config.backend}'")
        for name in ("repo_limit", "pr_limit", "lookback_months"):
            value = getattr(config, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if config.command_timeout is not None:
            if isinstance(config.command_timeout, bool) or not isinstance(config.command_timeout, (int, float)):
                raise ConfigError(f"command_timeout must be a number, got {config.command_timeout!r}")

        return config


@dataclass(frozen=True)
class RunConfig:
    """Arguments for a single run, resolved once and never changed."""
    target: str
    output_path: Path
    include_diffs: bool
    since_date: str  # YYYY-MM-DD
    date_description: str


def default_since(today: date, months: int = DEFAULT_LOOKBACK_MONTHS) -> str:
    """
    First day of the month `months` calendar months before today.

    Works on month indexes so year boundaries roll over correctly:
    2025-02-10 with months=6 gives 2024-08-01.
    """
    month_index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(month_index, 12)
    return f"{year:04d}-{month + 1:02d}-01"


def default_output_path(include_diffs: bool, today: date) -> Path:
    """Default report filename, stamped with today's date."""
    stamp = today.strftime("%Y%m%d")
    if include_diffs:
        return Path(f"pr_descriptions_with_diffs_{stamp}.md")
    return Path(f"pr_descriptions_{stamp}.md")


def resolve_run_config(
    target: str | None,
    output: str | Path | None,
    include_diffs: bool,
    since: str | None,
    lookback_months: int = DEFAULT_LOOKBACK_MONTHS,
    today: date | None = None,
) -> RunConfig:
    """
    Build the RunConfig for this invocation.

    Args:
        target: owner/repo or account name
        output: Explicit report path, or None for the dated default
        include_diffs: Whether to fetch diffs
        since: Explicit YYYY-MM-DD start date, or None for the lookback window
        lookback_months: Months back for the default start date
        today: Override for the current date

    Raises:
        UsageError: missing target or malformed since date
    """
    if not target or not target.strip():
        raise UsageError("Missing target. Pass owner/repo or an organization/user name.")

    today = today or date.today()

    if since is not None:
        if not SINCE_PATTERN.fullmatch(since):
            raise UsageError(f"Invalid date format '{since}'. Use YYYY-MM-DD format.")
        since_date = since
        date_description = f"since {since}"
    else:
        since_date = default_since(today, lookback_months)
        date_description = f"since {since_date} ({lookback_months} months ago)"

    output_path = Path(output) if output else default_output_path(include_diffs, today)

    return RunConfig(
        target=target.strip(),
        output_path=output_path,
        include_diffs=include_diffs,
        since_date=since_date,
        date_description=date_description,
    )


def get_repo_root() -> Path:
    """Find the repository root (directory containing .git)."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    # No .git found, use current directory
    return Path.cwd()
