from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from prscraper.config import (
    ScraperConfig,
    default_output_path,
    default_since,
    resolve_run_config,
)
from prscraper.errors import ConfigError, UsageError


def test_default_since_same_year():
    assert default_since(date(2025, 10, 19)) == "2025-04-01"


def test_default_since_rolls_back_across_year():
    assert default_since(date(2025, 2, 10)) == "2024-08-01"


def test_default_since_from_month_end():
    # Aug 31 minus six months is still the 1st of February, not March
    assert default_since(date(2025, 8, 31)) == "2025-02-01"


def test_default_since_custom_lookback():
    assert default_since(date(2025, 1, 15), months=13) == "2023-12-01"


def test_default_output_path_with_and_without_diffs():
    today = date(2026, 10, 19)
    assert default_output_path(False, today) == Path("pr_descriptions_20261019.md")
    assert default_output_path(True, today) == Path("pr_descriptions_with_diffs_20261019.md")


def test_resolve_run_config_defaults():
    config = resolve_run_config("acme/widget", None, False, None, today=date(2025, 2, 10))

    assert config.target == "acme/widget"
    assert config.since_date == "2024-08-01"
    assert config.date_description == "since 2024-08-01 (6 months ago)"
    assert config.output_path == Path("pr_descriptions_20250210.md")
    assert config.include_diffs is False


def test_resolve_run_config_diffs_changes_default_name_only():
    with_diffs = resolve_run_config("acme", None, True, None, today=date(2025, 2, 10))
    explicit = resolve_run_config("acme", "mine.md", True, None, today=date(2025, 2, 10))

    assert "with_diffs" in with_diffs.output_path.name
    assert explicit.output_path == Path("mine.md")


@pytest.mark.parametrize("since", ["2024-01-01", "2024-02-30", "2024-13-40", "0000-00-00"])
def test_resolve_run_config_accepts_syntactically_valid_dates(since):
    config = resolve_run_config("acme", None, False, since)

    assert config.since_date == since
    assert config.date_description == f"since {since}"


@pytest.mark.parametrize("since", ["2024-1-01", "24-01-01", "2024/01/01", "yesterday", "2024-01-01T00:00", ""])
def test_resolve_run_config_rejects_bad_date_syntax(since):
    with pytest.raises(UsageError, match="Invalid date format"):
        resolve_run_config("acme", None, False, since)


@pytest.mark.parametrize("target", [None, "", "   "])
def test_resolve_run_config_requires_target(target):
    with pytest.raises(UsageError, match="Missing target"):
        resolve_run_config(target, None, False, None)


def test_resolve_run_config_uses_lookback_months():
    config = resolve_run_config("acme", None, False, None, lookback_months=3, today=date(2025, 2, 10))

    assert config.since_date == "2024-11-01"
    assert config.date_description == "since 2024-11-01 (3 months ago)"


def test_config_defaults_when_no_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    config = ScraperConfig.load(tmp_path)

    assert config.backend == "gh"
    assert config.repo_limit == 1000
    assert config.pr_limit == 1000
    assert config.lookback_months == 6
    assert config.command_timeout is None


def test_config_load_discovered_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "prscraper.yml").write_text(
        """
backend: api
repo_limit: 50
pr_limit: 200
lookback_months: 3
command_timeout: 30
        """.strip()
    )

    config = ScraperConfig.load(tmp_path)

    assert config.backend == "api"
    assert config.repo_limit == 50
    assert config.pr_limit == 200
    assert config.lookback_months == 3
    assert config.command_timeout == 30


def test_config_load_explicit_path(tmp_path):
    config_path = tmp_path / "custom.yml"
    config_path.write_text("gh_path: /opt/bin/gh")

    config = ScraperConfig.load(tmp_path, config_path)

    assert config.gh_path == "/opt/bin/gh"


def test_config_missing_explicit_path(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ScraperConfig.load(tmp_path, tmp_path / "nope.yml")


@pytest.mark.parametrize(
    "content",
    [
        "backend: svn",
        "repo_limit: 0",
        "pr_limit: many",
        "lookback_months: true",
        "command_timeout: soon",
        "- just\n- a list",
        "backend: [unclosed",
    ],
)
def test_config_rejects_invalid_values(tmp_path, content):
    config_path = tmp_path / "prscraper.yml"
    config_path.write_text(content)

    with pytest.raises(ConfigError):
        ScraperConfig.load(tmp_path, config_path)
