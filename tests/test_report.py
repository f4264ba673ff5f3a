from __future__ import annotations

from datetime import datetime, timezone

from prscraper.github import PRState, PullRequestDetail
from prscraper.report import SEPARATOR, ReportWriter, format_timestamp

from conftest import make_pr


def test_format_timestamp_matches_date_style():
    moment = datetime(2026, 10, 19, 9, 5, 3, tzinfo=timezone.utc)
    assert format_timestamp(moment) == "Mon Oct 19 09:05:03 UTC 2026"


def test_run_header_layout(tmp_path):
    path = tmp_path / "report.md"

    with ReportWriter(path) as writer:
        writer.write_run_header(
            target="acme",
            mode="org",
            author="alice",
            period="since 2024-08-01 (6 months ago)",
            include_diffs=True,
            repo_count=3,
            timestamp="Mon Feb 10 12:00:00 UTC 2025",
        )

    assert path.read_text() == (
        f"{SEPARATOR}\n"
        "# Run - Mon Feb 10 12:00:00 UTC 2025\n"
        "**Target:** acme (org mode)\n"
        "**Author:** alice\n"
        "**Period:** since 2024-08-01 (6 months ago)\n"
        "**Includes Diffs:** true\n"
        "**Repositories:** 3\n"
        f"{SEPARATOR}\n"
        "\n"
    )


def test_repository_and_pr_block_without_diff(tmp_path):
    path = tmp_path / "report.md"
    detail = PullRequestDetail(
        summary=make_pr(42, "2024-09-01T00:00:00Z", title="Add widget", state=PRState.MERGED),
        body="Adds the widget.\n\n- one\n- two",
    )

    with ReportWriter(path) as writer:
        writer.write_repository_header("acme/widget", 1)
        writer.write_pull_request(detail)

    assert path.read_text() == (
        "# Repository: acme/widget\n"
        "**PRs Found:** 1\n"
        "\n"
        "## PR #42: Add widget\n"
        "**Status:** MERGED\n"
        "**URL:** https://github.com/acme/widget/pull/42\n"
        "\n"
        "### Description:\n"
        "Adds the widget.\n"
        "\n"
        "- one\n"
        "- two\n"
        "\n"
        "---\n"
        "\n"
    )


def test_pr_block_with_diff(tmp_path):
    path = tmp_path / "report.md"
    detail = PullRequestDetail(
        summary=make_pr(7, "2024-09-01T00:00:00Z", title="Fix {{ braces }}"),
        body="No description provided",
        diff="diff --git a/x b/x\n+added",
    )

    with ReportWriter(path) as writer:
        writer.write_pull_request(detail)

    assert path.read_text() == (
        "## PR #7: Fix {{ braces }}\n"
        "**Status:** OPEN\n"
        "**URL:** https://github.com/acme/widget/pull/7\n"
        "\n"
        "### Description:\n"
        "No description provided\n"
        "\n"
        "### Diff:\n"
        "```diff\n"
        "diff --git a/x b/x\n"
        "+added\n"
        "```\n"
        "\n"
        "---\n"
        "\n"
    )


def test_writer_appends_and_creates_parent(tmp_path):
    path = tmp_path / "nested" / "report.md"

    with ReportWriter(path) as writer:
        writer.write_repository_header("acme/one", 1)
    with ReportWriter(path) as writer:
        writer.write_repository_header("acme/two", 2)

    content = path.read_text()
    assert content.index("acme/one") < content.index("acme/two")
    assert content.count("# Repository:") == 2
