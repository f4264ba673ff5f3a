"""
Collection pipeline for PR Scraper.

Runs strictly in order, one repository and one PR at a time:
identity -> scope -> PR listing -> PR details -> report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Union

from .config import DEFAULT_LIST_LIMIT, RunConfig
from .errors import AuthError, ProviderError, ScopeError
from .github import GitHubProvider, PullRequestDetail, PullRequestSummary
from .report import ReportWriter


logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description provided"
DIFF_UNAVAILABLE = "Diff not available (PR may be too old or has conflicts)"


@dataclass(frozen=True)
class SingleRepo:
    """Target naming one repository (owner/name)."""
    owner_slash_name: str

    @property
    def mode(self) -> str:
        return "repo"


@dataclass(frozen=True)
class AccountScope:
    """Target naming an organization or user: every repository it owns."""
    account_name: str

    @property
    def mode(self) -> str:
        return "org"


ScopeTarget = Union[SingleRepo, AccountScope]


@dataclass
class RepositoryReport:
    """PRs collected from one repository."""
    repo: str
    details: list[PullRequestDetail] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.details)


@dataclass
class RunSummary:
    """Totals for one run, used for the console summary."""
    target: str
    mode: str
    author: str
    date_description: str
    include_diffs: bool
    output_path: Path
    repo_count: int
    repositories: list[RepositoryReport] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total_prs(self) -> int:
        return sum(report.count for report in self.repositories)


def classify_target(target: str) -> ScopeTarget:
    """owner/name is a single repository; anything else is an account."""
    if "/" in target:
        return SingleRepo(target)
    return AccountScope(target)


def expand_scope(scope: ScopeTarget, provider: GitHubProvider, limit: int) -> list[str]:
    """
    Resolve a scope to the repositories to process.

    Raises:
        ScopeError: the account owns no repositories
    """
    if isinstance(scope, SingleRepo):
        return [scope.owner_slash_name]

    repos = provider.list_repositories(scope.account_name, limit)
    if not repos:
        raise ScopeError(f"No repositories found for {scope.account_name}")
    if len(repos) >= limit:
        logger.warning("Repository list for %s hit the limit of %d; some may be missing", scope.account_name, limit)
    return repos


def resolve_identity(provider: GitHubProvider) -> str:
    """Login of the authenticated user, used as the author filter."""
    try:
        return provider.get_username()
    except ProviderError as e:
        raise AuthError(f"Could not determine the authenticated GitHub user: {e}") from e


def enumerate_pull_requests(
    provider: GitHubProvider,
    repo: str,
    author: str,
    since_date: str,
    limit: int,
) -> list[PullRequestSummary]:
    """
    PRs by `author` in `repo` created on or after `since_date`.

    ISO 8601 timestamps are compared as strings, so '2024-06-01T08:00:00Z'
    is kept for since_date '2024-06-01'. Provider order is preserved.
    """
    prs = provider.list_pull_requests(repo, author, limit)
    if len(prs) >= limit:
        logger.warning("PR list for %s hit the limit of %d; older PRs may be missing", repo, limit)
    return [pr for pr in prs if pr.created_at >= since_date]


def fetch_detail(
    provider: GitHubProvider,
    repo: str,
    summary: PullRequestSummary,
    include_diffs: bool,
) -> PullRequestDetail:
    """Fetch the description and, if requested, the diff of one PR."""
    body = (provider.get_pull_request_body(repo, summary.number) or "").rstrip("\n")

    diff = None
    if include_diffs:
        result = provider.get_pull_request_diff(repo, summary.number)
        if not result.ok:
            logger.warning("Diff for %s#%d unavailable: %s", repo, summary.number, result.error)
        diff = result.value_or(DIFF_UNAVAILABLE).rstrip("\n")

    return PullRequestDetail(summary=summary, body=body or NO_DESCRIPTION, diff=diff)


def _noop(message: str) -> None:
    pass


def run_collection(
    run_config: RunConfig,
    provider: GitHubProvider,
    repo_limit: int = DEFAULT_LIST_LIMIT,
    pr_limit: int = DEFAULT_LIST_LIMIT,
    echo: Callable[[str], None] = _noop,
    timestamp: str | None = None,
) -> RunSummary:
    """
    Collect PRs for one run and append them to the report.

    The report file is only opened after the user and the repository list
    are resolved, so AuthError and ScopeError leave it untouched.

    Args:
        run_config: Resolved arguments
        provider: GitHub provider
        repo_limit: Max repositories listed for an account
        pr_limit: Max PRs listed per repository
        echo: Receives console progress lines
        timestamp: Override for the run banner timestamp

    Returns:
        RunSummary with per-repository results and totals
    """
    scope = classify_target(run_config.target)
    org_mode = isinstance(scope, AccountScope)

    author = resolve_identity(provider)
    echo(f"Your GitHub username: {author}")

    if org_mode:
        echo(f"Fetching repositories for {scope.account_name}...")
    repos = expand_scope(scope, provider, repo_limit)
    if org_mode:
        echo(f"Found {len(repos)} repositories")

    summary = RunSummary(
        target=run_config.target,
        mode=scope.mode,
        author=author,
        date_description=run_config.date_description,
        include_diffs=run_config.include_diffs,
        output_path=run_config.output_path,
        repo_count=len(repos),
    )

    with ReportWriter(run_config.output_path) as writer:
        writer.write_run_header(
            target=run_config.target,
            mode=scope.mode,
            author=author,
            period=run_config.date_description,
            include_diffs=run_config.include_diffs,
            repo_count=len(repos),
            timestamp=timestamp,
        )

        for repo_index, repo in enumerate(repos, start=1):
            if org_mode:
                echo("")
                echo(f"🔍 Processing repository {repo_index}/{len(repos)}: {repo}")

            prs = enumerate_pull_requests(provider, repo, author, run_config.since_date, pr_limit)

            if not prs:
                logger.info("No matching PRs in %s", repo)
                summary.skipped.append(repo)
                if org_mode:
                    echo(f"  └── No PRs found in {repo}")
                else:
                    echo(f"No pull requests found for {author} in {repo} {run_config.date_description}")
                continue

            if org_mode:
                echo(f"  └── Found {len(prs)} PRs")
            else:
                echo(f"Found {len(prs)} pull requests. Processing...")

            writer.write_repository_header(repo, len(prs))
            report = RepositoryReport(repo=repo)
            summary.repositories.append(report)

            indent = "    " if org_mode else ""
            for pr_index, pr in enumerate(prs, start=1):
                echo(f"{indent}Processing PR #{pr.number} ({pr_index}/{len(prs)}): {pr.title}")
                if run_config.include_diffs:
                    echo("      └── Fetching diff..." if org_mode else "  └── Fetching diff...")
                detail = fetch_detail(provider, repo, pr, run_config.include_diffs)
                writer.write_pull_request(detail)
                report.details.append(detail)

    return summary
