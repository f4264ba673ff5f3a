from __future__ import annotations

import pytest

from prscraper.errors import ProviderError
from prscraper.github import FetchResult, GitHubProvider, PRState, PullRequestSummary


def make_pr(number: int, created_at: str, title: str | None = None, state: PRState = PRState.OPEN) -> PullRequestSummary:
    return PullRequestSummary(
        number=number,
        title=title or f"PR {number}",
        state=state,
        url=f"https://github.com/acme/widget/pull/{number}",
        created_at=created_at,
    )


class FakeProvider(GitHubProvider):
    """In-memory provider. A diff mapped to None fails to fetch."""

    def __init__(self):
        self.username: str | None = "alice"
        self.repos: dict[str, list[str]] = {}
        self.prs: dict[str, list[PullRequestSummary]] = {}
        self.bodies: dict[tuple[str, int], str | None] = {}
        self.diffs: dict[tuple[str, int], str | None] = {}
        self.calls: list[tuple] = []

    def get_username(self) -> str:
        self.calls.append(("get_username",))
        if self.username is None:
            raise ProviderError("gh api user: not logged in")
        return self.username

    def list_repositories(self, account: str, limit: int) -> list[str]:
        self.calls.append(("list_repositories", account, limit))
        return list(self.repos.get(account, []))

    def list_pull_requests(self, repo: str, author: str, limit: int) -> list[PullRequestSummary]:
        self.calls.append(("list_pull_requests", repo, author, limit))
        return list(self.prs.get(repo, []))

    def get_pull_request_body(self, repo: str, number: int) -> str | None:
        self.calls.append(("get_pull_request_body", repo, number))
        return self.bodies.get((repo, number))

    def get_pull_request_diff(self, repo: str, number: int) -> FetchResult:
        self.calls.append(("get_pull_request_diff", repo, number))
        diff = self.diffs.get((repo, number), f"diff --git a/{number} b/{number}\n")
        if diff is None:
            return FetchResult.failure("could not find pull request diff")
        return FetchResult.success(diff)


@pytest.fixture
def provider():
    return FakeProvider()
