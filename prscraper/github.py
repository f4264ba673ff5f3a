"""
GitHub providers for PR Scraper.

Both providers answer the same five queries (current user, repositories of
an account, PRs by author, PR body, PR diff):

- GhCliProvider shells out to the GitHub CLI and reuses its stored login.
- GitHubClient talks to the REST API with the GITHUB_TOKEN environment
  variable.

Diff retrieval never raises: it returns a FetchResult so callers can pick
a fallback value.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

import requests

from . import __version__
from .errors import ProviderError


logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
DEFAULT_PER_PAGE = 100
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
PR_LIST_FIELDS = "number,title,createdAt,state,url"
SEARCH_RESULT_CAP = 1000


class PRState(str, Enum):
    """PR state, spelled the way the GitHub CLI prints it."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


@dataclass(frozen=True)
class PullRequestSummary:
    """One PR as returned by the listing query."""
    number: int
    title: str
    state: PRState
    url: str
    created_at: str  # ISO 8601, compared as a string


@dataclass(frozen=True)
class PullRequestDetail:
    """A PR with its description and, when requested, its diff."""
    summary: PullRequestSummary
    body: str
    diff: str | None = None


@dataclass(frozen=True)
class FetchResult:
    """Value of a fetch that is allowed to fail."""
    value: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: str) -> "FetchResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "FetchResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, fallback: str) -> str:
        """Return the fetched value, or `fallback` if the fetch failed."""
        if self.ok and self.value is not None:
            return self.value
        return fallback


class GitHubCLIError(ProviderError):
    """A gh command failed or could not be started."""


class GitHubAPIError(ProviderError):
    """Error from GitHub REST API."""


def parse_state(value: str) -> PRState:
    """Map a raw state string (any case) onto PRState."""
    try:
        return PRState(value.upper())
    except ValueError:
        raise ProviderError(f"Unknown pull request state: {value!r}") from None


class GitHubProvider(ABC):
    """The queries a run needs from GitHub."""

    @abstractmethod
    def get_username(self) -> str:
        """Login of the authenticated user."""
        ...

    @abstractmethod
    def list_repositories(self, account: str, limit: int) -> list[str]:
        """Repositories owned by an organization or user, as owner/name."""
        ...

    @abstractmethod
    def list_pull_requests(self, repo: str, author: str, limit: int) -> list[PullRequestSummary]:
        """All PRs in `repo` opened by `author`, in any state."""
        ...

    @abstractmethod
    def get_pull_request_body(self, repo: str, number: int) -> str | None:
        """Description text of a PR, None when it has none."""
        ...

    @abstractmethod
    def get_pull_request_diff(self, repo: str, number: int) -> FetchResult:
        """Unified diff of a PR."""
        ...


class GhCliProvider(GitHubProvider):
    """Provider backed by the `gh` command-line tool."""

    def __init__(self, gh_path: str = "gh", timeout: float | None = None):
        self.gh_path = gh_path
        self.timeout = timeout

    def _run(self, args: list[str], errors: str = "strict") -> str:
        """
        Run gh and return stdout; raise GitHubCLIError on failure.

        `errors` is the decoding error handler for the output, as in bytes.decode.
        """
        cmd = [self.gh_path] + args
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors=errors,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise GitHubCLIError(
                f"'{self.gh_path}' not found. Install the GitHub CLI (https://cli.github.com) and run 'gh auth login'."
            ) from e
        except subprocess.CalledProcessError as e:
            err = (e.stderr or e.stdout or "").strip()
            raise GitHubCLIError(f"gh {' '.join(args)}: {err or f'exit status {e.returncode}'}") from e
        except subprocess.TimeoutExpired as e:
            raise GitHubCLIError(f"gh {' '.join(args)}: timed out after {self.timeout}s") from e
        except UnicodeDecodeError as e:
            raise GitHubCLIError(f"gh {' '.join(args)}: output is not valid UTF-8 ({e})") from e
        return result.stdout

    def _run_json(self, args: list[str]) -> Any:
        output = self._run(args)
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise GitHubCLIError(f"gh {' '.join(args)}: invalid JSON output ({e})") from e

    def get_username(self) -> str:
        data = self._run_json(["api", "user"])
        login = data.get("login") if isinstance(data, dict) else None
        if not login:
            raise GitHubCLIError("gh api user: response has no login")
        return login

    def list_repositories(self, account: str, limit: int) -> list[str]:
        data = self._run_json([
            "repo", "list", account,
            "--limit", str(limit),
            "--json", "name,owner",
        ])
        return [f"{item['owner']['login']}/{item['name']}" for item in data]

    def list_pull_requests(self, repo: str, author: str, limit: int) -> list[PullRequestSummary]:
        data = self._run_json([
            "pr", "list",
            "--repo", repo,
            "--author", author,
            "--state", "all",
            "--limit", str(limit),
            "--json", PR_LIST_FIELDS,
        ])
        return [
            PullRequestSummary(
                number=item["number"],
                title=item.get("title", ""),
                state=parse_state(item.get("state", "")),
                url=item.get("url", ""),
                created_at=item.get("createdAt", ""),
            )
            for item in data
        ]

    def get_pull_request_body(self, repo: str, number: int) -> str | None:
        data = self._run_json(["pr", "view", str(number), "--repo", repo, "--json", "body"])
        return data.get("body")

    def get_pull_request_diff(self, repo: str, number: int) -> FetchResult:
        try:
            return FetchResult.success(self._run(["pr", "diff", str(number), "--repo", repo], errors="replace"))
        except GitHubCLIError as e:
            return FetchResult.failure(str(e))


class GitHubClient(GitHubProvider):
    """GitHub REST API provider with pagination."""

    def __init__(self, token: str | None = None):
        self.token = token or os.environ.get("GITHUB_TOKEN")
        self.session = requests.Session()

        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

        self.session.headers["Accept"] = "application/vnd.github.v3+json"
        self.session.headers["User-Agent"] = f"prscraper/{__version__}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Make a single API request, raising GitHubAPIError on failure."""
        url = f"{GITHUB_API_BASE}{endpoint}"
        logger.debug("%s %s %s", method, url, params or "")

        try:
            response = self.session.request(method, url, params=params, **kwargs)
        except requests.RequestException as e:
            raise GitHubAPIError(f"Request failed: {e}")

        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            raise GitHubAPIError("GitHub API rate limit exceeded", 403)

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {response.text}",
                response.status_code,
            )

        return response

    def _paginate(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
        items_key: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """
        Iterate through paginated API results.

        Args:
            endpoint: API path
            params: Query parameters
            limit: Stop after this many items
            items_key: Key holding the item list (search endpoints wrap results)
        """
        params = dict(params or {})
        params.setdefault("per_page", DEFAULT_PER_PAGE)
        page = 1
        yielded = 0

        while True:
            params["page"] = page
            response = self._request("GET", endpoint, params=params)
            payload = response.json()
            items = payload.get(items_key, []) if items_key else payload

            if not items:
                break

            for item in items:
                yield item
                yielded += 1
                if limit and yielded >= limit:
                    return

            # Check if there are more pages
            if len(items) < params["per_page"]:
                break

            page += 1

    def get_username(self) -> str:
        if not self.token:
            raise GitHubAPIError("GITHUB_TOKEN is not set")
        return self._request("GET", "/user").json()["login"]

    def list_repositories(self, account: str, limit: int) -> list[str]:
        """
        List repositories owned by an organization, or by a user when the
        account is not an organization.
        """
        try:
            items = list(self._paginate(f"/orgs/{account}/repos", {"type": "all"}, limit=limit))
        except GitHubAPIError as e:
            if e.status_code != 404:
                raise
            logger.debug("%s is not an organization, listing user repositories", account)
            items = list(self._paginate(f"/users/{account}/repos", {"type": "owner"}, limit=limit))
        return [item["full_name"] for item in items]

    def list_pull_requests(self, repo: str, author: str, limit: int) -> list[PullRequestSummary]:
        """
        Find PRs by author with the issue search endpoint, newest first.

        Search returns at most 1000 results, so larger limits are capped.
        """
        if limit > SEARCH_RESULT_CAP:
            logger.warning("Search is capped at %d results; using that instead of %d", SEARCH_RESULT_CAP, limit)
            limit = SEARCH_RESULT_CAP
        params = {
            "q": f"repo:{repo} is:pr author:{author}",
            "sort": "created",
            "order": "desc",
        }
        prs = []
        for item in self._paginate("/search/issues", params, limit=limit, items_key="items"):
            prs.append(self._parse_search_item(item))
        return prs

    def get_pull_request_body(self, repo: str, number: int) -> str | None:
        return self._request("GET", f"/repos/{repo}/pulls/{number}").json().get("body")

    def get_pull_request_diff(self, repo: str, number: int) -> FetchResult:
        try:
            response = self._request(
                "GET",
                f"/repos/{repo}/pulls/{number}",
                headers={"Accept": DIFF_MEDIA_TYPE},
            )
        except GitHubAPIError as e:
            return FetchResult.failure(str(e))
        return FetchResult.success(response.text)

    def _parse_search_item(self, data: dict[str, Any]) -> PullRequestSummary:
        """Parse a search result into a PullRequestSummary."""
        pull_request = data.get("pull_request") or {}
        if pull_request.get("merged_at"):
            state = PRState.MERGED
        else:
            state = parse_state(data.get("state", ""))

        return PullRequestSummary(
            number=data.get("number", 0),
            title=data.get("title", ""),
            state=state,
            url=data.get("html_url", ""),
            created_at=data.get("created_at", ""),
        )


def create_provider(backend: str, gh_path: str = "gh", timeout: float | None = None) -> GitHubProvider:
    """Build the provider for a backend name (gh or api)."""
    if backend == "gh":
        return GhCliProvider(gh_path=gh_path, timeout=timeout)
    if backend == "api":
        return GitHubClient()
    raise ValueError(f"Unknown backend: {backend}")
