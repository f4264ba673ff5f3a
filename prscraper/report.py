"""
Markdown report writer for PR Scraper.

Renders run banners, repository headers and PR blocks from Jinja2
templates and appends them to the report file as soon as each piece is
known, so an interrupted run leaves a valid prefix.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import IO

from jinja2 import Environment, FileSystemLoader

from .github import PullRequestDetail


logger = logging.getLogger(__name__)

SEPARATOR = "=" * 80
TEMPLATE_DIR = Path(__file__).parent / "templates"


def get_template_env() -> Environment:
    """Get Jinja2 environment for the report templates."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def format_timestamp(moment: datetime | None = None) -> str:
    """Local time in the style of date(1), e.g. 'Mon Oct 19 19:08:00 UTC 2026'."""
    moment = moment or datetime.now().astimezone()
    return moment.strftime("%a %b %d %H:%M:%S %Z %Y")


class ReportWriter:
    """Appends one run section to a markdown report, creating the file if needed."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._env = get_template_env()
        self._file: IO[str] | None = None

    def __enter__(self) -> "ReportWriter":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding="utf-8")
        logger.debug("Appending report to %s", self.path)
        return self

    def __exit__(self, *exc_info) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write(self, template: str, **context) -> None:
        if self._file is None:
            raise RuntimeError("ReportWriter used outside of a with block")
        self._file.write(self._env.get_template(template).render(**context))
        self._file.flush()

    def write_run_header(
        self,
        target: str,
        mode: str,
        author: str,
        period: str,
        include_diffs: bool,
        repo_count: int,
        timestamp: str | None = None,
    ) -> None:
        """Write the banner that opens a run section."""
        self._write(
            "run_header.md.j2",
            separator=SEPARATOR,
            timestamp=timestamp or format_timestamp(),
            target=target,
            mode=mode,
            author=author,
            period=period,
            include_diffs="true" if include_diffs else "false",
            repo_count=repo_count,
        )

    def write_repository_header(self, repo: str, count: int) -> None:
        self._write("repository.md.j2", repo=repo, count=count)

    def write_pull_request(self, detail: PullRequestDetail) -> None:
        """Write one PR block; the diff section only appears when a diff was fetched."""
        pr = detail.summary
        self._write(
            "pull_request.md.j2",
            number=pr.number,
            title=pr.title,
            state=pr.state.value,
            url=pr.url,
            body=detail.body,
            diff=detail.diff,
        )
