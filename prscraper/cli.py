"""
PR Scraper CLI - Collect your GitHub PR descriptions (and diffs) into markdown.

Accepts two equivalent invocation styles:
    pr-scraper <target> [output-file] [--include-diffs] [--since YYYY-MM-DD]
    pr-scraper --target <target> [--output FILE] [--include-diffs] [--since YYYY-MM-DD]
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from . import __version__
from .collector import AccountScope, classify_target, run_collection
from .config import ScraperConfig, BACKENDS, get_repo_root, resolve_run_config
from .errors import ScraperError, UsageError
from .github import create_provider

# Load .env file from current directory or repo root (GITHUB_TOKEN for --backend api)
load_dotenv()
load_dotenv(get_repo_root() / ".env")


logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EPILOG = """\
\b
Examples:
  pr-scraper microsoft/vscode                      # Single repository, last 6 months
  pr-scraper microsoft --include-diffs             # Every repo in an organization, with diffs
  pr-scraper microsoft --since 2024-01-01          # Custom start date
  pr-scraper microsoft my_prs.md --include-diffs --since 2023-06-01
  pr-scraper -t octocat -o octocat_prs.md          # Flag style

\b
Modes:
  Repository mode:    "owner/repo" processes a single repository
  Organization mode:  "organization" processes all repos of an org or user

\b
Output:
  Creates the file if needed, otherwise appends a new run section.
  Requires the GitHub CLI (gh), authenticated with 'gh auth login',
  or GITHUB_TOKEN with --backend api.
"""


class CommandUsageError(click.UsageError):
    """Usage error that exits with status 1."""
    exit_code = 1


class ScraperCommand(click.Command):
    """Command whose argument parsing errors exit with status 1 instead of 2."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def resolve_positionals(
    target_arg: str | None,
    output_arg: str | None,
    target: str | None,
    output: str | None,
) -> tuple[str | None, str | None]:
    """
    Merge positional arguments with --target/--output.

    With --target, a single positional argument is the output file.
    """
    if target:
        if output_arg:
            raise UsageError(f"Got unexpected extra argument ({output_arg})")
        target_arg, output_arg = None, target_arg

    if output_arg and output and output_arg != output:
        raise UsageError(f"Conflicting output files: '{output_arg}' and --output '{output}'")

    return target or target_arg, output or output_arg


@click.command(cls=ScraperCommand, context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.argument("target_arg", metavar="TARGET", required=False)
@click.argument("output_arg", metavar="[OUTPUT_FILE]", required=False)
@click.option("-t", "--target", help="Repository (owner/repo) or organization/user name")
@click.option("-o", "--output", help="Output file (default: pr_descriptions_YYYYMMDD.md)")
@click.option("--include-diffs", is_flag=True, help="Include full diff content for each PR")
@click.option("--since", help="Start date YYYY-MM-DD (default: 1st of the month, 6 months ago)")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to prscraper.yml")
@click.option("--backend", type=click.Choice(BACKENDS), default=None, help="gh (GitHub CLI) or api (REST + GITHUB_TOKEN)")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    target_arg: str | None,
    output_arg: str | None,
    target: str | None,
    output: str | None,
    include_diffs: bool,
    since: str | None,
    config_path: Path | None,
    backend: str | None,
    verbose: bool,
):
    """Collect descriptions of pull requests you authored into a markdown report.

    TARGET is either a repository (owner/repo) or an organization/user name.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )

    try:
        target, output = resolve_positionals(target_arg, output_arg, target, output)
        config = ScraperConfig.load(get_repo_root(), config_path)
        run_config = resolve_run_config(
            target=target,
            output=output,
            include_diffs=include_diffs,
            since=since,
            lookback_months=config.lookback_months,
        )
    except UsageError as e:
        raise CommandUsageError(str(e), ctx=ctx)
    except ScraperError as e:
        raise click.ClickException(str(e))

    scope = classify_target(run_config.target)
    if isinstance(scope, AccountScope):
        click.echo(f"Mode: All repositories for {scope.account_name}")
    else:
        click.echo(f"Mode: Single repository ({scope.owner_slash_name})")
    click.echo(f"Collecting PR descriptions {run_config.date_description}...")
    if run_config.include_diffs:
        click.echo("Including diffs (this may take longer)...")
    click.echo(f"Output file: {run_config.output_path}")

    provider = create_provider(backend or config.backend, config.gh_path, config.command_timeout)

    try:
        summary = run_collection(
            run_config,
            provider,
            repo_limit=config.repo_limit,
            pr_limit=config.pr_limit,
            echo=click.echo,
        )
    except ScraperError as e:
        logger.debug("Run failed", exc_info=True)
        raise click.ClickException(str(e))

    click.echo()
    click.echo(
        f"✅ Complete! Collected descriptions from {summary.total_prs} pull requests "
        f"across {summary.repo_count} repositories."
    )
    if summary.include_diffs:
        click.echo(f"📄 Output with diffs saved to: {summary.output_path}")
    else:
        click.echo(f"📄 Output saved to: {summary.output_path}")
    click.echo()
    click.echo("Summary:")
    click.echo(f"- Target: {summary.target} ({summary.mode} mode)")
    click.echo(f"- Author: {summary.author}")
    click.echo(f"- Period: {summary.date_description}")
    click.echo(f"- Repositories: {summary.repo_count}")
    click.echo(f"- Total PRs: {summary.total_prs}")
    click.echo(f"- Includes Diffs: {'true' if summary.include_diffs else 'false'}")


if __name__ == "__main__":
    main()
