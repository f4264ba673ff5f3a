"""
PR Scraper - Collect your own GitHub pull request descriptions into markdown.

A CLI tool that:
1. Resolves a target (single owner/repo or every repo of an account)
2. Finds the pull requests you authored since a given date
3. Fetches each PR description and, optionally, its diff
4. Appends a run section to a cumulative markdown report

Usage:
    pr-scraper microsoft/vscode                   # Single repository
    pr-scraper microsoft --include-diffs          # Whole organization, with diffs
    pr-scraper -t octocat -o my_prs.md --since 2024-01-01
"""

__version__ = "0.1.0"
__author__ = "PR Scraper"
