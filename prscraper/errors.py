"""
Error types for PR Scraper.

Every failure that aborts a run derives from ScraperError, so the CLI can
turn it into a one-line message and exit status 1.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base error for a failed run."""


class UsageError(ScraperError):
    """Bad or missing arguments (raised before any external call)."""


class ConfigError(ScraperError):
    """The configuration file is unreadable or holds invalid values."""


class AuthError(ScraperError):
    """The authenticated user could not be resolved."""


class ScopeError(ScraperError):
    """An account target resolved to zero repositories."""


class ProviderError(ScraperError):
    """An external query to GitHub failed."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
